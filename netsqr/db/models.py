"""
SQLAlchemy ORM Models for NETS QR transactions

One row per derived transaction key.
"""
from sqlalchemy import Column, String, Integer, DateTime, Text, CheckConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class TransactionRecordModel(Base):
    """
    ORM model for netstxns table.

    Created once when the order is placed (status PENDING, no response) and
    updated by every accepted callback. Rows are never deleted here.
    """
    __tablename__ = "netstxns"

    key = Column(String(22), primary_key=True)
    status = Column(String, nullable=False, index=True)
    response = Column(Text)  # JSON blob, last callback payload
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("status IN ('PENDING', 'SUCCESS', 'FAILED')", name="status_check"),
    )
