"""
Database package for the NETS QR service.

Exports database initialization, models, and the session factory.
"""
from .init_db import initialize_database, create_tables, AsyncSessionLocal
from .models import Base, TransactionRecordModel

__all__ = [
    "initialize_database",
    "create_tables",
    "AsyncSessionLocal",
    "Base",
    "TransactionRecordModel",
]
