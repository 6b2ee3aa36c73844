"""
Transaction Store

Persists one record per derived transaction key and publishes every
committed change to subscribers.

Ordering:
- create() must run before any update() can succeed for a key; update()
  rejects unknown keys instead of creating them
- Concurrent updates to one key are last-write-wins, without compare-and-set
"""
import json
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional
from sqlalchemy import select, update as sql_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import logging

from ..db.init_db import AsyncSessionLocal
from ..db.models import TransactionRecordModel
from ..exceptions import DuplicateTransactionError, TransactionNotFoundError
from ..models.transactions import RecordSnapshot, TransactionStatus
from .change_feed import ChangeFeed

logger = logging.getLogger(__name__)


def _as_utc(moment: datetime) -> datetime:
    """Normalize to aware UTC; naive values read back from SQLite are UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _to_snapshot(record: TransactionRecordModel) -> RecordSnapshot:
    return RecordSnapshot(
        key=record.key,
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
        status=TransactionStatus(record.status),
        response=json.loads(record.response) if record.response else None,
        version=record.version,
    )


class TransactionStore:
    """
    Record store over an async SQLAlchemy session factory.

    Args:
        session_factory: Factory producing AsyncSession objects
        feed: Change feed used to notify subscribers (a private one by default)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed: Optional[ChangeFeed] = None,
    ):
        self._session_factory = session_factory
        self._feed = feed or ChangeFeed()

    @property
    def feed(self) -> ChangeFeed:
        return self._feed

    async def create(self, key: str, now: datetime) -> RecordSnapshot:
        """
        Insert a PENDING record with no response payload.

        Args:
            key: Derived transaction key
            now: Creation instant, used for both created_at and updated_at

        Returns:
            Snapshot of the new record

        Raises:
            DuplicateTransactionError: If a record already exists for key
        """
        moment = _as_utc(now)
        record = TransactionRecordModel(
            key=key,
            status=TransactionStatus.PENDING.value,
            response=None,
            version=1,
            created_at=moment,
            updated_at=moment,
        )

        snapshot = _to_snapshot(record)

        async with self._session_factory() as session:
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateTransactionError(
                    f"Transaction record already exists: {key}",
                    details={"key": key}
                ) from e

        logger.info(f"Created transaction record: {key}, status=PENDING")
        self._feed.publish(key, snapshot)
        return snapshot

    async def update(
        self,
        key: str,
        now: datetime,
        status: TransactionStatus,
        response: Optional[Dict[str, Any]],
    ) -> RecordSnapshot:
        """
        Overwrite status and response payload of an existing record.

        Args:
            key: Derived transaction key
            now: Update instant
            status: New canonical status
            response: Last received query/callback payload

        Returns:
            Snapshot of the updated record

        Raises:
            TransactionNotFoundError: If no record exists for key
        """
        async with self._session_factory() as session:
            result = await session.execute(
                sql_update(TransactionRecordModel)
                .where(TransactionRecordModel.key == key)
                .values(
                    status=status.value,
                    response=json.dumps(response) if response is not None else None,
                    updated_at=_as_utc(now),
                    version=TransactionRecordModel.version + 1,
                )
            )
            if result.rowcount == 0:
                await session.rollback()
                raise TransactionNotFoundError(
                    f"Transaction not found: {key}",
                    details={"key": key}
                )

            record = (await session.execute(
                select(TransactionRecordModel).where(TransactionRecordModel.key == key)
            )).scalar_one()
            snapshot = _to_snapshot(record)
            await session.commit()

        logger.info(f"Updated transaction record: {key}, status={status.value}, version={snapshot.version}")
        self._feed.publish(key, snapshot)
        return snapshot

    async def get(self, key: str) -> Optional[RecordSnapshot]:
        """
        Read the current record.

        Returns:
            Snapshot or None if no record exists for key
        """
        async with self._session_factory() as session:
            record = await session.get(TransactionRecordModel, key)
            if record is None:
                return None
            return _to_snapshot(record)

    async def subscribe(self, key: str) -> AsyncGenerator[RecordSnapshot, None]:
        """
        Stream snapshots of a record.

        Yields the current snapshot first (if the record exists), then every
        later committed snapshot in version order. Runs until the consumer
        closes the iterator or its task is cancelled, at which point the
        listener is released.
        """
        # Listen before reading so a commit between the two is not lost.
        queue = self._feed.register(key)
        try:
            last_version = 0
            current = await self.get(key)
            if current is not None:
                last_version = current.version
                yield current

            while True:
                snapshot = await queue.get()
                if snapshot.version <= last_version:
                    continue
                last_version = snapshot.version
                yield snapshot
        finally:
            self._feed.unregister(key, queue)


# Global transaction store instance
_transaction_store: Optional[TransactionStore] = None


def get_transaction_store() -> TransactionStore:
    """
    Get or create global transaction store instance.

    Returns:
        TransactionStore singleton bound to the application database
    """
    global _transaction_store
    if _transaction_store is None:
        _transaction_store = TransactionStore(AsyncSessionLocal)
    return _transaction_store
