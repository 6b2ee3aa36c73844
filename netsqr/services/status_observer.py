"""
Status Observer

Projects record snapshots into the {status, payload} pairs clients see.
"""
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Dict, Optional

from ..models.transactions import RecordSnapshot, TransactionStatus
from .transaction_store import TransactionStore


@dataclass(frozen=True)
class StatusUpdate:
    """Client-visible transaction status."""
    status: TransactionStatus
    payload: Optional[Dict[str, Any]]
    version: int

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "payload": self.payload}


def observe(store: TransactionStore, key: str) -> AsyncGenerator[StatusUpdate, None]:
    """
    Observe a transaction by its derived key.

    Raises ValueError right away when no key is given; a subscription is only
    opened once the key is known. Closing the returned iterator releases the
    underlying store subscription.
    """
    if not key:
        raise ValueError("Cannot observe a transaction before its key is known")
    return _project(store.subscribe(key))


async def _project(snapshots: AsyncGenerator[RecordSnapshot, None]) -> AsyncGenerator[StatusUpdate, None]:
    try:
        async for snapshot in snapshots:
            yield StatusUpdate(
                status=snapshot.status,
                payload=snapshot.response,
                version=snapshot.version,
            )
    finally:
        await snapshots.aclose()
