"""
Tests for the client-facing status projection.
"""
import asyncio
from datetime import datetime, timezone

import pytest

from netsqr.models.transactions import TransactionStatus
from netsqr.services.status_observer import StatusUpdate, observe
from netsqr.services.transaction_store import TransactionStore

T0 = datetime(2025, 10, 17, 14, 35, 0, tzinfo=timezone.utc)


def test_empty_key_rejected_without_subscribing() -> None:
    class ExplodingStore:
        def subscribe(self, key):
            raise AssertionError("subscribe must not be called")

    with pytest.raises(ValueError):
        observe(ExplodingStore(), "")


def test_update_to_dict() -> None:
    update = StatusUpdate(status=TransactionStatus.SUCCESS, payload={"response_code": "00"}, version=2)
    assert update.to_dict() == {"status": "SUCCESS", "payload": {"response_code": "00"}}


@pytest.mark.asyncio
async def test_projects_status_and_payload(store: TransactionStore) -> None:
    await store.create("k1", T0)
    updates = observe(store, "k1")
    try:
        first = await asyncio.wait_for(updates.__anext__(), 1.0)
        await store.update("k1", T0, TransactionStatus.FAILED, {"response_code": "77"})
        second = await asyncio.wait_for(updates.__anext__(), 1.0)
    finally:
        await updates.aclose()

    assert first == StatusUpdate(status=TransactionStatus.PENDING, payload=None, version=1)
    assert second == StatusUpdate(status=TransactionStatus.FAILED, payload={"response_code": "77"}, version=2)


@pytest.mark.asyncio
async def test_close_detaches_from_store(store: TransactionStore) -> None:
    await store.create("k1", T0)
    updates = observe(store, "k1")

    await asyncio.wait_for(updates.__anext__(), 1.0)
    assert store.feed.get_listener_count("k1") == 1

    await updates.aclose()
    assert store.feed.get_listener_count("k1") == 0

    # Later updates reach nobody.
    await store.update("k1", T0, TransactionStatus.SUCCESS, {"response_code": "00"})
    assert store.feed.get_listener_count() == 0
