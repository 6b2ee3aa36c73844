"""
Record Change Feed

Pushes committed record snapshots to in-process subscribers.
Each subscriber owns one asyncio.Queue per transaction key, so any number of
observers can watch the same transaction independently.
"""
import asyncio
from collections import defaultdict
from typing import Dict, Optional, Set
import logging

from ..models.transactions import RecordSnapshot

logger = logging.getLogger(__name__)


class ChangeFeed:
    """
    Fan-out of record snapshots keyed by transaction key.

    Queues are unbounded; a slow subscriber never blocks the writer.
    """

    def __init__(self):
        # Listener queues: {key: {asyncio.Queue, ...}}
        self._listeners: Dict[str, Set[asyncio.Queue]] = defaultdict(set)

    def register(self, key: str) -> asyncio.Queue:
        """
        Register a new listener queue for a key.

        Args:
            key: Derived transaction key

        Returns:
            Queue receiving every snapshot published for key from now on
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._listeners[key].add(queue)
        logger.debug(f"Registered listener for {key} ({len(self._listeners[key])} total)")
        return queue

    def unregister(self, key: str, queue: asyncio.Queue) -> None:
        """
        Remove a listener queue. Unknown queues are ignored.
        """
        listeners = self._listeners.get(key)
        if listeners is None:
            return
        listeners.discard(queue)
        if not listeners:
            del self._listeners[key]
        logger.debug(f"Unregistered listener for {key}")

    def publish(self, key: str, snapshot: RecordSnapshot) -> int:
        """
        Deliver a committed snapshot to every listener of key.

        Returns:
            Number of listeners the snapshot was delivered to
        """
        listeners = self._listeners.get(key, ())
        for queue in listeners:
            queue.put_nowait(snapshot)
        if listeners:
            logger.debug(f"Published {snapshot.status.value} v{snapshot.version} for {key} to {len(listeners)} listeners")
        return len(listeners)

    def get_listener_count(self, key: Optional[str] = None) -> int:
        """Get number of listeners for a key, or across all keys."""
        if key is not None:
            return len(self._listeners.get(key, ()))
        return sum(len(listeners) for listeners in self._listeners.values())
