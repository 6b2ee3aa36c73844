"""
NETS QR Transaction Client

Drives one payment attempt against the backend as an explicit state machine:

    NotStarted --start--> Placing --order_placed--> Placed(key)
    Placing --order_failed--> NotStarted
    Placed(key) --status_received--> Observing(key, status)
    Observing(key, status) --status_received--> Observing(key, status')
    Placed / Observing --reset--> NotStarted

Each transition returns a new immutable ClientSnapshot; the client keeps
only the current snapshot.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple
import json
import logging

import requests

from .exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)

FINAL_STATUSES = {"SUCCESS", "FAILED"}


class ClientState(str, Enum):
    NOT_STARTED = "NotStarted"
    PLACING = "Placing"
    PLACED = "Placed"
    OBSERVING = "Observing"


class ClientEvent(str, Enum):
    START = "start"
    ORDER_PLACED = "order_placed"
    ORDER_FAILED = "order_failed"
    STATUS_RECEIVED = "status_received"
    RESET = "reset"


TRANSITIONS: Dict[Tuple[ClientState, ClientEvent], ClientState] = {
    (ClientState.NOT_STARTED, ClientEvent.START): ClientState.PLACING,
    (ClientState.PLACING, ClientEvent.ORDER_PLACED): ClientState.PLACED,
    (ClientState.PLACING, ClientEvent.ORDER_FAILED): ClientState.NOT_STARTED,
    (ClientState.PLACED, ClientEvent.STATUS_RECEIVED): ClientState.OBSERVING,
    (ClientState.OBSERVING, ClientEvent.STATUS_RECEIVED): ClientState.OBSERVING,
    (ClientState.PLACED, ClientEvent.RESET): ClientState.NOT_STARTED,
    (ClientState.OBSERVING, ClientEvent.RESET): ClientState.NOT_STARTED,
}


@dataclass(frozen=True)
class ClientSnapshot:
    """Current client state and the data that state carries."""
    state: ClientState = ClientState.NOT_STARTED
    doc_id: Optional[str] = None
    order_response: Optional[Dict[str, Any]] = None
    status: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def qr_code(self) -> Optional[str]:
        return (self.order_response or {}).get("qr_code")

    @property
    def is_final(self) -> bool:
        return self.state == ClientState.OBSERVING and self.status in FINAL_STATUSES


def transition(snapshot: ClientSnapshot, event: ClientEvent, **data: Any) -> ClientSnapshot:
    """
    Apply an event to a snapshot.

    Keyword data by event:
        order_placed: doc_id, order_response
        order_failed: error
        status_received: status, payload

    Raises:
        InvalidTransitionError: If the current state does not accept event
    """
    target = TRANSITIONS.get((snapshot.state, event))
    if target is None:
        raise InvalidTransitionError(
            f"Event {event.value} not allowed in state {snapshot.state.value}",
            details={"state": snapshot.state.value, "event": event.value}
        )

    if event == ClientEvent.START:
        return ClientSnapshot(state=target)
    if event == ClientEvent.ORDER_PLACED:
        if not data.get("doc_id"):
            raise InvalidTransitionError("order_placed requires a doc_id")
        return replace(snapshot, state=target, doc_id=data["doc_id"], order_response=data.get("order_response"))
    if event == ClientEvent.ORDER_FAILED:
        return ClientSnapshot(state=target, error=data.get("error"))
    if event == ClientEvent.STATUS_RECEIVED:
        return replace(snapshot, state=target, status=data["status"], payload=data.get("payload"))
    return ClientSnapshot(state=target)


def iter_sse_events(lines: Iterable[Any]) -> Iterator[Tuple[str, Dict[str, Any]]]:
    """
    Parse Server-Sent Events from decoded or raw lines.

    Yields:
        (event_type, data) for every event carrying a JSON data line
    """
    event_type = "message"
    data_lines = []

    for line in lines:
        if isinstance(line, bytes):
            line = line.decode("utf-8")

        if not line:
            if data_lines:
                yield event_type, json.loads("\n".join(data_lines))
            event_type = "message"
            data_lines = []
            continue

        if line.startswith(":"):
            continue
        if line.startswith("event:"):
            event_type = line.split(":", 1)[1].strip()
        elif line.startswith("data:"):
            data_lines.append(line.split(":", 1)[1].strip())

    if data_lines:
        yield event_type, json.loads("\n".join(data_lines))


class TransactionClient:
    """
    Synchronous client for one payment attempt.

    Args:
        base_url: Backend base URL, e.g. http://localhost:8000
        session: Optional requests session
        timeout: Timeout for the create call in seconds
    """

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 60.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.snapshot = ClientSnapshot()

    def _apply(self, event: ClientEvent, **data: Any) -> ClientSnapshot:
        self.snapshot = transition(self.snapshot, event, **data)
        logger.debug(f"Client state -> {self.snapshot.state.value}")
        return self.snapshot

    def start(self) -> ClientSnapshot:
        """
        Place an order.

        Returns:
            Placed snapshot on success, NotStarted snapshot (with error) on failure
        """
        self._apply(ClientEvent.START)

        try:
            response = self.session.post(f"{self.base_url}/api/transactions", timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Order placement failed: {e}")
            return self._apply(ClientEvent.ORDER_FAILED, error=str(e))

        if not result.get("docId"):
            return self._apply(ClientEvent.ORDER_FAILED, error="Response carries no docId")

        return self._apply(
            ClientEvent.ORDER_PLACED,
            doc_id=result.get("docId"),
            order_response=result.get("orderResponse"),
        )

    def watch(self, stop_on_final: bool = True) -> Iterator[ClientSnapshot]:
        """
        Observe the placed transaction.

        Yields a snapshot per status event. With stop_on_final the stream is
        closed after SUCCESS or FAILED; otherwise it runs until the server
        closes it.
        """
        if self.snapshot.doc_id is None:
            raise InvalidTransitionError(
                "Cannot observe before an order is placed",
                details={"state": self.snapshot.state.value}
            )

        url = f"{self.base_url}/api/transactions/{self.snapshot.doc_id}/events"
        with self.session.get(url, stream=True, timeout=(10, None)) as response:
            response.raise_for_status()
            for event_type, data in iter_sse_events(response.iter_lines()):
                if event_type != "status":
                    continue
                yield self._apply(
                    ClientEvent.STATUS_RECEIVED,
                    status=data.get("status"),
                    payload=data.get("payload"),
                )
                if stop_on_final and self.snapshot.is_final:
                    return

    def reset(self) -> ClientSnapshot:
        """Forget the current attempt."""
        return self._apply(ClientEvent.RESET)
