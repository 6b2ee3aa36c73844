"""
Transactions API Endpoints

Client-facing side of the transaction lifecycle:
- POST /api/transactions - place an order, returns {ok, orderResponse, docId}
- GET /api/transactions/{doc_id} - current record
- GET /api/transactions/{doc_id}/events - live status stream (SSE)
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from typing import Any, Dict, Optional
import json
import logging

from ..services.gateway_client import GatewayClient, get_gateway_client
from ..services.order_service import create_transaction
from ..services.status_observer import observe
from ..services.transaction_store import TransactionStore, get_transaction_store

logger = logging.getLogger(__name__)

router = APIRouter()


def format_sse_event(event_type: str, data: Dict[str, Any], event_id: Optional[str] = None) -> str:
    """
    Format event according to SSE specification.

    Args:
        event_type: Event type (e.g., "status")
        data: Event data payload
        event_id: Optional unique event ID

    Returns:
        Formatted SSE message string
    """
    lines = []

    if event_type:
        lines.append(f"event: {event_type}")

    if event_id:
        lines.append(f"id: {event_id}")

    if data:
        lines.append(f"data: {json.dumps(data)}")

    lines.append("")
    lines.append("")

    return "\n".join(lines)


@router.post("")
async def create_transaction_endpoint(
    store: TransactionStore = Depends(get_transaction_store),
    gateway: GatewayClient = Depends(get_gateway_client)
) -> Dict[str, Any]:
    """
    Place a NETS QR order for the configured amount.

    Returns:
        {
            "ok": bool,  # True when NETS answered response_code "00"
            "orderResponse": OrderResponse,  # includes qr_code (base64 PNG)
            "docId": str  # key to observe
        }

    Errors:
        502 nets:gateway:error when the order request fails
    """
    result = await create_transaction(store, gateway)
    logger.info(f"Transaction created: docId={result.doc_id}, ok={result.ok}")
    return result.to_dict()


@router.get("/{doc_id}")
async def get_transaction_endpoint(
    doc_id: str,
    store: TransactionStore = Depends(get_transaction_store)
) -> Dict[str, Any]:
    """
    Get the current transaction record.

    Example:
        GET /api/transactions/q1w2e3r4t5y6u7i8o9p0as
    """
    snapshot = await store.get(doc_id)

    if snapshot is None:
        raise HTTPException(
            status_code=404,
            detail={
                "error_code": "nets:transaction:not_found",
                "message": f"No transaction found with ID: {doc_id}"
            }
        )

    return snapshot.model_dump(mode="json")


@router.get("/{doc_id}/events")
async def stream_transaction_events(
    doc_id: str,
    store: TransactionStore = Depends(get_transaction_store)
) -> StreamingResponse:
    """
    Stream status changes of a transaction as Server-Sent Events.

    Each event is:
        event: status
        id: <record version>
        data: {"status": "PENDING" | "SUCCESS" | "FAILED", "payload": {...} | null}

    The current status is sent first. The stream stays open until the client
    disconnects; if the record does not exist yet, the stream waits for it.
    """
    updates = observe(store, doc_id)

    async def event_generator():
        logger.info(f"Attaching status observer for {doc_id}")
        try:
            async for update in updates:
                yield format_sse_event("status", update.to_dict(), event_id=str(update.version))
        finally:
            await updates.aclose()
            logger.info(f"Detached status observer for {doc_id}")

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )
