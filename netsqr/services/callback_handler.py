"""
NETS Callback Handler

Ingests the transaction query response NETS posts to the callback URL and
applies it to the transaction record.

Response code mapping:
- "00" -> SUCCESS
- "09" -> PENDING
- anything else -> FAILED

Replaying a callback re-applies the same mapping and is harmless. Delivery
order is not checked: a late PENDING overwrites an earlier SUCCESS.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
import logging

from pydantic import ValidationError

from ..exceptions import CallbackValidationError, MethodNotAllowedError, NetsError
from ..models.transactions import TransactionQueryResponse, TransactionStatus
from .id_deriver import derive_key
from .transaction_store import TransactionStore

logger = logging.getLogger(__name__)


RESPONSE_CODE_STATUS: Dict[str, TransactionStatus] = {
    "00": TransactionStatus.SUCCESS,
    "09": TransactionStatus.PENDING,
}

STATUS_HTTP_CODES: Dict[TransactionStatus, int] = {
    TransactionStatus.SUCCESS: 200,
    TransactionStatus.PENDING: 202,
    TransactionStatus.FAILED: 400,
}

LOGGED_BODY_BYTES = 2000


@dataclass
class HttpOutcome:
    """HTTP status code and JSON body answered to the gateway."""
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


def map_response_code(response_code: str) -> TransactionStatus:
    """Map a NETS response code to the canonical status."""
    return RESPONSE_CODE_STATUS.get(response_code, TransactionStatus.FAILED)


def parse_callback(body: bytes) -> TransactionQueryResponse:
    """
    Validate a raw callback body.

    Raises:
        CallbackValidationError: If body is not JSON or lacks required fields
    """
    try:
        return TransactionQueryResponse.model_validate_json(body)
    except ValidationError as e:
        raise CallbackValidationError(
            "Invalid transaction query response",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)}
        ) from e


async def ingest_callback(
    store: TransactionStore,
    method: str,
    body: bytes,
    now: Optional[datetime] = None,
) -> TransactionStatus:
    """
    Apply one callback to the store.

    Steps are ordered so that nothing is derived or looked up before the
    method and body are accepted, and no record is ever created here.

    Raises:
        MethodNotAllowedError: method is not POST
        CallbackValidationError: body is malformed
        TransactionNotFoundError: no record exists for the derived key
    """
    logger.info(f"Received callback ({method}): {body[:LOGGED_BODY_BYTES].decode('utf-8', errors='replace')}")

    if method.upper() != "POST":
        raise MethodNotAllowedError("Method not allowed", details={"method": method})

    payload = parse_callback(body)
    logger.info(
        f"Parsed callback: response_code={payload.response_code}, stan={payload.stan}"
    )

    key = derive_key(payload.txn_identifier)
    status = map_response_code(payload.response_code)

    await store.update(
        key,
        now or datetime.now().astimezone(),
        status,
        payload.model_dump(mode="json", exclude_none=True),
    )
    return status


async def handle_callback(
    store: TransactionStore,
    method: str,
    body: bytes,
    now: Optional[datetime] = None,
) -> HttpOutcome:
    """
    Handle a callback request and decide the HTTP answer.

    Returns:
        200/202/400 with {"status": ...} for SUCCESS/PENDING/FAILED,
        404 for unknown transactions, 405 for non-POST, 400 for malformed bodies
    """
    try:
        status = await ingest_callback(store, method, body, now=now)
    except NetsError as e:
        logger.warning(f"Callback rejected: {e.error_code} - {e.message}")
        return HttpOutcome(e.http_status, e.to_dict())

    return HttpOutcome(STATUS_HTTP_CODES[status], {"status": status.value})
