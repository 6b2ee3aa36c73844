"""
Order Service

Places a NETS QR order and creates the PENDING record the client observes.

Flow: build request -> serialize once -> sign -> POST to gateway ->
derive key from txn_identifier -> create record -> return key to client.
The record exists before the client learns the key, so an observer can never
attach to a key that has no record yet.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
import logging

from ..config import settings
from ..exceptions import ConfigurationError
from ..models.transactions import OrderResponse
from .gateway_client import GatewayClient
from .id_deriver import derive_key
from .order_builder import Credentials, build_order, pad_amount, serialize_order
from .signature_service import sign
from .transaction_store import TransactionStore

logger = logging.getLogger(__name__)


@dataclass
class CreateTransactionResult:
    """Result of the client-facing create call."""
    ok: bool
    order_response: OrderResponse
    doc_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "orderResponse": self.order_response.model_dump(mode="json", exclude_none=True),
            "docId": self.doc_id,
        }


async def create_transaction(
    store: TransactionStore,
    gateway: GatewayClient,
    amount_cents: Optional[int] = None,
    callback_url: Optional[str] = None,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CreateTransactionResult:
    """
    Place an order with NETS and record it as PENDING.

    Arguments left as None fall back to settings.

    Returns:
        CreateTransactionResult; ok is True only for response code "00"

    Raises:
        ConfigurationError: Client id or secret missing
        GatewayError: Order request failed
    """
    amount_cents = settings.order_amount_cents if amount_cents is None else amount_cents
    callback_url = callback_url or settings.nets_callback_url
    client_id = client_id or settings.nets_client_id
    client_secret = client_secret or settings.nets_client_secret

    if not client_id:
        raise ConfigurationError("NETS client id is not configured")
    if not client_secret:
        raise ConfigurationError("NETS client secret is not configured")

    now = now or datetime.now().astimezone()

    order = build_order(
        pad_amount(amount_cents),
        now,
        callback_url,
        Credentials(client_id=client_id),
        terminal_id=settings.nets_terminal_id,
        merchant_id=settings.nets_merchant_id,
        institution_code=settings.nets_institution_code,
    )
    body = serialize_order(order)
    signature = sign(body, client_secret)

    logger.info(f"Placing NETS order: amount={order.amount}, date={order.transaction_date}, time={order.transaction_time}")
    order_response = await gateway.place_order(body, signature, client_id)

    doc_id = derive_key(order_response.txn_identifier)
    await store.create(doc_id, now)

    ok = order_response.response_code == "00"
    if not ok:
        logger.warning(f"NETS order {doc_id} answered with response_code={order_response.response_code}")

    return CreateTransactionResult(ok=ok, order_response=order_response, doc_id=doc_id)
