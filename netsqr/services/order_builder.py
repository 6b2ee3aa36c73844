"""
Order Request Builder

Assembles the fixed-shape NETS QR order request (MTI 0200) and serializes it
to the bytes that are both signed and sent.
"""
from datetime import datetime
from typing import Tuple

from pydantic import BaseModel

from ..models.transactions import CommunicationData, NpxData, OrderRequest

DEFAULT_TERMINAL_ID = "37066801"
DEFAULT_MERCHANT_ID = "11137066800"
DEFAULT_INSTITUTION_CODE = "20000000001"

AMOUNT_WIDTH = 12


class Credentials(BaseModel):
    """Public half of the NETS API credentials."""
    client_id: str


def pad_amount(amount_cents: int) -> str:
    """Format an amount in cents as the 12-digit zero-padded amount field."""
    if amount_cents < 0:
        raise ValueError(f"Amount cannot be negative: {amount_cents}")
    amount = str(amount_cents).zfill(AMOUNT_WIDTH)
    if len(amount) > AMOUNT_WIDTH:
        raise ValueError(f"Amount {amount_cents} exceeds {AMOUNT_WIDTH} digits")
    return amount


def format_date(moment: datetime) -> Tuple[str, str]:
    """
    Split one instant into the MMDD and hhmmss fields.

    Both fields come from the same wall-clock reading so they cannot disagree
    across midnight.
    """
    return moment.strftime("%m%d"), moment.strftime("%H%M%S")


def build_order(
    amount_cents: str,
    now: datetime,
    callback_url: str,
    credentials: Credentials,
    terminal_id: str = DEFAULT_TERMINAL_ID,
    merchant_id: str = DEFAULT_MERCHANT_ID,
    institution_code: str = DEFAULT_INSTITUTION_CODE,
) -> OrderRequest:
    """
    Build an order request.

    Args:
        amount_cents: Amount already formatted as 12 zero-padded digits (see pad_amount).
            The width is the caller's contract and is not checked here.
        now: Transaction instant; date and time fields use its wall-clock fields
        callback_url: Where NETS posts the transaction query response
        credentials: Client id embedded so NETS can authenticate the callback
        terminal_id: Host terminal id
        merchant_id: Host merchant id
        institution_code: Acquiring institution code

    Returns:
        Immutable OrderRequest requesting an inline QR code
    """
    txn_date, txn_time = format_date(now)

    return OrderRequest(
        mti="0200",
        process_code="990000",
        amount=amount_cents,
        stan="100001",
        transaction_date=txn_date,
        transaction_time=txn_time,
        entry_mode="000",
        condition_code="85",
        institution_code=institution_code,
        host_tid=terminal_id,
        host_mid=merchant_id,
        npx_data=NpxData(
            E103=terminal_id,
            E201="00000123",
            E202="SGD",
        ),
        communication_data=[
            CommunicationData(
                type="https_proxy",
                category="URL",
                destination=callback_url,
                addon={"external_API_keyID": credentials.client_id},
            )
        ],
        getQRCode="Y",
    )


def serialize_order(order: OrderRequest) -> bytes:
    """
    Serialize an order once.

    The returned bytes are what gets signed and what gets sent; never
    re-serialize between the two.
    """
    return order.model_dump_json(exclude_none=True).encode("utf-8")
