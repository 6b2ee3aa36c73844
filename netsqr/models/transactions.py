"""
Pydantic NETS Transaction Models

Wire models for the NETS QR order and query messages plus the persisted
transaction record snapshot.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, model_validator


# ============================================================================
# Shared Types
# ============================================================================

class NpxData(BaseModel):
    """
    Network-specific tags of an outbound order, keyed by tag name.

    Well-known tags are declared below. Other tags are accepted as long as
    their values are strings; numbers and booleans are converted to strings,
    nested structures are rejected.
    """
    E103: Optional[str] = None  # POS ID, Numeric(8)
    E104: Optional[str] = None  # Transaction ID, Numeric(10)
    E107: Optional[str] = None  # EDC Batch Number, Numeric(6)
    E201: Optional[str] = None  # Source Amount, Numeric(12)
    E202: Optional[str] = None  # Source Currency, String(3)
    E204: Optional[str] = None  # Target Currency, String(3)
    F101: Optional[str] = None  # Transaction ID, Numeric(10)
    F200: Optional[str] = None  # Number of Currency Groups, Numeric(2)
    F201: Optional[str] = None  # Target Currency String(99)
    F202: Optional[str] = None  # Target Currency Long Text
    F203: Optional[str] = None  # Target Currency ISO Code
    F204: Optional[str] = None  # Exchange Rate
    F217: Optional[str] = None  # Payment Type Id
    F219: Optional[str] = None  # Bank Retrieval Ref#
    F800: Optional[str] = None  # Marketing Message
    F998: Optional[str] = None  # PWAP Error Message
    F999: Optional[str] = None  # PWAP Error Code

    model_config = {
        "extra": "allow",
        "frozen": True,
    }

    @model_validator(mode="before")
    @classmethod
    def tags_are_strings(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        tags = {}
        for tag, value in data.items():
            if isinstance(value, (dict, list)):
                raise ValueError(f"NPX tag {tag} must be a string, got {type(value).__name__}")
            if value is not None and not isinstance(value, str):
                value = str(value)
            tags[tag] = value
        return tags


class CommunicationData(BaseModel):
    """Callback channel descriptor sent with an order."""
    type: str  # e.g. "https_proxy"
    category: str  # e.g. "URL"
    destination: str  # URL or mobile number
    addon: Optional[Dict[str, str]] = None

    model_config = {
        "frozen": True,
    }


# ============================================================================
# Order
# ============================================================================

class OrderRequest(BaseModel):
    """
    NETS QR order request (MTI 0200).

    All numeric fields are fixed-width, zero-padded strings. Widths are not
    validated here: the gateway verifies the signature over the exact bytes,
    so a wrong width surfaces there, not locally.
    """
    mti: str
    process_code: str
    message_version: Optional[str] = None
    amount: str
    transmission_time: Optional[str] = None
    stan: str
    transaction_time: str  # hhmmss
    transaction_date: str  # MMDD
    entry_mode: str
    condition_code: str
    institution_code: str
    retrieval_ref: Optional[str] = None
    host_tid: str
    host_mid: str
    acceptor_name: Optional[str] = None
    txn_identifier: Optional[str] = None
    npx_data: NpxData
    invoice_ref: Optional[str] = None
    user_data: Optional[str] = None
    communication_data: Optional[List[CommunicationData]] = None
    getQRCode: Optional[Literal["Y"]] = None

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }


class OrderResponse(BaseModel):
    """
    NETS QR order response (MTI 0210).

    txn_identifier is the durable correlation key for the later callback.
    Fields the gateway adds beyond these are kept. npx_data is not checked
    beyond being an object: the order is already placed by the time it is
    parsed.
    """
    mti: Optional[str] = None
    process_code: Optional[str] = None
    amount: Optional[str] = None
    stan: Optional[str] = None
    transaction_time: Optional[str] = None
    transaction_date: Optional[str] = None
    entry_mode: Optional[str] = None
    condition_code: Optional[str] = None
    institution_code: Optional[str] = None
    retrieval_ref: Optional[str] = None
    approval_code: Optional[str] = None
    response_code: str = Field(max_length=2)
    host_tid: Optional[str] = None
    txn_identifier: str = Field(min_length=1, max_length=170)
    npx_data: Optional[Dict[str, Any]] = None  # ancillary, kept as received
    loyalty_data: Optional[List[Dict[str, Any]]] = None
    invoice_ref: Optional[str] = None
    qr_code: Optional[str] = Field(None, max_length=50000)  # base64 PNG

    model_config = {
        "extra": "allow",
    }


# ============================================================================
# Transaction Query (callback payload)
# ============================================================================

class TransactionQueryResponse(BaseModel):
    """
    Transaction query response (MTI 0110), posted by NETS to the callback URL.
    """
    mti: Optional[str] = None
    process_code: Optional[str] = None
    sof_uri: Optional[str] = None
    stan: Optional[str] = None
    transaction_time: Optional[str] = None
    transaction_date: Optional[str] = None
    entry_mode: Optional[str] = None
    condition_code: Optional[str] = None
    institution_code: Optional[str] = None
    retrieval_ref: Optional[str] = None
    approval_code: Optional[str] = None
    response_code: str
    host_tid: Optional[str] = None
    acceptor_name: Optional[str] = None
    txn_identifier: str = Field(min_length=1)
    npx_data: Optional[Dict[str, Any]] = None  # ancillary, kept as received
    loyalty_data: Optional[List[Dict[str, Any]]] = None
    invoice_ref: Optional[str] = None

    model_config = {
        "extra": "allow",
    }


# ============================================================================
# Persisted Record
# ============================================================================

class TransactionStatus(str, Enum):
    """Canonical transaction status."""
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class RecordSnapshot(BaseModel):
    """
    Point-in-time view of a transaction record.

    version increases by one on every committed change to the record.
    """
    key: str
    created_at: datetime
    updated_at: datetime
    status: TransactionStatus
    response: Optional[Dict[str, Any]] = None
    version: int = Field(ge=1)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "key": "q1w2e3r4t5y6u7i8o9p0as",
                "created_at": "2025-10-17T14:35:00Z",
                "updated_at": "2025-10-17T14:36:12Z",
                "status": "SUCCESS",
                "response": {"txn_identifier": "...", "response_code": "00"},
                "version": 2
            }
        }
    }
