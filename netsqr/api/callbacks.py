"""
NETS Callback Endpoint

NETS posts the transaction query response here. Every method is routed to
the handler so that non-POST requests get a 405 without touching the store.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import logging

from ..services.callback_handler import handle_callback
from ..services.transaction_store import TransactionStore, get_transaction_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.api_route("/callback", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def nets_callback_endpoint(
    request: Request,
    store: TransactionStore = Depends(get_transaction_store)
) -> JSONResponse:
    """
    Receive a NETS transaction query response.

    Responses:
        200 {"status": "SUCCESS"}
        202 {"status": "PENDING"}
        400 {"status": "FAILED"} or invalid payload
        404 unknown transaction
        405 method other than POST
    """
    body = await request.body()
    outcome = await handle_callback(store, request.method, body)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)
