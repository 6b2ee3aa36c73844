"""
NETS Gateway Client

Sends signed order requests to the NETS QR dynamic order API.

Single attempt per call: no retry, no backoff. Whoever calls place_order
owns the retry policy.
"""
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from ..config import settings
from ..exceptions import GatewayError
from ..models.transactions import OrderResponse

logger = logging.getLogger(__name__)


class GatewayClient:
    """
    HTTPS client for the NETS order endpoint.

    Args:
        base_url: Gateway base URL, without the /order/request suffix
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests plug a MockTransport here)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def place_order(self, body: bytes, signature: str, credential_id: str) -> OrderResponse:
        """
        POST an order request.

        Args:
            body: Exact serialized OrderRequest bytes that were signed
            signature: Sign header value for body
            credential_id: NETS client id, sent as KeyId

        Returns:
            Parsed OrderResponse

        Raises:
            GatewayError: Transport failure, non-2xx status, or unparsable body
        """
        url = f"{self.base_url}/order/request"
        headers = {
            "Content-Type": "application/json",
            "Sign": signature,
            "KeyId": credential_id,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, content=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"NETS order request failed: {e}")
            raise GatewayError(
                f"Gateway request failed: {e}",
                details={"url": url, "error_type": type(e).__name__}
            ) from e

        if not response.is_success:
            logger.warning(f"NETS order request returned HTTP {response.status_code}")
            raise GatewayError(
                f"HTTP error! status: {response.status_code}",
                details={"status_code": response.status_code, "body": response.text[:800]}
            )

        try:
            order_response = OrderResponse.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(f"Unparsable NETS order response: {e.error_count()} validation errors")
            raise GatewayError(
                "Gateway response is not a valid order response",
                details={"status_code": response.status_code, "errors": e.errors(include_url=False, include_context=False, include_input=False)}
            ) from e

        logger.info(
            f"NETS order placed: response_code={order_response.response_code}, "
            f"stan={order_response.stan}"
        )
        return order_response


# Global gateway client instance
_gateway_client: Optional[GatewayClient] = None


def get_gateway_client() -> GatewayClient:
    """
    Get or create global gateway client instance.

    Returns:
        GatewayClient singleton
    """
    global _gateway_client
    if _gateway_client is None:
        _gateway_client = GatewayClient(
            settings.nets_gateway_base_url,
            timeout=settings.gateway_timeout_seconds,
        )
    return _gateway_client
