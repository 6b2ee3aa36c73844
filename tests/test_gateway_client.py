"""
Tests for the NETS gateway client.
"""
import json
from typing import List

import httpx
import pytest

from netsqr.exceptions import GatewayError
from netsqr.services.gateway_client import GatewayClient

from conftest import TEST_TXN_IDENTIFIER, order_response_payload

BODY = b'{"mti":"0200","process_code":"990000","amount":"000000000100"}'


def _client(handler) -> GatewayClient:
    return GatewayClient("https://nets.test/uat/v1/", transport=httpx.MockTransport(handler))


class TestPlaceOrder:
    """Successful order placement."""

    @pytest.mark.asyncio
    async def test_posts_signed_body_with_headers(self) -> None:
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=order_response_payload())

        await _client(handler).place_order(BODY, "c2lnbmF0dXJl", "client-123")

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://nets.test/uat/v1/order/request"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Sign"] == "c2lnbmF0dXJl"
        assert request.headers["KeyId"] == "client-123"
        assert request.content == BODY

    @pytest.mark.asyncio
    async def test_parses_order_response(self) -> None:
        response = await _client(
            lambda request: httpx.Response(200, json=order_response_payload())
        ).place_order(BODY, "sig", "client-123")

        assert response.response_code == "00"
        assert response.txn_identifier == TEST_TXN_IDENTIFIER
        assert response.qr_code.startswith("iVBORw0KGgo")
        assert response.npx_data["E202"] == "SGD"

    @pytest.mark.asyncio
    async def test_keeps_unknown_response_fields(self) -> None:
        payload = {**order_response_payload(), "new_field": "value"}
        response = await _client(
            lambda request: httpx.Response(200, json=payload)
        ).place_order(BODY, "sig", "client-123")

        assert response.model_dump()["new_field"] == "value"

    @pytest.mark.asyncio
    async def test_non_approved_response_code_is_not_an_error(self) -> None:
        response = await _client(
            lambda request: httpx.Response(200, json=order_response_payload(response_code="05"))
        ).place_order(BODY, "sig", "client-123")

        assert response.response_code == "05"

    @pytest.mark.asyncio
    async def test_nested_npx_tag_accepted(self) -> None:
        payload = order_response_payload()
        payload["npx_data"]["F201"] = [{"currency": "SGD", "amount": "1.00"}]

        response = await _client(
            lambda request: httpx.Response(200, json=payload)
        ).place_order(BODY, "sig", "client-123")

        assert response.txn_identifier == TEST_TXN_IDENTIFIER
        assert response.npx_data["F201"] == [{"currency": "SGD", "amount": "1.00"}]


class TestPlaceOrderFailures:
    """Every failure surfaces as GatewayError, after exactly one attempt."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 401, 404, 500, 503])
    async def test_non_2xx_status(self, status_code: int) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(status_code, json={"error": "nope"})

        with pytest.raises(GatewayError) as exc_info:
            await _client(handler).place_order(BODY, "sig", "client-123")

        assert exc_info.value.details["status_code"] == status_code
        assert exc_info.value.error_code == "nets:gateway:error"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_body_not_json(self) -> None:
        with pytest.raises(GatewayError):
            await _client(
                lambda request: httpx.Response(200, text="<html>maintenance</html>")
            ).place_order(BODY, "sig", "client-123")

    @pytest.mark.asyncio
    async def test_missing_txn_identifier(self) -> None:
        payload = order_response_payload()
        del payload["txn_identifier"]

        with pytest.raises(GatewayError):
            await _client(
                lambda request: httpx.Response(200, json=payload)
            ).place_order(BODY, "sig", "client-123")

    @pytest.mark.asyncio
    async def test_txn_identifier_too_long(self) -> None:
        payload = order_response_payload(txn_identifier="X" * 171)

        with pytest.raises(GatewayError):
            await _client(
                lambda request: httpx.Response(200, json=payload)
            ).place_order(BODY, "sig", "client-123")

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GatewayError) as exc_info:
            await _client(handler).place_order(BODY, "sig", "client-123")

        assert exc_info.value.details["error_type"] == "ConnectError"

    @pytest.mark.asyncio
    async def test_error_details_are_json_serializable(self) -> None:
        with pytest.raises(GatewayError) as exc_info:
            await _client(
                lambda request: httpx.Response(200, json={"response_code": "00"})
            ).place_order(BODY, "sig", "client-123")

        json.dumps(exc_info.value.to_dict())
