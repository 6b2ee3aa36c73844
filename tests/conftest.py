"""
Pytest configuration and fixtures.
"""
from typing import Any, AsyncGenerator, Callable, Dict, List

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from netsqr.config import settings
from netsqr.db.init_db import create_tables
from netsqr.main import app
from netsqr.services.gateway_client import GatewayClient, get_gateway_client
from netsqr.services.transaction_store import TransactionStore, get_transaction_store

TEST_CLIENT_ID = "test-client-id"
TEST_CLIENT_SECRET = "test-client-secret"
TEST_TXN_IDENTIFIER = (
    "00020101021226450009SG.NETS.QR01019990000004020611137066800"
    "0308370668010902Y15204000053037025802SG5914NETS QR TEST6009Singapore"
)


def order_response_payload(
    txn_identifier: str = TEST_TXN_IDENTIFIER,
    response_code: str = "00",
) -> Dict[str, Any]:
    """Order response as the NETS UAT gateway returns it."""
    return {
        "mti": "0210",
        "process_code": "990000",
        "amount": "000000000100",
        "stan": "100001",
        "transaction_time": "143500",
        "transaction_date": "1017",
        "entry_mode": "000",
        "condition_code": "85",
        "institution_code": "20000000001",
        "response_code": response_code,
        "host_tid": "37066801",
        "txn_identifier": txn_identifier,
        "npx_data": {"E103": "37066801", "E201": "00000123", "E202": "SGD"},
        "qr_code": "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg==",
    }


def query_response_payload(
    txn_identifier: str = TEST_TXN_IDENTIFIER,
    response_code: str = "00",
) -> Dict[str, Any]:
    """Transaction query response as NETS posts it to the callback URL."""
    return {
        "mti": "0110",
        "process_code": "330000",
        "stan": "100001",
        "transaction_time": "143612",
        "transaction_date": "1017",
        "entry_mode": "000",
        "condition_code": "85",
        "institution_code": "20000000001",
        "response_code": response_code,
        "host_tid": "37066801",
        "txn_identifier": txn_identifier,
        "npx_data": {"E103": "37066801", "F217": "01"},
    }


@pytest.fixture(autouse=True)
def nets_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Configure NETS credentials for every test."""
    monkeypatch.setattr(settings, "nets_client_id", TEST_CLIENT_ID)
    monkeypatch.setattr(settings, "nets_client_secret", TEST_CLIENT_SECRET)
    monkeypatch.setattr(settings, "nets_callback_url", "https://merchant.test/api/nets/callback")


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, Any]:
    """In-memory database shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def store(engine: AsyncEngine) -> TransactionStore:
    """Transaction store on the test database."""
    return TransactionStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))


@pytest.fixture
def gateway_requests() -> List[httpx.Request]:
    """Requests received by the fake gateway."""
    return []


@pytest.fixture
def gateway_handler() -> Dict[str, Callable[[httpx.Request], httpx.Response]]:
    """Mutable slot holding the fake gateway's response function."""
    return {"respond": lambda request: httpx.Response(200, json=order_response_payload())}


@pytest.fixture
def gateway(
    gateway_requests: List[httpx.Request],
    gateway_handler: Dict[str, Callable[[httpx.Request], httpx.Response]],
) -> GatewayClient:
    """Gateway client talking to an in-process fake NETS gateway."""

    def handler(request: httpx.Request) -> httpx.Response:
        gateway_requests.append(request)
        return gateway_handler["respond"](request)

    return GatewayClient("https://nets.test/uat/v1", transport=httpx.MockTransport(handler))


@pytest_asyncio.fixture
async def client(
    store: TransactionStore,
    gateway: GatewayClient,
) -> AsyncGenerator[httpx.AsyncClient, Any]:
    """HTTP client for the FastAPI app with test store and gateway."""
    app.dependency_overrides[get_transaction_store] = lambda: store
    app.dependency_overrides[get_gateway_client] = lambda: gateway
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
