from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import GatewayUnavailable
from libs.db.base import Base
from libs.db.session import get_async_db
from services.gateway_service.app.main import app
from services.payments_service.sslcommerz_client import (
    GatewaySessionCreated,
    GatewayValidation,
    get_gateway_client,
)

# Import all models so metadata includes every table
from services.donations_service import models as _donation_models  # noqa: F401
from services.members_service import models as _member_models  # noqa: F401
from services.users_service import models as _user_models  # noqa: F401


class FakeGatewayClient:
    """
    In-memory stand-in for SSLCommerzClient.

    Opens a session for every request unless ``init_result`` / ``init_error``
    say otherwise, and validates ``val_id``s registered through ``settle``.
    """

    def __init__(self):
        self.init_result = None
        self.init_error: Optional[Exception] = None
        self.validation_error: Optional[Exception] = None
        self.session_requests = []
        self.validated = []
        self._validations = {}

    async def initiate_session(self, request):
        self.session_requests.append(request)
        if self.init_error:
            raise self.init_error
        if self.init_result is not None:
            return self.init_result
        return GatewaySessionCreated(
            redirect_url=f"https://gw.test/pay/{request.transaction_id}",
            session_key=f"session-{request.transaction_id}",
            raw={"status": "SUCCESS", "GatewayPageURL": "https://gw.test/pay"},
        )

    def settle(self, val_id, transaction_id, amount, status="VALID"):
        """Register what the validation API reports for ``val_id``."""
        self._validations[val_id] = GatewayValidation(
            status=status,
            transaction_id=transaction_id,
            amount=amount,
            currency="BDT",
            val_id=val_id,
            raw={
                "status": status,
                "tran_id": transaction_id,
                "amount": str(amount),
                "val_id": val_id,
            },
        )

    async def validate_transaction(self, val_id):
        self.validated.append(val_id)
        if self.validation_error:
            raise self.validation_error
        if val_id not in self._validations:
            return GatewayValidation(
                status="INVALID_TRANSACTION",
                transaction_id=None,
                amount=None,
                currency=None,
                val_id=val_id,
                raw={"status": "INVALID_TRANSACTION"},
            )
        return self._validations[val_id]

    @property
    def last_transaction_id(self) -> str:
        return self.session_requests[-1].transaction_id


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps a single connection so every session sees the same data.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway() -> FakeGatewayClient:
    return FakeGatewayClient()


@pytest.fixture
def unavailable_gateway(gateway) -> FakeGatewayClient:
    gateway.init_error = GatewayUnavailable("Payment gateway is unreachable")
    gateway.validation_error = GatewayUnavailable("Payment gateway is unreachable")
    return gateway


@pytest.fixture
def admin_user() -> AuthUser:
    return AuthUser(sub="admin-1", email="admin@example.com", role="admin")


@pytest.fixture
def donor_user() -> AuthUser:
    return AuthUser(sub="donor-1", email="donor@example.com", phone="01712345678", role="donors")


@pytest.fixture
def settings():
    """The cached settings object; tests may monkeypatch its attributes."""
    return get_settings()


@pytest_asyncio.fixture
async def client(db_session, gateway, admin_user) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient against the API with DB, gateway and auth overridden.

    Authenticated requests run as ``admin_user`` unless a test overrides
    ``get_current_user`` again.
    """

    async def _get_db():
        yield db_session

    app.dependency_overrides[get_async_db] = _get_db
    app.dependency_overrides[get_gateway_client] = lambda: gateway
    app.dependency_overrides[get_current_user] = lambda: admin_user

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def api_prefix() -> str:
    return get_settings().API_PREFIX
