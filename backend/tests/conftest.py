"""
Pytest configuration and shared fixtures.

Provides an in-memory SQLite session per test, an httpx client bound to the
FastAPI app with get_db overridden, and order / actor fixtures.
"""
import pytest
from datetime import datetime
from typing import AsyncGenerator

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, get_db
from config import settings

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only"


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    import db_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client against the app with the test DB session injected.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ── Actor Fixtures ───────────────────────────────────────────────────


@pytest.fixture
def customer_id() -> str:
    return "cust_0001"


@pytest.fixture
def other_customer_id() -> str:
    return "cust_0002"


@pytest.fixture
def admin_id() -> str:
    return "admin_0001"


def auth_headers(actor_id: str, role: str) -> dict:
    """Authorization header with a valid JWT for the given actor."""
    from middleware.auth import issue_access_token

    token = issue_access_token(actor_id=actor_id, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers(customer_id) -> dict:
    return auth_headers(customer_id, "customer")


@pytest.fixture
def admin_headers(admin_id) -> dict:
    return auth_headers(admin_id, "admin")


# ── Order Fixtures ───────────────────────────────────────────────────


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 19, 12, 0, 0)


def order_payload(payment_method: str = "cod", **overrides) -> dict:
    """Checkout payload as the storefront sends it (camelCase aliases)."""
    payload = {
        "firstName": "Asha",
        "lastName": "Rao",
        "email": "asha@example.com",
        "phone": "+91 98450 00000",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "zipCode": "560001",
        "paymentMethod": payment_method,
        "subtotal": 500.0,
        "tax": 25.0,
        "shipping": 0.0,
        "total": 525.0,
        "items": [
            {"name": "Paneer Tikka", "price": 200.0, "imageUrl": "/img/paneer.jpg", "quantity": 1},
            {"name": "Butter Naan", "price": 50.0, "imageUrl": "/img/naan.jpg", "quantity": 6},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def sample_order(db_session: AsyncSession, customer_id: str):
    """A pending COD order owned by ``customer_id``."""
    from models import OrderCreateRequest
    from services import order_service

    order = await order_service.create_order(
        db_session,
        customer_id=customer_id,
        request=OrderCreateRequest(**order_payload()),
    )
    await db_session.commit()
    await db_session.refresh(order)
    return order


async def advance(db_session, order_id: int, *statuses: str, actor_id: str = "admin_0001", now=None):
    """Walk an order through admin transitions and commit."""
    from services import order_service

    order = None
    for status in statuses:
        order = await order_service.apply_transition(
            db_session,
            order_id=order_id,
            requested_status=status,
            actor_role="admin",
            actor_id=actor_id,
            now=now,
        )
        await db_session.commit()
    return order
