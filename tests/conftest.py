# tests/conftest.py

import os

# 설정 로드 전에 테스트용 환경변수 지정 (in-memory SQLite)
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-service-role-key"
os.environ["SPOKE_WEBHOOK_SECRET"] = ""
os.environ["LOCAL_TIMEZONE"] = "America/Sao_Paulo"

from contextlib import ExitStack
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from common.auth.jwt_handler import create_access_token
from common.database.base_postgres import PostgresBase
from common.database.postgres_shop import get_shop_db
from gateway.main import app
from services.order.models.shop_order_model import Order
from services.user.models.profile_model import ADMIN_ROLE, Profile

CUSTOMER_ID = "11111111-1111-1111-1111-111111111111"
ADMIN_ID = "22222222-2222-2222-2222-222222222222"
SERVICE_ROLE_KEY = "test-service-role-key"

# 라우터 모듈마다 import 해 둔 이름을 교체해야 함
DISPATCH_TARGETS = [
    "services.order.routers.checkout_router.dispatch_event_in_background",
    "services.order.routers.order_status_router.dispatch_event_in_background",
    "services.delivery.routers.spoke_router.dispatch_event_in_background",
    "services.payment.routers.mercadopago_router.dispatch_event_in_background",
]

# ------------------------------ Fixtures ------------------------------

@pytest_asyncio.fixture(name="session_factory")
async def session_factory_fixture():
    """테이블을 만든 in-memory DB 세션 팩토리 (테스트마다 새로 생성)"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(PostgresBase.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(name="db")
async def db_fixture(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(name="client")
async def client_fixture(session_factory):
    """get_shop_db 를 테스트 DB로 교체한 API 클라이언트"""
    async def override_get_shop_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_shop_db] = override_get_shop_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_shop_db, None)


@pytest.fixture(name="dispatched_events", autouse=True)
def dispatched_events_fixture():
    """외부 웹훅 전송을 막고 발행된 이벤트를 기록"""
    mock_dispatch = MagicMock()
    with ExitStack() as stack:
        for target in DISPATCH_TARGETS:
            stack.enter_context(patch(target, mock_dispatch))
        yield mock_dispatch


@pytest_asyncio.fixture(name="profiles")
async def profiles_fixture(db):
    db.add_all([
        Profile(id=CUSTOMER_ID, first_name="Ana", last_name="Souza", email="ana@example.com",
                cpf_cnpj="123.456.789-00", role="user", points=120),
        Profile(id=ADMIN_ID, first_name="Admin", last_name="Loja", email="adm@example.com",
                role=ADMIN_ROLE, points=0),
    ])
    await db.commit()

# -------------------------- Helper Functions --------------------------

def bearer(user_id: str) -> dict:
    """Supabase 형식 액세스 토큰 헤더"""
    token = create_access_token({"sub": user_id, "email": f"{user_id[:4]}@example.com", "role": "authenticated"})
    return {"Authorization": f"Bearer {token}"}


def integration_headers(token: str = SERVICE_ROLE_KEY) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def add_order(db, user_id: str = CUSTOMER_ID, **fields) -> Order:
    fields.setdefault("status", "Aguardando Pagamento")
    fields.setdefault("total_price", 100)
    fields.setdefault("created_at", datetime.now(timezone.utc))
    order = Order(user_id=user_id, **fields)
    db.add(order)
    await db.commit()
    return order


async def fetch_order(session_factory, order_id: int) -> Order:
    """다른 세션으로 다시 읽은 주문 (커밋된 상태 확인용)"""
    async with session_factory() as session:
        return await session.get(Order, order_id)


def fake_session(*results, dialect: str = "postgresql") -> MagicMock:
    """
    execute() 호출마다 주어진 행 목록을 돌려주는 가짜 세션 (Postgres 전용 SQL 검증용)
    """
    session = MagicMock()
    session.get_bind.return_value.dialect.name = dialect
    executed = []
    for rows in results:
        result = MagicMock()
        result.mappings.return_value.first.return_value = rows[0] if rows else None
        result.mappings.return_value.all.return_value = rows
        executed.append(result)
    session.execute = AsyncMock(side_effect=executed)
    return session
