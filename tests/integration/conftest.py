import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

from recovery_service.adapter.notifications.email_channel import EmailChannel, MockEmailTransport
from recovery_service.adapter.notifications.sms_channel import MockSmsTransport, SmsChannel
from recovery_service.adapter.repositories.sql_credential_store import SqlCredentialStore
from recovery_service.adapter.services.bootstrap import RecoveryServices
from recovery_service.app.services.notification import NotificationDispatcher
from recovery_service.app.services.password_hasher import PasswordHasher
from recovery_service.app.services.token_service import TokenService
from recovery_service.depends import get_recovery_services
from recovery_service.domain.entities import DeliveryChannel
from tests.utils.clock import FakeClock
from tests.utils.config import TestConfig


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def email_transport():
    return MockEmailTransport()


@pytest.fixture
def sms_transport():
    return MockSmsTransport()


@pytest.fixture
def services(engine, clock, email_transport, sms_transport):
    store = SqlCredentialStore(engine)
    dispatcher = NotificationDispatcher(
        {
            DeliveryChannel.email: EmailChannel(email_transport),
            DeliveryChannel.sms: SmsChannel(sms_transport),
        },
        reset_link_base_url=TestConfig.RESET_LINK_BASE_URL,
    )
    return RecoveryServices(
        store=store,
        token_service=TokenService(store, clock=clock),
        dispatcher=dispatcher,
        password_hasher=PasswordHasher(rounds=4),
    )


@pytest_asyncio.fixture
async def client(services):
    from recovery_service.api.app import create_app

    app = create_app(TestConfig)

    async def override_get_recovery_services():
        return services

    app.dependency_overrides[get_recovery_services] = override_get_recovery_services

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
