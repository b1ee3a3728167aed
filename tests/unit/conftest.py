import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

from recovery_service.adapter.notifications.email_channel import EmailChannel, MockEmailTransport
from recovery_service.adapter.notifications.sms_channel import MockSmsTransport, SmsChannel
from recovery_service.adapter.repositories.memory_credential_store import InMemoryCredentialStore
from recovery_service.adapter.repositories.sql_credential_store import SqlCredentialStore
from recovery_service.app.services.notification import NotificationDispatcher
from recovery_service.app.services.password_hasher import PasswordHasher
from recovery_service.domain.entities import DeliveryChannel
from tests.utils.clock import FakeClock

RESET_BASE_URL = "https://app.peakmode.test"


@pytest.fixture
def mock_store():
    """Mock credential store with every method async"""
    store = MagicMock()
    store.backend = "mock"
    store.find_by_email = AsyncMock(return_value=None)
    store.find_by_id = AsyncMock(return_value=None)
    store.find_by_phone = AsyncMock(return_value=None)
    store.find_by_username = AsyncMock(return_value=None)
    store.create = AsyncMock()
    store.set_reset_token = AsyncMock()
    store.clear_reset_token = AsyncMock()
    store.update_password = AsyncMock()
    store.consume_reset_token = AsyncMock(return_value=True)
    store.clear_expired_reset_tokens = AsyncMock(return_value=0)
    return store


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def password_hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def email_transport():
    return MockEmailTransport()


@pytest.fixture
def sms_transport():
    return MockSmsTransport()


@pytest.fixture
def dispatcher(email_transport, sms_transport):
    return NotificationDispatcher(
        {
            DeliveryChannel.email: EmailChannel(email_transport),
            DeliveryChannel.sms: SmsChannel(sms_transport),
        },
        reset_link_base_url=RESET_BASE_URL,
    )


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, tmp_path):
    """Each credential store backend in turn; both must behave the same"""
    if request.param == "memory":
        yield InMemoryCredentialStore()
        return

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'credentials.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield SqlCredentialStore(engine)
    await engine.dispose()
