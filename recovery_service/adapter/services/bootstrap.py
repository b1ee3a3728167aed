"""
Process-start wiring of the recovery pipeline.

Everything here is built once and shared by all requests; nothing is kept in
module-level globals.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from recovery_service.adapter.notifications.factory import build_notification_dispatcher
from recovery_service.adapter.services.store_selector import select_credential_store
from recovery_service.app.repositories.credential_store import ICredentialStore
from recovery_service.app.services.notification import NotificationDispatcher
from recovery_service.app.services.password_hasher import PasswordHasher
from recovery_service.app.services.token_service import TokenService

logger = logging.getLogger(__name__)


@dataclass
class RecoveryServices:
    store: ICredentialStore
    token_service: TokenService
    dispatcher: NotificationDispatcher
    password_hasher: PasswordHasher = field(default_factory=PasswordHasher)
    engine: Optional[AsyncEngine] = None

    async def aclose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


async def build_recovery_services(config) -> RecoveryServices:
    engine = create_async_engine(config.DB_URI, echo=False, future=True)
    store = await select_credential_store(engine, bool(config.SEED_FALLBACK_USER))
    if store.backend != "sql":
        await engine.dispose()
        engine = None

    dispatcher = build_notification_dispatcher(config)
    token_service = TokenService(store, ttl=timedelta(minutes=int(config.RESET_TOKEN_TTL_MINUTES)))

    logger.info(
        f"Recovery pipeline ready: store={store.backend} "
        f"transports={dispatcher.transport_names()}"
    )
    return RecoveryServices(
        store=store,
        token_service=token_service,
        dispatcher=dispatcher,
        engine=engine,
    )
