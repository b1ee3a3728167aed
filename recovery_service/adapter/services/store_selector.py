"""
Credential store selection.

Runs once at process start. Whichever store is chosen stays in place for the
lifetime of the process; a durable store that drops later surfaces
StoreUnavailableError instead of failing over.
"""

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel

from recovery_service.adapter.repositories.memory_credential_store import (
    InMemoryCredentialStore,
)
from recovery_service.adapter.repositories.sql_credential_store import SqlCredentialStore
from recovery_service.app.repositories.credential_store import ICredentialStore

logger = logging.getLogger(__name__)


async def ping_durable_store(engine: AsyncEngine) -> bool:
    """Check the durable store is reachable and make sure its schema exists"""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(SQLModel.metadata.create_all)
    except (SQLAlchemyError, OSError) as exc:
        logger.warning(f"Durable credential store unreachable: {exc}")
        return False
    return True


async def select_credential_store(
    engine: AsyncEngine, seed_fallback_user: bool = True
) -> ICredentialStore:
    if await ping_durable_store(engine):
        logger.info(f"Credential store: durable SQL backend ({engine.url.render_as_string()})")
        return SqlCredentialStore(engine)

    logger.warning(
        "Credential store: falling back to in-memory backend, "
        "data will not survive a restart"
    )
    if seed_fallback_user:
        return InMemoryCredentialStore.seeded()
    return InMemoryCredentialStore()
