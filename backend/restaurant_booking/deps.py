from typing import AsyncIterator

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import async_session
from .infrastructure.cache import LoggingCacheInvalidator
from .infrastructure.repositories import SqlAlchemyReservationRepository, SqlAlchemyTableCatalog
from .utils.auth import BearerTokenAuthProvider
from .utils.i18n import negotiate_locale

_bearer = HTTPBearer(auto_error=False)
_cache_invalidator = LoggingCacheInvalidator()


async def get_session() -> AsyncIterator[AsyncSession]:
    # Closing the session rolls back anything a rejected mutation left open.
    async with async_session() as session:
        yield session


async def get_auth_provider(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> BearerTokenAuthProvider:
    settings = get_settings()
    token = credentials.credentials if credentials is not None else None
    return BearerTokenAuthProvider(token, secret=settings.auth_secret, algorithms=[settings.auth_algorithm])


async def get_locale(accept_language: str | None = Header(default=None)) -> str:
    settings = get_settings()
    return negotiate_locale(accept_language, settings.supported_locales, default=settings.default_locale)


def get_cache_invalidator() -> LoggingCacheInvalidator:
    return _cache_invalidator


async def get_table_catalog(session: AsyncSession = Depends(get_session)) -> SqlAlchemyTableCatalog:
    return SqlAlchemyTableCatalog(session)


async def get_reservation_repo(
    session: AsyncSession = Depends(get_session),
) -> SqlAlchemyReservationRepository:
    return SqlAlchemyReservationRepository(session)
