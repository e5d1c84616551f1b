"""Shared fixtures: an in-memory SQLite store per test."""

from datetime import datetime, timedelta, timezone

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pki.domain.models import Certificate
from shared.database import init_models

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def sqlite_engine():
    """Single shared connection so every session sees the same in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(sqlite_engine):
    return async_sessionmaker(
        bind=sqlite_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


def make_certificate(
    user_id: str = "u1",
    email: str = "u1@x.com",
    serial_number: str = "00" * 16,
    valid_from: datetime | None = None,
    validity: timedelta = timedelta(days=365),
    public_key: str = "-----BEGIN PUBLIC KEY-----\ntest\n-----END PUBLIC KEY-----\n",
    signature: str = "ab" * 32,
    created_at: datetime | None = None,
) -> Certificate:
    """Build an unsaved Certificate with sensible defaults."""
    valid_from = valid_from or datetime.now(timezone.utc)
    cert = Certificate(
        serial_number=serial_number,
        user_id=user_id,
        email=email,
        public_key=public_key,
        issuer="COO Certifying Authority",
        valid_from=valid_from,
        valid_to=valid_from + validity,
        signature=signature,
    )
    if created_at is not None:
        cert.created_at = created_at
    return cert
