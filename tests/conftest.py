from typing import AsyncGenerator, Awaitable, Callable, List, Optional, Sequence
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from seccheck.core.cache import CacheService
from seccheck.core.database import get_db
from seccheck.core.rate_limit import limiter
from seccheck.dependencies import get_redis_client
from seccheck.main import app
from seccheck.models import Base, Lead, LeadAnswer
from seccheck.repositories import (
    AnswerRepository,
    LeadRepository,
    SchemaRepository,
    ScoreRepository,
)
from seccheck.services.lead_intake_service import LeadIntakeService
from seccheck.services.lead_query_service import LeadQueryService
from seccheck.services.lead_status_service import LeadStatusService

SessionFactory = async_sessionmaker

# Older deployments: renamed columns plus NOT NULL columns without defaults
# (one of them a blob) and score columns under their legacy names.
LEGACY_DDL = [
    """
    CREATE TABLE leads (
        id TEXT PRIMARY KEY,
        createdAt TEXT NOT NULL,
        lang TEXT,
        firma TEXT NOT NULL,
        ansprechpartner TEXT NOT NULL,
        email_address TEXT NOT NULL,
        telefon TEXT,
        mitarbeiteranzahl TEXT,
        discount INTEGER,
        status TEXT NOT NULL DEFAULT 'new',
        completed_at TEXT,
        region TEXT NOT NULL,
        seats INTEGER NOT NULL,
        logo BLOB NOT NULL
    )
    """,
    """
    CREATE TABLE lead_answers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lead_id TEXT NOT NULL,
        question_key TEXT NOT NULL CHECK (question_key <> 'rejected_key'),
        answer_value TEXT,
        score_value REAL NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE lead_scores (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lead_id TEXT NOT NULL,
        vpn_score REAL,
        web_score REAL,
        awareness_score REAL,
        percent INTEGER,
        rating TEXT
    )
    """,
]

# Only the required minimum of lead columns
MINIMAL_DDL = [
    """
    CREATE TABLE leads (
        id TEXT PRIMARY KEY,
        created_at TEXT NOT NULL,
        company_name TEXT NOT NULL,
        contact_name TEXT NOT NULL,
        email TEXT NOT NULL
    )
    """,
]


@pytest_asyncio.fixture
async def db_factory(tmp_path) -> AsyncGenerator[Callable[..., Awaitable[SessionFactory]], None]:
    """Build throwaway SQLite databases in *tmp_path*.

    ``await db_factory()`` creates the canonical schema,
    ``tables=[...]`` a subset of it and ``ddl=[...]`` an arbitrary one.
    """
    engines = []

    async def build(
        tables: Optional[Sequence] = None, ddl: Optional[List[str]] = None
    ) -> SessionFactory:
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / f'seccheck_{len(engines)}.db'}"
        )
        engines.append(engine)
        async with engine.begin() as conn:
            if ddl is not None:
                for statement in ddl:
                    await conn.execute(text(statement))
            else:
                await conn.run_sync(Base.metadata.create_all, tables=tables)
        return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    yield build

    for engine in engines:
        await engine.dispose()


async def _session(factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def full_db(db_factory) -> SessionFactory:
    return await db_factory()


@pytest_asyncio.fixture
async def full_session(full_db) -> AsyncGenerator[AsyncSession, None]:
    """Canonical schema: leads, lead_answers and lead_scores."""
    async for session in _session(full_db):
        yield session


@pytest_asyncio.fixture
async def no_scores_session(db_factory) -> AsyncGenerator[AsyncSession, None]:
    """Deployment without a lead_scores table."""
    factory = await db_factory(tables=[Lead.__table__, LeadAnswer.__table__])
    async for session in _session(factory):
        yield session


@pytest_asyncio.fixture
async def leads_only_session(db_factory) -> AsyncGenerator[AsyncSession, None]:
    """Deployment with neither answers nor scores tables."""
    factory = await db_factory(tables=[Lead.__table__])
    async for session in _session(factory):
        yield session


@pytest_asyncio.fixture
async def legacy_session(db_factory) -> AsyncGenerator[AsyncSession, None]:
    factory = await db_factory(ddl=LEGACY_DDL)
    async for session in _session(factory):
        yield session


@pytest_asyncio.fixture
async def minimal_session(db_factory) -> AsyncGenerator[AsyncSession, None]:
    factory = await db_factory(ddl=MINIMAL_DDL)
    async for session in _session(factory):
        yield session


@pytest_asyncio.fixture
async def empty_session(db_factory) -> AsyncGenerator[AsyncSession, None]:
    """A database with no tables at all."""
    factory = await db_factory(ddl=[])
    async for session in _session(factory):
        yield session


class Repos:
    """The three capability-aware repositories sharing one introspector."""

    def __init__(self, session: AsyncSession) -> None:
        self.schema = SchemaRepository(session)
        self.leads = LeadRepository(session, schema=self.schema)
        self.answers = AnswerRepository(session, schema=self.schema)
        self.scores = ScoreRepository(session, schema=self.schema)

    def intake(self) -> LeadIntakeService:
        return LeadIntakeService(self.leads, self.answers, self.scores)

    def query(self) -> LeadQueryService:
        return LeadQueryService(self.leads, self.answers, self.scores)

    def status(self) -> LeadStatusService:
        return LeadStatusService(self.leads)


@pytest.fixture
def repos() -> Callable[[AsyncSession], Repos]:
    return Repos


@pytest.fixture
def contact() -> dict:
    """Valid contact data for a submission."""
    return {
        "company_name": "Muster GmbH",
        "contact_name": "Erika Muster",
        "email": "erika@muster.example.com",
        "phone": "+49 30 123456",
        "employee_range": "50_249",
        "consent_contact": True,
        "consent_tracking": False,
        "discount_opt_in": True,
    }


@pytest.fixture
def strong_answers() -> dict:
    """Answers that score in the ``low`` risk band."""
    return {
        "vpn_in_use": "yes",
        "vpn_technology": "wireguard",
        "vpn_solution": "zero_trust",
        "remote_access_satisfaction": "satisfied",
        "vpn_users": "less_than_10",
        "hosting_type": "cloud",
        "web_protection": "waf_ddos",
        "awareness_training": "yes",
        "infrastructure_resilience": "high",
        "financial_damage_risk": "less_than_5k",
    }


@pytest.fixture
def weak_answers() -> dict:
    """Answers that score in the ``high`` risk band."""
    return {
        "vpn_in_use": "no",
        "hosting_type": "on_premise",
        "web_protection": "none",
        "critical_processes_on_website": "yes",
        "security_incidents": "yes",
        "awareness_training": "no",
    }


@pytest_asyncio.fixture
async def async_client(full_db) -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the app and a canonical SQLite db."""

    async def override_get_db():
        async with full_db() as session:
            yield session

    async def override_get_redis_client():
        return None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_client] = override_get_redis_client
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Return an ``AsyncMock`` that behaves like ``redis.asyncio.Redis``."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.setex = AsyncMock()
    redis.delete = AsyncMock()
    redis.ping = AsyncMock()
    return redis


@pytest.fixture
def mock_cache(mock_redis) -> CacheService:
    """Return a ``CacheService`` backed by the mock Redis client."""
    return CacheService(redis_client=mock_redis)


@pytest_asyncio.fixture(params=["canonical", "legacy"])
async def dated_session(request, db_factory) -> AsyncGenerator[AsyncSession, None]:
    """Canonical (DATETIME) and legacy (ISO text) creation timestamps."""
    if request.param == "legacy":
        factory = await db_factory(ddl=LEGACY_DDL)
    else:
        factory = await db_factory()
    async for session in _session(factory):
        yield session
