"""Shared test fixtures."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from solders.keypair import Keypair  # type: ignore[import-untyped]
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from config.settings import settings
from src.curve.constants import LAMPORTS_PER_SOL
from src.db.database import create_tables
from src.launch.collaborators import InMemoryVaults, InMemoryVenue, ManualClock
from src.launch.config import ProtocolConfig
from src.launch.metadata import LaunchMetadata
from src.launchpad import Launchpad


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh engine+session per test.

    In-memory SQLite lives only as long as its connection, so it gets a
    StaticPool; anything else gets NullPool to avoid cross-loop connections.
    Persistence functions use flush() only, rollback cleans up at the end.
    """
    url = settings.test_database_url
    if ":memory:" in url:
        engine = create_async_engine(url, echo=False, poolclass=StaticPool)
    else:
        engine = create_async_engine(url, echo=False, poolclass=NullPool)
    await create_tables(engine)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()

    await engine.dispose()


def new_address() -> str:
    return str(Keypair().pubkey())


@pytest.fixture
def make_address():
    return new_address


@pytest.fixture
def admin() -> str:
    return new_address()


@pytest.fixture
def creator() -> str:
    return new_address()


@pytest.fixture
def metadata() -> LaunchMetadata:
    return LaunchMetadata.create("Test Token", "TEST", "https://example.com/test.json")


@pytest.fixture
def protocol_config(admin) -> ProtocolConfig:
    return ProtocolConfig.initialize(admin, settings)


@pytest.fixture
def vaults(creator) -> InMemoryVaults:
    v = InMemoryVaults()
    v.airdrop(creator, LAMPORTS_PER_SOL)
    return v


@pytest.fixture
def venue() -> InMemoryVenue:
    return InMemoryVenue(settings.venue_program_id)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=1_700_000_000)


@pytest.fixture
def launchpad(protocol_config, vaults, venue, clock) -> Launchpad:
    return Launchpad(
        protocol_config,
        program_id=settings.launchpad_program_id,
        vaults=vaults,
        venue=venue,
        clock=clock,
    )
