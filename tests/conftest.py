"""Pytest configuration and shared fixtures for all tests."""

import os

# Minimal environment for Settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RPC_URL", "https://mainnet.skalenodes.com/v1/elated-tan-skat")
os.environ.setdefault(
    "OPERATOR_PRIVATE_KEY",
    "0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef",
)
os.environ.setdefault("STABLE_TOKEN_ADDRESS", "0x" + "5a" * 20)
os.environ.setdefault("TREASURY_ADDRESS", "0x" + "7a" * 20)
os.environ.setdefault("SWAP_ROUTER_ADDRESS", "0x" + "3c" * 20)
os.environ.setdefault("FACTORY_ADDRESS", "0x" + "3d" * 20)

import pytest
import pytest_asyncio

from tests.fakes import (
    ADMIN,
    STABLE,
    TEST_HARD_CAP,
    TREASURY,
    FakeCustody,
    FakeSwapExecutor,
    FakeVenueProvider,
)
from tokensale.database import create_engine, create_session_factory, init_models
from tokensale.services.exchange.exchanger import Exchanger
from tokensale.services.exchange.route_selector import RouteSelector
from tokensale.services.sale.authorization import allowlist_authorizer
from tokensale.services.sale.controller import SaleController


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with all tables."""
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    """Session factory bound to the test engine."""
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    """Database session; uncommitted work is discarded."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def venue_provider():
    """Fake venue provider."""
    return FakeVenueProvider()


@pytest.fixture
def custody():
    """Fake custody with balances."""
    return FakeCustody()


@pytest.fixture
def swap_executor(custody):
    """Fake swap executor paying 2 stable units per input unit."""
    return FakeSwapExecutor(custody, rate=2)


@pytest.fixture
def exchanger(venue_provider, swap_executor):
    """Exchanger over the fake venues."""
    return Exchanger(RouteSelector(venue_provider), swap_executor, STABLE)


@pytest_asyncio.fixture
async def controller(session_factory, exchanger, custody):
    """Sale controller over fakes, ADMIN is the only admin."""
    controller = SaleController(
        session_factory=session_factory,
        exchanger=exchanger,
        custody=custody,
        stable_token=STABLE,
        treasury=TREASURY,
        authorizer=allowlist_authorizer([ADMIN]),
        default_hard_cap=TEST_HARD_CAP,
        default_level1_rate=1000,
        default_level2_rate=300,
    )
    await controller.initialize()
    return controller


@pytest.fixture
def sample_transaction_hash():
    """Sample transaction hash for testing."""
    return "0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef"
