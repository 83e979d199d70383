import os

# Settings are read at import time; pin a test environment before launchpad loads.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-launchpad-suite-0123456789")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from launchpad.main import app  # noqa: E402
from launchpad.core.clock import get_clock  # noqa: E402
from launchpad.core.database import Base, get_db  # noqa: E402
from launchpad.core.limiter import limiter  # noqa: E402

# In-memory SQLite; StaticPool ensures one shared DB across all connections
SQLALCHEMY_DATABASE_URL = "sqlite://"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Unix time every test starts at; well past one hour so the creator's first
# trade sees the full hourly allowance.
START_TIME = 1_700_000_000


class FakeClock:
    """Settable trade clock."""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def override_get_db():
    database = TestingSessionLocal()
    try:
        yield database
    finally:
        database.close()


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Disable the HTTP rate limiter for all tests so rapid requests don't return 429."""
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def other_db(db):
    """A second session on the same database, for interleaved transactions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(clock):
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)
