import os
import random
from typing import Callable, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Keep the app module from touching an on-disk database at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from bracket_engine.database import get_session  # noqa: E402
from bracket_engine.main import app  # noqa: E402
from bracket_engine.models.participant import Participant  # noqa: E402
from bracket_engine.models.tournament import Tournament, TournamentStatus  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables dropped after each test so every test starts empty
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    # Import all models to ensure they're registered BEFORE create_all
    from bracket_engine.models.match import Match  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the entire
    duration, so the app never touches its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


class FixedOrder:
    """Stand-in for random.Random whose shuffle applies a known permutation."""

    def __init__(self, order: List[int]):
        self.order = order

    def shuffle(self, seq: list) -> None:
        seq[:] = [seq[i] for i in self.order]


@pytest.fixture
def make_tournament(session: Session) -> Callable[..., Tournament]:
    """Create a tournament with `players` registered participants (P1..Pn)."""

    def _make(format: str = "knockout", players: int = 8, max_participants: int = 64) -> Tournament:
        tournament = Tournament(
            name=f"{format.title()} Cup",
            format=format,
            status=TournamentStatus.upcoming.value,
            max_participants=max_participants,
        )
        session.add(tournament)
        session.commit()
        session.refresh(tournament)

        for i in range(1, players + 1):
            session.add(Participant(tournament_id=tournament.id, name=f"P{i}"))
        session.commit()
        return tournament

    return _make


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def fixed_order():
    """Factory for FixedOrder shufflers: fixed_order([1, 3, 0, 2])."""
    return FixedOrder
