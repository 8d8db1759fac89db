"""
Pytest configuration and fixtures

Every test gets its own in-memory SQLite database built from the models, so
nothing is shared between tests. API tests route the app's ``get_db``
dependency to the same session the test uses for setup and assertions.
"""
import os
import sys
from math import degrees

import pytest

# Settings are read at import time; configure them before any app import.
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production-0123456789")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_FORMAT", "text")

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from core.database import Base, build_engine, get_db  # noqa: E402
from core.security import create_access_token  # noqa: E402
from models import PhaseUnlock, Profile, Team, TeamMember  # noqa: E402
from services.geo import EARTH_RADIUS_MILES  # noqa: E402

# Downtown San Diego
ORIGIN_LAT = 32.7157
ORIGIN_LNG = -117.1611


def lat_north_of(lat: float, miles: float) -> float:
    """Latitude exactly ``miles`` north along the meridian."""
    return lat + degrees(miles / EARTH_RADIUS_MILES)


@pytest.fixture(scope="function")
def test_engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def file_engine(tmp_path):
    """A SQLite file database, for tests that need several connections at once."""
    engine = build_engine(f"sqlite:///{tmp_path / 'camino.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine):
    """A fresh session on an empty schema."""
    TestSession = sessionmaker(bind=test_engine, autoflush=False, expire_on_commit=False)
    session = TestSession()
    yield session
    session.close()


@pytest.fixture
def make_profile(db_session):
    """Factory for profiles. Phase 1 is unlocked unless ``onboard=False``."""
    counter = {"n": 0}

    def _make(name=None, lat=None, lng=None, role="pilgrim", onboard=True, **kwargs):
        counter["n"] += 1
        profile = Profile(
            name=name or f"Peregrino {counter['n']}",
            email=f"pilgrim{counter['n']}@example.com",
            latitude=lat,
            longitude=lng,
            role=role,
            **kwargs,
        )
        db_session.add(profile)
        db_session.flush()
        if onboard:
            db_session.add(PhaseUnlock(user_id=profile.id, phase_number=1))
        db_session.commit()
        return profile

    return _make


@pytest.fixture
def make_team(db_session):
    """Factory for a team led by ``leader`` with optional extra ``members``."""

    def _make(leader, members=(), max_members=None, name="Los Caminantes"):
        team = Team(name=name, created_by=leader.id, max_members=max_members)
        db_session.add(team)
        db_session.flush()
        db_session.add(TeamMember(team_id=team.id, user_id=leader.id, role="leader"))
        for m in members:
            db_session.add(TeamMember(team_id=team.id, user_id=m.id, role="member"))
        db_session.commit()
        return team

    return _make


@pytest.fixture
def client(db_session):
    from main import app

    def override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth_headers(profile) -> dict:
    token = create_access_token({"sub": str(profile.id)})
    return {"Authorization": f"Bearer {token}"}
