import os
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from perf_reviews.database import Base, get_db
from perf_reviews.main import app
from perf_reviews.models.review_cycle import ReviewCycle, CycleStatus
from perf_reviews.models.user import User, UserRole, EngineerLevel
from perf_reviews.routers.auth_deps import get_clock
from perf_reviews.schemas.actor import Actor
from fastapi.testclient import TestClient

NOW = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)


class FixedClock:
    """Deterministic clock; tests move it forward explicitly."""

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database per test; services commit and roll back freely."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture(scope="function")
def clock():
    return FixedClock(NOW)


def _seed_org(db_session):
    """
    Org chart used across tests:

    admin-1 (admin), hr-1 (hr)
    mgr-1 -> emp-1, emp-2, emp-3        (Engineering)
    mgr-2 -> emp-4, emp-5, emp-6        (Engineering)
    mgr-2 -> des-1                      (Design)
    """
    def make(user_id, roles, manager_id=None, department="Engineering", level=EngineerLevel.MID):
        return User(
            id=user_id,
            email=f"{user_id}@example.com",
            name=user_id.replace("-", " ").title(),
            roles=[r.value for r in roles],
            manager_id=manager_id,
            department=department,
            level=level,
        )

    people = [
        make("admin-1", [UserRole.ADMIN], department=None, level=None),
        make("hr-1", [UserRole.HR], department="People", level=None),
        make("mgr-1", [UserRole.MANAGER, UserRole.EMPLOYEE], level=EngineerLevel.MANAGER),
        make("mgr-2", [UserRole.MANAGER, UserRole.EMPLOYEE], level=EngineerLevel.MANAGER),
    ]
    people += [make(f"emp-{i}", [UserRole.EMPLOYEE], manager_id="mgr-1") for i in (1, 2, 3)]
    people += [make(f"emp-{i}", [UserRole.EMPLOYEE], manager_id="mgr-2") for i in (4, 5, 6)]
    people.append(make("des-1", [UserRole.EMPLOYEE], manager_id="mgr-2", department="Design"))
    db_session.add_all(people)
    db_session.commit()
    return {u.id: u for u in people}


@pytest.fixture(scope="function")
def users(db_session):
    return _seed_org(db_session)


@pytest.fixture(scope="function")
def actors(users):
    return {
        user_id: Actor(user_id=u.id, email=u.email, name=u.name, roles=list(u.roles))
        for user_id, u in users.items()
    }


def _make_cycle(db_session, status=CycleStatus.ACTIVE, start=NOW, name="FY25 H1"):
    cycle = ReviewCycle(
        name=name,
        year=start.year,
        status=status,
        start_date=start - timedelta(days=1),
        self_review_deadline=start + timedelta(days=7),
        peer_feedback_deadline=start + timedelta(days=14),
        manager_eval_deadline=start + timedelta(days=21),
        calibration_deadline=start + timedelta(days=28),
        feedback_delivery_deadline=start + timedelta(days=35),
    )
    db_session.add(cycle)
    db_session.commit()
    return cycle


@pytest.fixture(scope="function")
def cycle(db_session, users):
    """An ACTIVE cycle whose first deadline is a week after NOW."""
    return _make_cycle(db_session)


@pytest.fixture(scope="function")
def cycle_factory(db_session, users):
    def _factory(status=CycleStatus.ACTIVE, start=NOW, name="FY25 H1"):
        return _make_cycle(db_session, status=status, start=start, name=name)
    return _factory


@pytest.fixture(scope="function")
def client(db_session, clock):
    """TestClient bound to the test session and clock via dependency overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def auth_headers(actors):
    """Gateway identity headers for a seeded user id."""
    def _headers(user_id: str) -> dict:
        actor = actors[user_id]
        return {
            "X-User-Id": actor.user_id,
            "X-User-Email": actor.email or "",
            "X-User-Roles": ",".join(actor.roles),
        }
    return _headers


@pytest.fixture(scope="function")
def now():
    return NOW


class SharedDatabase:
    """Session factory over one file-backed database, seeded with the org chart and a cycle."""

    def __init__(self, factory, cycle_id: str):
        self.factory = factory
        self.cycle_id = cycle_id

    def session(self):
        return self.factory()


@pytest.fixture(scope="function")
def shared_db(tmp_path):
    """For tests that interleave writes from two independent sessions."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'shared.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    with factory() as seed:
        _seed_org(seed)
        cycle_id = _make_cycle(seed).id
    yield SharedDatabase(factory, cycle_id)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def run_after(monkeypatch):
    """
    Patch ``obj.method_name`` so that ``action`` runs once, right after the
    first call returns. Used to slot a competing write between a read and
    the write that depends on it.
    """
    def _install(obj, method_name, action):
        original = getattr(obj, method_name)
        fired = []

        def wrapped(*args, **kwargs):
            result = original(*args, **kwargs)
            if not fired:
                fired.append(True)
                action()
            return result

        monkeypatch.setattr(obj, method_name, wrapped)
    return _install
