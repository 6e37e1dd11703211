import os

# Settings are read at import time; pin them before the app is imported
os.environ["API_BASE_URL"] = ""
os.environ["KAKAO_REST_API_KEY"] = ""
os.environ["VWORLD_API_KEY"] = ""
os.environ["ADMIN_USERNAME"] = "riverai"
os.environ["ADMIN_PASSWORD"] = "super-secret"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DEBUG"] = "False"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from station_monitor.main import app
from station_monitor.core.security import get_password_hash
from station_monitor.db.session import Base, get_db, init_db
from station_monitor.db.models import Member, Station
from station_monitor.services.geocoding import ReverseGeocoder
from station_monitor.services.lookup_sources import CatalogSource
from station_monitor.services.planner import RoutePlanner, get_planner
from station_monitor.services.resolver import StopResolver


@pytest.fixture
def engine(tmp_path):
    # File database: catalog lookups run in worker threads, one connection each
    engine = create_engine(
        f"sqlite:///{tmp_path / 'station_monitor.db'}",
        connect_args={"check_same_thread": False}
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def planner(session_factory):
    """Planner backed by the local catalog only"""
    resolver = StopResolver([CatalogSource(session_factory)], cache_ttl=0)
    return RoutePlanner(resolver, ReverseGeocoder(api_key=""))


@pytest.fixture
def client(session_factory, planner):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_planner] = lambda: planner
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def stations(db):
    """A few catalog stations around Busan"""
    rows = [
        Station(code_number="2201640", name="해운대 관측소", river="춘천", latitude=35.1631, longitude=129.1635),
        Station(code_number="2201650", name="해운대 관측소 지점", river="춘천", latitude=35.1700, longitude=129.1700),
        Station(code_number="2201110", name="구포 관측소", river="낙동강", latitude=35.2100, longitude=128.9970),
        Station(code_number="2201900", name="좌표없음 관측소", river="수영강"),
    ]
    db.add_all(rows)
    db.commit()
    return rows


def create_member(db, member_id="kim", password="pass1234", name="김현장", role="member", status="active"):
    member = Member(
        member_id=member_id,
        name=name,
        hashed_password=get_password_hash(password),
        role=role,
        status=status
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def login(client, member_id, password):
    """Log in and return Bearer headers (cookies are dropped so CSRF does not apply)"""
    response = client.post("/api/members/login", json={"member_id": member_id, "password": password})
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def member_headers(client, db):
    create_member(db)
    return login(client, "kim", "pass1234")


@pytest.fixture
def admin_headers(client):
    return login(client, "riverai", "super-secret")
