from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.database import Database
from app.main import create_app
from app.services.clock import today_local


@pytest.fixture
def database():
    db = Database("sqlite://").open()
    db.create_all()
    yield db
    db.close()


@pytest.fixture
def session(database):
    s = database.session()
    yield s
    s.close()


@pytest.fixture
def client():
    app = create_app(Database("sqlite://"))
    with TestClient(app) as c:
        yield c


@pytest.fixture
def future_date():
    return (today_local() + timedelta(days=30)).isoformat()
