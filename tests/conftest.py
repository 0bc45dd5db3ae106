import os

# canned AI content, never the network
os.environ["USE_DUMMY_DATA"] = "true"

import mongomock
import pytest
from fastapi.testclient import TestClient

from prepbolt.core.config import config
from prepbolt.core.database import DatabaseManager, set_db_manager
from prepbolt.core.ai_services import close_ai_service
from prepbolt.services import close_services
from prepbolt.main import app


@pytest.fixture
def db(monkeypatch):
    monkeypatch.setattr(config, "USE_DUMMY_DATA", True)
    manager = DatabaseManager(client=mongomock.MongoClient())
    set_db_manager(manager)
    close_ai_service()
    close_services()
    yield manager
    close_services()
    set_db_manager(None)


@pytest.fixture
def client(db):
    # lifespan is skipped on purpose: the database is already injected
    return TestClient(app)


@pytest.fixture
def subject(db):
    subject_id = db.insert_subject({
        "name": "DBMS",
        "description": "Database management systems",
        "category": "Technical",
        "type": "core"
    })
    return db.get_subject(subject_id)


@pytest.fixture
def make_user(db):
    def _make(name="Asha", **fields):
        user = {"name": name, "email": f"{name.lower()}@example.com", **fields}
        return db.insert_user(user)
    return _make
