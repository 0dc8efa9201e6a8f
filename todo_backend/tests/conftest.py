import os

import pytest
from fastapi.testclient import TestClient

# Keep the process-wide engine off the filesystem during tests
os.environ["DATABASE_URL"] = "sqlite://"

from src.todo_api.db import create_db_engine, create_session_factory, get_db, init_db  # noqa: E402
from src.todo_api.main import app  # noqa: E402


@pytest.fixture()
def engine():
    """Fresh in-memory SQLite database per test."""
    eng = create_db_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine):
    factory = create_session_factory(engine)
    with factory() as s:
        yield s


@pytest.fixture()
def client(engine):
    """TestClient whose requests each get a session on the per-test database."""
    factory = create_session_factory(engine)

    def override_get_db():
        s = factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
