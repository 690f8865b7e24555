import pytest

import config
from db import init_db, get_session
from tests import factories


@pytest.fixture(autouse=True)
def _database(tmp_path, monkeypatch):
    """Give every test its own SQLite file and no pause between batches."""
    url = f"sqlite:///{tmp_path / 'test.sqlite'}"
    monkeypatch.setattr(config, "DB_URL", url)
    monkeypatch.setattr(config, "IMPORT_BATCH_DELAY", 0)
    init_db(url)
    yield
    factories.Session.remove()


@pytest.fixture
def session():
    """Return a fresh SQLAlchemy session on the test database."""
    s = get_session()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def app():
    from main import create_app
    flask_app = create_app()
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    """Return an anonymous Flask test client."""
    return app.test_client()


@pytest.fixture
def manager_client(app):
    """Return a test client logged in as a manager (gestor)."""
    c = app.test_client()
    with c.session_transaction() as sess:
        sess["profissional_id"] = 7
        sess["usf_id"] = 3
        sess["is_gestor"] = True
    return c


@pytest.fixture
def staff_client(app):
    """Return a test client logged in as a non-manager professional."""
    c = app.test_client()
    with c.session_transaction() as sess:
        sess["profissional_id"] = 8
        sess["usf_id"] = 3
        sess["is_gestor"] = False
    return c
