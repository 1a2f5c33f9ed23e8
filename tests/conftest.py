import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="labloop-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP_DIR}/app.db")
os.environ.setdefault("LOG_DIR", os.path.join(_TMP_DIR, "logs"))
os.environ.setdefault("ENVIRONMENT", "test")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

import labloop.models  # noqa: E402,F401
from labloop.database import Base, build_engine_args  # noqa: E402
from labloop.services.id_allocator import IdAllocator, get_id_allocator  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so separate sessions see each other's commits."""
    url = f"sqlite:///{tmp_path / 'labloop.db'}"
    engine = create_engine(url, **build_engine_args(url))
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def sleeps():
    """Records backoff delays instead of sleeping."""
    return []


@pytest.fixture
def allocator(session_factory, sleeps):
    return IdAllocator(session_factory, allow_reset=True, sleep=sleeps.append)


@pytest.fixture
def app():
    from labloop.main import app

    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app, allocator, monkeypatch):
    """Client that passes the admin whitelist as a localhost caller."""
    from labloop.middleware import admin_whitelist

    monkeypatch.setattr(admin_whitelist, "get_client_ip", lambda request: "127.0.0.1")
    app.dependency_overrides[get_id_allocator] = lambda: allocator
    return TestClient(app)
