import os

# Settings are read at import time, so defaults must be in place before app imports
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_drive.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-drive-api-0123456789")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.database import Base, SessionLocal, build_engine, engine, get_db  # noqa: E402
from app.dependencies.storage import get_storage  # noqa: E402
from app.main import app  # noqa: E402
from app.storage.local import LocalBlobStore  # noqa: E402
from tests.constants import URLs  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Run Alembic migrations at the start of the test session."""
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config(os.path.join(os.path.dirname(os.path.dirname(__file__)), "alembic.ini"))

    # Run all migrations to head so the migration itself is under test
    command.upgrade(alembic_cfg, "head")

    yield

    try:
        command.downgrade(alembic_cfg, "base")
    except Exception:
        # Teardown is best effort
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Each test uses an independent transaction that gets rolled back after."""
    connection = engine.connect()
    transaction = connection.begin()
    session = SessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def storage(tmp_path):
    """Blob store rooted in a per-test directory with a 1MB upload limit."""
    return LocalBlobStore(base_path=str(tmp_path / "blobs"), max_size_mb=1)


@pytest.fixture
def client(db, storage):
    """Test client with database and storage dependency overrides."""

    def override_get_db():
        yield db

    def override_get_storage():
        return storage

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = override_get_storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Factory: register a user and return its Authorization header."""

    def _auth_headers(email: str = "user@example.com", password: str = "password123") -> dict:
        response = client.post(URLs.REGISTER, json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        token = response.json()["data"]["token"]
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def committing_sessions(tmp_path):
    """
    Session factory on a throwaway SQLite file where commits are real.

    Used by tests that need several independent sessions (concurrency) or
    that must observe a rolled back transaction from a fresh session.
    """
    file_engine = build_engine(f"sqlite:///{tmp_path / 'drive.db'}")
    Base.metadata.create_all(bind=file_engine)
    factory = sessionmaker(bind=file_engine, autocommit=False, autoflush=False)

    yield factory

    file_engine.dispose()
