import os

# The app's default engine is only used by the lifespan bootstrap during tests.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_db  # noqa: E402
from app.db.bootstrap import ensure_runtime_schema_compatibility  # noqa: E402
from app.main import app  # noqa: E402
from app.schemas.timetable import TIME_SLOTS  # noqa: E402


@pytest.fixture()
def engine():
    engine = create_engine(  # isolated in-memory DB shared by every session of one test
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    ensure_runtime_schema_compatibility(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def room_schedule():
    """Builds the wire form of one room: ``{"room": ..., "slots": [...]}``."""

    def build(name: str, sessions: dict[str, dict] | None = None) -> dict:
        sessions = sessions or {}
        slots = []
        for time in TIME_SLOTS:
            cell = sessions.get(time)
            slots.append({"kind": "session", **cell} if cell else {"kind": "empty"})
        return {"room": name, "slots": slots}

    return build
