import os
import uuid
from datetime import datetime
from datetime import UTC

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from abacus.db import Base
from abacus.db import get_db
from abacus.main import create_app
from abacus.models import History
from abacus.models import StoreRecord
from abacus.settings import Settings


def make_history(timestamp: datetime, deleted: bool = False) -> History:
    return History(
        id=uuid.uuid4(),
        client_id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        hostname="laptop",
        timestamp=timestamp,
        command="ls -la",
        cwd="/home/user",
        duration=1000,
        exit=0,
        session="session-1",
        deleted_at=timestamp if deleted else None,
    )


def make_store_record(timestamp: datetime, tag: str = "history") -> StoreRecord:
    return StoreRecord(
        id=uuid.uuid4(),
        client_id=uuid.uuid4(),
        host_id=uuid.uuid4(),
        tag=tag,
        timestamp=int(timestamp.timestamp()) * 1_000_000_000,
        version="v0",
        data=b"\x00",
        crc=0,
        idx=0,
    )


@pytest.fixture
def session_factory() -> sessionmaker:
    test_engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    return sessionmaker(bind=test_engine, autoflush=False, autocommit=False)


@pytest.fixture
def seeded_db(session_factory: sessionmaker) -> Session:
    """Session with three days of commands spread over both tables."""

    db = session_factory()
    db.add_all(
        [
            make_history(datetime(2024, 1, 1, 10, 0)),
            make_history(datetime(2024, 1, 1, 10, 15)),
            make_history(datetime(2024, 1, 1, 10, 30)),
            make_history(datetime(2024, 1, 2, 23, 30)),
            make_history(datetime(2024, 1, 2, 9, 0), deleted=True),
            make_store_record(datetime(2026, 1, 1, 12, 0, tzinfo=UTC)),
            make_store_record(datetime(2026, 1, 1, 12, 45, tzinfo=UTC)),
            make_store_record(datetime(2026, 1, 1, 13, 0, tzinfo=UTC), tag="kv"),
        ]
    )
    db.commit()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db_client(session_factory: sessionmaker, seeded_db: Session) -> TestClient:
    app = create_app(Settings(default_timezone="UTC", cache_ttl_seconds=300))

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def history_row():
    """Factory for extra history rows in tests that mutate the seeded data."""

    return make_history
