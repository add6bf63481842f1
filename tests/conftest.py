import uuid

import pytest

from collections import Counter
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import TransientSourceError
from app.models import Base
from app.models.alerts import AlertType
from app.schemas.alert import CreateAlert

NOW = datetime(2026, 3, 1, 6, 0, 0)

# Mumbai harbour
PORT_LAT = 19.0760
PORT_LNG = 72.8777


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'safety.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def make_alert_payload(**overrides) -> CreateAlert:
    data = {
        "type": AlertType.HAZARD,
        "severity": "MEDIUM",
        "title": "Floating debris",
        "description": "Large net drifting near the channel",
        "latitude": PORT_LAT,
        "longitude": PORT_LNG,
        "user_id": uuid.uuid4(),
        "user_name": "Ravi Patil",
        "triggered_at": NOW,
        "expires_at": NOW + timedelta(hours=2),
    }
    data.update(overrides)
    return CreateAlert(**data)


class RecordingTransport:
    """Collects queued messages in memory; can fail chosen recipients"""

    def __init__(self, transient=None, broken=()):
        # recipient -> number of transient failures before success
        self.transient = dict(transient or {})
        self.broken = set(broken)
        self.sent = []
        self.attempts = Counter()

    async def enqueue(self, task):
        self.attempts[task.recipient] += 1
        if task.recipient in self.broken:
            raise RuntimeError("gateway rejected recipient")
        if self.transient.get(task.recipient, 0) > 0:
            self.transient[task.recipient] -= 1
            raise TransientSourceError("queue busy", source_id=task.recipient)
        self.sent.append(task)
