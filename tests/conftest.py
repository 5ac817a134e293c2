from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from santa_exchange import create_app
from santa_exchange.extensions import db
from santa_exchange.models import Event, EventStatus, Participant
from santa_exchange.security import hash_passphrase


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "WTF_CSRF_ENABLED": False,
        }
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Push an app context for tests that call services directly."""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_event():
    def _make(name="Office Party", status=EventStatus.OPEN, budget=50):
        event = Event(
            name=name,
            budget_limit=budget,
            registration_deadline=datetime(2030, 12, 1) + timedelta(days=1),
            status=status,
        )
        db.session.add(event)
        db.session.commit()
        return event

    return _make


@pytest.fixture
def make_participants():
    def _make(event, names, passphrase=None):
        people = []
        for name in names:
            p = Participant(
                name=name,
                email=f"{name.lower().replace(' ', '.')}@test.com",
                wish_text=f"{name} wants books",
                wish_link=f"https://example.com/{name.lower()}",
                event_id=event.id if event is not None else None,
                passkey_hash=hash_passphrase(passphrase) if passphrase else None,
            )
            db.session.add(p)
            people.append(p)
        db.session.commit()
        return people

    return _make
