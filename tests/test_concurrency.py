import threading
import time

import pytest

from santa_exchange import create_app
from santa_exchange.errors import AlreadyAssigned
from santa_exchange.extensions import db
from santa_exchange.models import Assignment, Event, EventStatus, Participant
from santa_exchange.services import assignments as service
from santa_exchange.services.assignments import run_assignment


@pytest.fixture
def file_app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'santa.db'}",
            "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"check_same_thread": False, "timeout": 30}},
        }
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def seeded_event(file_app, make_event, make_participants):
    with file_app.app_context():
        event = make_event()
        people = make_participants(event, ["Alice", "Bob", "Charlie", "David", "Eve"])
        return event.id, sorted(p.id for p in people)


@pytest.fixture
def slow_insert(monkeypatch):
    original = service._bulk_insert

    def slow(rows):
        time.sleep(0.05)
        original(rows)

    monkeypatch.setattr(service, "_bulk_insert", slow)


def _run_concurrently(app, event_id, only_if_unassigned):
    barrier = threading.Barrier(2)
    counts, errors = [], []

    def worker():
        with app.app_context():
            barrier.wait()
            try:
                counts.append(len(run_assignment(event_id, only_if_unassigned=only_if_unassigned)))
            except AlreadyAssigned as e:
                errors.append(e)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return counts, errors


@pytest.mark.usefixtures("slow_insert")
def test_concurrent_runs_leave_one_valid_mapping(file_app, seeded_event):
    event_id, ids = seeded_event

    counts, errors = _run_concurrently(file_app, event_id, only_if_unassigned=False)

    assert counts == [5, 5]
    assert errors == []
    with file_app.app_context():
        rows = Assignment.query.filter_by(event_id=event_id).all()
        assert len(rows) == 5
        assert sorted(a.santa_id for a in rows) == ids
        assert sorted(a.receiver_id for a in rows) == ids
        assert all(a.santa_id != a.receiver_id for a in rows)
        assert sorted(a.receiver_number for a in rows) == [1, 2, 3, 4, 5]
        assert db.session.get(Event, event_id).status == EventStatus.ASSIGNED


@pytest.mark.usefixtures("slow_insert")
def test_concurrent_first_runs_draw_once(file_app, seeded_event):
    event_id, _ = seeded_event

    counts, errors = _run_concurrently(file_app, event_id, only_if_unassigned=True)

    assert counts == [5]
    assert len(errors) == 1
    with file_app.app_context():
        assert Assignment.query.filter_by(event_id=event_id).count() == 5
        assert Participant.query.filter_by(event_id=event_id).count() == 5
