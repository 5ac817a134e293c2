from __future__ import annotations

import logging
import threading
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from ..errors import TransactionFailure
from ..extensions import db

log = logging.getLogger(__name__)


class _EventLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        # holders plus waiters; the entry is dropped when this reaches zero
        self.users = 0


_registry_lock = threading.Lock()
_event_locks: dict[int, _EventLock] = {}


@contextmanager
def atomic():
    """
    Commit the session on clean exit, roll it back on any exception.

    Store errors (including a failed commit) are re-raised as TransactionFailure;
    everything else propagates unchanged after the rollback.
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        log.warning("Transaction rolled back after store error", exc_info=True)
        raise TransactionFailure(f"Could not complete transaction: {e}") from e
    except BaseException:
        db.session.rollback()
        raise


@contextmanager
def event_run_lock(event_id: int):
    """Serialize assignment runs for one event within this process."""
    with _registry_lock:
        entry = _event_locks.get(event_id)
        if entry is None:
            entry = _event_locks[event_id] = _EventLock()
        entry.users += 1
    try:
        with entry.lock:
            yield
    finally:
        with _registry_lock:
            entry.users -= 1
            if entry.users == 0:
                del _event_locks[event_id]
