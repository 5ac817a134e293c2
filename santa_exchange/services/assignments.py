from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from flask import current_app
from sqlalchemy.orm import joinedload

from ..errors import AlreadyAssigned, AssignmentError, EventNotFound, InsufficientParticipants, TransactionFailure
from ..extensions import db
from ..models import Assignment, Event, EventStatus, Participant, Wishlist
from .permutations import MAX_ATTEMPTS, derangement, receiver_numbers
from .transactions import atomic, event_run_lock

__all__ = [
    "AlreadyAssigned",
    "AssignmentError",
    "EventNotFound",
    "InsufficientParticipants",
    "TransactionFailure",
    "ReceiverAssignment",
    "ParticipantSummary",
    "AssignmentRecord",
    "run_assignment",
    "get_assignment_for",
    "get_all_assignments",
]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiverAssignment:
    """What a santa may see: the masked number and the wishlist, nothing else."""

    receiver_number: int
    receiver_wishlist: Wishlist

    def to_dict(self) -> dict:
        return {
            "receiverNumber": self.receiver_number,
            "receiverWishlist": self.receiver_wishlist.to_dict(),
        }


@dataclass(frozen=True)
class ParticipantSummary:
    id: int
    name: str
    email: str
    wishlist: Wishlist

    @classmethod
    def from_participant(cls, p: Participant) -> "ParticipantSummary":
        return cls(id=p.id, name=p.name, email=p.email, wishlist=p.wishlist)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "wishlist": self.wishlist.to_dict(),
        }


@dataclass(frozen=True)
class AssignmentRecord:
    santa: ParticipantSummary
    receiver: ParticipantSummary
    receiver_number: int

    def to_dict(self) -> dict:
        return {
            "santa": self.santa.to_dict(),
            "receiver": self.receiver.to_dict(),
            "receiverNumber": self.receiver_number,
        }


# --------- Store helpers ----------

def _load_event_for_update(event_id: int) -> Event | None:
    # FOR UPDATE is dropped by SQLite, which serializes writers anyway.
    stmt = db.select(Event).filter_by(id=event_id).with_for_update()
    return db.session.execute(stmt).scalar_one_or_none()


def _participants_for_event(event_id: int) -> list[Participant]:
    return Participant.query.filter_by(event_id=event_id).order_by(Participant.id.asc()).all()


def _delete_for_event(event_id: int) -> int:
    return Assignment.query.filter_by(event_id=event_id).delete(synchronize_session="fetch")


def _bulk_insert(rows: list[Assignment]) -> None:
    db.session.add_all(rows)
    db.session.flush()


# --------- Orchestrator ----------

def run_assignment(
    event_id: int,
    rng: random.Random | None = None,
    max_attempts: int | None = None,
    only_if_unassigned: bool = False,
) -> list[Assignment]:
    """
    Draw a fresh santa -> receiver mapping for the event and mark it assigned.

    Replaces any previous mapping. The delete, insert and status change commit
    together or not at all; on failure the previous mapping and status stay.
    Re-running an already assigned event is allowed unless only_if_unassigned
    is set, in which case AlreadyAssigned is raised under the event lock so two
    concurrent first runs cannot both draw.
    """
    if max_attempts is None:
        max_attempts = int(current_app.config.get("SANTA_MAX_ATTEMPTS", MAX_ATTEMPTS))

    with event_run_lock(event_id):
        with atomic():
            event = _load_event_for_update(event_id)
            if event is None:
                raise EventNotFound(event_id)
            if only_if_unassigned and event.status == EventStatus.ASSIGNED:
                raise AlreadyAssigned(event_id)

            people = _participants_for_event(event_id)
            if len(people) < 2:
                raise InsufficientParticipants(len(people))

            removed = _delete_for_event(event_id)

            receivers = derangement(people, rng=rng, max_attempts=max_attempts)
            numbers = receiver_numbers(len(people), rng=rng)

            rows = [
                Assignment(
                    event_id=event_id,
                    santa_id=santa.id,
                    receiver_id=receiver.id,
                    receiver_number=number,
                )
                for santa, receiver, number in zip(people, receivers, numbers)
            ]
            _bulk_insert(rows)

            event.status = EventStatus.ASSIGNED

    log.info(
        "Assigned %d secret santa pairs for event %s (replaced %d)",
        len(rows),
        event_id,
        removed,
    )
    return rows


# --------- Readers ----------

def get_assignment_for(event_id: int, participant_id: int) -> ReceiverAssignment | None:
    """Return the participant's receiver number and wishlist, or None if they have no assignment."""
    a = (
        Assignment.query.options(joinedload(Assignment.receiver))
        .filter_by(event_id=event_id, santa_id=participant_id)
        .first()
    )
    if a is None:
        return None
    return ReceiverAssignment(receiver_number=a.receiver_number, receiver_wishlist=a.receiver.wishlist)


def get_all_assignments(event_id: int) -> list[AssignmentRecord]:
    rows = (
        Assignment.query.options(joinedload(Assignment.santa), joinedload(Assignment.receiver))
        .filter_by(event_id=event_id)
        .order_by(Assignment.receiver_number.asc())
        .all()
    )
    return [
        AssignmentRecord(
            santa=ParticipantSummary.from_participant(a.santa),
            receiver=ParticipantSummary.from_participant(a.receiver),
            receiver_number=a.receiver_number,
        )
        for a in rows
    ]
