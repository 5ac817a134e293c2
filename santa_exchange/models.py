from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone

from flask_login import UserMixin
from sqlalchemy.orm import validates

from .extensions import db, login_manager


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    OPEN = "open"
    CLOSED = "closed"
    ASSIGNED = "assigned"


@dataclass(frozen=True)
class Wishlist:
    text: str = ""
    link: str = ""

    def to_dict(self) -> dict:
        return {"wishText": self.text, "link": self.link}


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    budget_limit = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    registration_deadline = db.Column(db.DateTime, nullable=False, index=True)
    status = db.Column(
        db.Enum(EventStatus, name="event_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=EventStatus.DRAFT,
        index=True,
    )

    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    participants = db.relationship("Participant", back_populates="event", passive_deletes=True)

    __table_args__ = (
        db.CheckConstraint("budget_limit >= 0", name="budget_limit_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Event {self.id} {self.name!r} {self.status.value}>"


class Participant(UserMixin, db.Model):
    __tablename__ = "participants"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)

    # argon2 hash of the passphrase; written by registration, read by login
    passkey_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(16), default="user", nullable=False)

    wish_text = db.Column(db.Text, default="", nullable=False)
    wish_link = db.Column(db.String(2048), default="", nullable=False)

    # A participant joins at most one event.
    event_id = db.Column(
        db.Integer, db.ForeignKey("events.id", ondelete="SET NULL"), nullable=True, index=True
    )
    event = db.relationship("Event", back_populates="participants")

    registered_at = db.Column(db.DateTime, default=_utcnow, nullable=False)

    @validates("email")
    def _normalize_email(self, key, value):
        return (value or "").strip().lower()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def wishlist(self) -> Wishlist:
        return Wishlist(text=self.wish_text or "", link=self.wish_link or "")

    def __repr__(self) -> str:
        return f"<Participant {self.id} {self.email}>"


class Assignment(db.Model):
    """One santa -> receiver pairing. Written in bulk by run_assignment, never updated."""

    __tablename__ = "assignments"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(
        db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    santa_id = db.Column(db.Integer, db.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    receiver_id = db.Column(db.Integer, db.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    receiver_number = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)

    event = db.relationship("Event")
    santa = db.relationship("Participant", foreign_keys=[santa_id])
    receiver = db.relationship("Participant", foreign_keys=[receiver_id])

    __table_args__ = (
        db.UniqueConstraint("event_id", "receiver_number", name="uq_assignment_event_number"),
        db.UniqueConstraint("event_id", "santa_id", name="uq_assignment_event_santa"),
        db.UniqueConstraint("event_id", "receiver_id", name="uq_assignment_event_receiver"),
        db.CheckConstraint("santa_id <> receiver_id", name="no_self_gifting"),
        db.CheckConstraint("receiver_number >= 1", name="receiver_number_positive"),
    )


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(Participant, int(user_id))
