from __future__ import annotations


class AssignmentError(RuntimeError):
    pass


class EventNotFound(AssignmentError):
    def __init__(self, event_id):
        super().__init__(f"Event {event_id} not found.")
        self.event_id = event_id


class InsufficientParticipants(AssignmentError):
    def __init__(self, count: int):
        super().__init__(f"Need at least 2 participants for Secret Santa (got {count}).")
        self.count = count


class TransactionFailure(AssignmentError):
    """The store could not complete the assignment transaction; nothing was persisted."""


class AlreadyAssigned(AssignmentError):
    def __init__(self, event_id):
        super().__init__("Assignments already completed for this event")
        self.event_id = event_id
