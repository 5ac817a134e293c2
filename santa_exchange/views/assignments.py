from __future__ import annotations

from flask import Blueprint, Response, jsonify, request
from flask_login import current_user

from ..extensions import db
from ..models import Event, EventStatus
from ..policies import LoginRequiredMixin, AdminRequiredMixin
from ..services.assignments import (
    AlreadyAssigned,
    AssignmentError,
    EventNotFound,
    InsufficientParticipants,
    TransactionFailure,
    get_all_assignments,
    get_assignment_for,
    run_assignment,
)
from ..services.export import assignments_to_csv, content_disposition

assignments_bp = Blueprint("assignments", __name__, url_prefix="/events/<int:event_id>")


def _assigned_event_or_error(event_id: int):
    event = db.session.get(Event, event_id)
    if event is None:
        return None, (jsonify(message="Event not found"), 404)
    if event.status != EventStatus.ASSIGNED:
        return None, (jsonify(message="Assignments have not been completed yet"), 400)
    return event, None


class RunAssignmentsView(AdminRequiredMixin):
    def post(self, event_id: int):
        rerun = request.args.get("rerun", "").lower() in {"1", "true", "yes"}

        try:
            rows = run_assignment(event_id, only_if_unassigned=not rerun)
        except EventNotFound:
            return jsonify(message="Event not found"), 404
        except AlreadyAssigned as e:
            return jsonify(message=str(e)), 409
        except InsufficientParticipants as e:
            return jsonify(message=str(e)), 400
        except TransactionFailure:
            return jsonify(message="Could not save assignments, please retry."), 503
        except AssignmentError as e:
            return jsonify(message=f"Failed to run assignments: {e}"), 500

        return jsonify(message="Secret Santa assignments completed successfully", count=len(rows))


class MyAssignmentView(LoginRequiredMixin):
    def get(self, event_id: int):
        event, error = _assigned_event_or_error(event_id)
        if error:
            return error

        assignment = get_assignment_for(event.id, current_user.id)
        if assignment is None:
            return jsonify(message="No assignment found. Make sure you joined the event."), 404
        return jsonify(assignment=assignment.to_dict())


class AllAssignmentsView(AdminRequiredMixin):
    def get(self, event_id: int):
        event, error = _assigned_event_or_error(event_id)
        if error:
            return error
        return jsonify(assignments=[r.to_dict() for r in get_all_assignments(event.id)])


class ExportAssignmentsView(AdminRequiredMixin):
    def get(self, event_id: int):
        event, error = _assigned_event_or_error(event_id)
        if error:
            return error
        body = assignments_to_csv(get_all_assignments(event.id))
        return Response(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": content_disposition(event.name)},
        )


assignments_bp.add_url_rule("/assignments", view_func=RunAssignmentsView.as_view("run"), methods=["POST"])
assignments_bp.add_url_rule("/assignments", view_func=AllAssignmentsView.as_view("all"), methods=["GET"])
assignments_bp.add_url_rule("/assignments/mine", view_func=MyAssignmentView.as_view("mine"))
assignments_bp.add_url_rule("/assignments.csv", view_func=ExportAssignmentsView.as_view("export"))
