from __future__ import annotations

import click
from flask import Blueprint

from .extensions import db
from .models import Event
from .services.assignments import AlreadyAssigned, AssignmentError, get_all_assignments, run_assignment
from .services.export import assignments_to_csv

santa_cli = Blueprint("santa", __name__, cli_group="santa")


@santa_cli.cli.command("init-db")
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("Database initialised.")


@santa_cli.cli.command("run")
@click.argument("event_id", type=int)
@click.option("--rerun", is_flag=True, help="Replace assignments for an already assigned event.")
def run(event_id: int, rerun: bool):
    """Draw secret santa pairs for EVENT_ID."""
    try:
        rows = run_assignment(event_id, only_if_unassigned=not rerun)
    except AlreadyAssigned as e:
        raise click.ClickException(f"{e} (use --rerun).") from e
    except AssignmentError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Assigned {len(rows)} pairs for event {event_id}.")


@santa_cli.cli.command("export")
@click.argument("event_id", type=int)
@click.option("-o", "--output", type=click.File("w"), default="-", help="Write CSV here (default stdout).")
def export(event_id: int, output):
    """Write the full mapping for EVENT_ID as CSV."""
    event = db.session.get(Event, event_id)
    if event is None:
        raise click.ClickException(f"Event {event_id} not found.")
    output.write(assignments_to_csv(get_all_assignments(event_id)))
    output.write("\n")
