from __future__ import annotations

from typing import Iterable
from urllib.parse import quote

from werkzeug.utils import secure_filename

from .assignments import AssignmentRecord

CSV_HEADER = "Santa Name,Santa Email,Receiver Number,Receiver Name,Receiver Email,Receiver Wishlist"


def _strip_commas(value: str) -> str:
    return (value or "").replace(",", " ")


def assignment_csv_row(record: AssignmentRecord) -> str:
    # Commas become spaces; the wishlist is quoted but inner quotes are not escaped.
    return ",".join(
        [
            _strip_commas(record.santa.name),
            record.santa.email,
            str(record.receiver_number),
            _strip_commas(record.receiver.name),
            record.receiver.email,
            f'"{_strip_commas(record.receiver.wishlist.text)}"',
        ]
    )


def assignments_to_csv(records: Iterable[AssignmentRecord]) -> str:
    return CSV_HEADER + "\n" + "\n".join(assignment_csv_row(r) for r in records)


def csv_filename(event_name: str) -> str:
    return f"secret-santa-{event_name}-assignments.csv"


def content_disposition(event_name: str) -> str:
    """Attachment header with an ASCII fallback name and the RFC 5987 UTF-8 name."""
    filename = csv_filename(event_name)
    fallback = secure_filename(filename) or "assignments.csv"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"
