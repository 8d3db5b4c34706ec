# Overview: Atomic allocation of human-readable sequential identifiers.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import IdentifierSequence

DEALER_SEQUENCE = "DEALER"
INVOICE_SEQUENCE = "INVOICE"

# kind -> (prefix, pad)
FORMATS = {
    DEALER_SEQUENCE: ("DLR", 4),
    INVOICE_SEQUENCE: ("INV-", 4),
}


def _bump(kind: str):
    return db.session.execute(
        update(IdentifierSequence)
        .where(IdentifierSequence.kind == kind)
        .values(next_number=IdentifierSequence.next_number + 1)
    )


def _read_allocated(kind: str) -> int:
    current = (
        db.session.query(IdentifierSequence.next_number)
        .filter_by(kind=kind)
        .scalar()
    )
    return current - 1


def allocate_number(kind: str) -> int:
    """
    Increment-and-read the counter for ``kind`` inside the caller's transaction.

    The UPDATE takes the row's write lock, so two transactions can never read
    back the same value. The first allocation creates the row; if another
    transaction created it first the insert fails, the session is rolled back
    and we fall back to UPDATE. Call this before any other write in the
    unit of work. Does not commit.
    """
    result = _bump(kind)
    if result.rowcount:
        return _read_allocated(kind)

    seq = IdentifierSequence(kind=kind, next_number=2)
    db.session.add(seq)
    try:
        db.session.flush()
        return 1
    except IntegrityError:
        db.session.rollback()
        result = _bump(kind)
        if not result.rowcount:
            raise
        return _read_allocated(kind)


def format_identifier(kind: str, number: int) -> str:
    prefix, pad = FORMATS[kind]
    return f"{prefix}{number:0{pad}d}"


def next_identifier(kind: str) -> str:
    """Allocate and format the next identifier, e.g. DLR0001 or INV-0001."""
    return format_identifier(kind, allocate_number(kind))


def seed_sequence(kind: str, next_number: int) -> None:
    """
    Set a counter explicitly (used when importing existing numbered records).
    Does not commit.
    """
    seq = db.session.query(IdentifierSequence).filter_by(kind=kind).first()
    if seq is None:
        db.session.add(IdentifierSequence(kind=kind, next_number=next_number))
    else:
        seq.next_number = next_number
    db.session.flush()
