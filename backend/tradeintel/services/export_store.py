"""
Persistence for normalized export records.
"""
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tradeintel.models import ExportRecord

UNIQUE_VIOLATION_PGCODE = "23505"


class DuplicateRecordError(Exception):
    """Raised when a record collides with the exports identity constraint."""


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == UNIQUE_VIOLATION_PGCODE:
        return True
    message = str(orig if orig is not None else exc).upper()
    return "UNIQUE" in message or "DUPLICATE" in message


class ExportStore:
    """
    Inserts export records one at a time.

    Each insert runs in its own SAVEPOINT, so a rejected row is rolled back
    without discarding rows already added in the surrounding transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert_one(self, fields: Dict[str, Any]) -> ExportRecord:
        record = ExportRecord(**fields)
        try:
            with self.db.begin_nested():
                self.db.add(record)
                self.db.flush()
        except IntegrityError as e:
            if is_unique_violation(e):
                raise DuplicateRecordError(str(e.orig)) from e
            raise
        return record

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
