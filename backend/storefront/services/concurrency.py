# Overview: Row locking, retry and compare-and-swap stock helpers for concurrent writers.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (locks, deadlocks) and StaleDataError (an
    order's version_id moved under us). Domain errors propagate immediately.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


def conditional_decrement(model, row_id: int, column_name: str, quantity: int) -> bool:
    """
    Atomically subtract quantity from a nullable counter column.

    Issues UPDATE ... SET col = col - :qty WHERE id = :id AND col >= :qty.
    Returns False when no row matched (counter too low, or the row vanished).
    Rows whose counter is NULL (untracked) are treated as a success without
    being touched.
    """
    column = getattr(model, column_name)
    current = db.session.query(column).filter(model.id == row_id).scalar()
    if current is None:
        exists = db.session.query(model.id).filter(model.id == row_id).first()
        return exists is not None

    updated = (
        db.session.query(model)
        .filter(model.id == row_id, column >= quantity)
        .update({column: column - quantity}, synchronize_session=False)
    )
    return updated == 1
