# Overview: Service-layer helpers for serializing stock-affecting units of work.

from __future__ import annotations

import time

from flask import current_app, has_app_context
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import DuplicateDocumentNumber
from ..extensions import db


def _session(session=None):
    return session if session is not None else db.session


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    On SQLite, begin_write_transaction() takes the database write lock instead.
    """
    return query.with_for_update()


def begin_write_transaction(session=None) -> None:
    """
    Take the write lock before the first read of a check-then-act unit.

    SQLite only: BEGIN IMMEDIATE acquires the RESERVED lock up front so no
    other writer can commit between our stock check and our stock update.
    Other dialects rely on lock_for_update() plus the product version column.
    """
    session = _session(session)
    if session.get_bind().dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))


def _retry_settings(attempts, backoff_base):
    if has_app_context():
        if attempts is None:
            attempts = current_app.config.get("COMMIT_RETRY_ATTEMPTS", 3)
        if backoff_base is None:
            backoff_base = current_app.config.get("COMMIT_RETRY_BACKOFF", 0.1)
    return attempts or 3, 0.1 if backoff_base is None else backoff_base


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None, session=None):
    """
    Execute a DB unit of work with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Each retry re-runs func from scratch, so
    validation is repeated against fresh state. Any other exception rolls the
    session back and propagates unchanged.
    """
    session = _session(session)
    attempts, backoff_base = _retry_settings(attempts, backoff_base)
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            session.rollback()
            raise
    if last_exc:
        raise last_exc


def is_unique_violation(exc: IntegrityError, *, table: str, column: str, constraint: str) -> bool:
    """
    True when an IntegrityError was raised by the given unique constraint.

    SQLite reports "UNIQUE constraint failed: <table>.<column>"; PostgreSQL and
    MySQL report the constraint name.
    """
    message = str(exc.orig) if exc.orig is not None else str(exc)
    return f"{table}.{column}" in message or constraint in message


def flush_document(session, *, doc_type: str, number: str, table: str, column: str, constraint: str) -> None:
    """
    Flush a new document header, translating a number collision.

    Uniqueness is owned by the database constraint; there is no pre-check, so
    two racing writers cannot both pass. Other integrity errors propagate.
    """
    try:
        session.flush()
    except IntegrityError as exc:
        if is_unique_violation(exc, table=table, column=column, constraint=constraint):
            raise DuplicateDocumentNumber(doc_type, number) from exc
        raise
