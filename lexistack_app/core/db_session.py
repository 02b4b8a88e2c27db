"""Transaction helpers shared by the engine's concurrency-sensitive services.

SQLite is the development store and PostgreSQL the production one, so each
primitive picks the dialect's native construct:

* :func:`acquire_keyed_lock` serialises work on a derived key for the rest of
  the current transaction (``pg_advisory_xact_lock`` on PostgreSQL, an upsert
  on ``lock_keys`` elsewhere, which takes SQLite's write lock before any read).
* :func:`insert_ignore` runs ``INSERT ... ON CONFLICT DO NOTHING`` and reports
  how many rows were actually written; :func:`upsert` is its DO UPDATE twin.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence

from sqlalchemy import text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm.session import Session


def utc_now() -> datetime:
    """Naive UTC timestamp, the format every DateTime column stores."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def dialect_name(session: Session) -> str:
    return session.get_bind().dialect.name


def _dialect_insert(session: Session, table):
    name = dialect_name(session)
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"insert-or-ignore is not supported on dialect '{name}'")


def insert_ignore(
    session: Session,
    model,
    rows: Sequence[Mapping] | Mapping,
    index_elements: Iterable[str],
) -> int:
    """Insert ``rows`` skipping conflicts on ``index_elements``.

    Returns the number of rows actually inserted.
    """

    if isinstance(rows, Mapping):
        rows = [rows]
    rows = list(rows)
    if not rows:
        return 0

    stmt = _dialect_insert(session, model.__table__).values(rows)
    stmt = stmt.on_conflict_do_nothing(index_elements=list(index_elements))
    result = session.execute(stmt)
    return max(result.rowcount or 0, 0)


def acquire_keyed_lock(session: Session, key: str) -> None:
    """Hold an exclusive lock on ``key`` until the current transaction ends."""

    if dialect_name(session) == "postgresql":
        session.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key})
        return

    from ..models.system import LockKey

    now = utc_now()
    stmt = _dialect_insert(session, LockKey.__table__).values(lock_key=key, acquired_at=now)
    stmt = stmt.on_conflict_do_update(
        index_elements=["lock_key"],
        set_={"acquired_at": now},
    )
    session.execute(stmt)


def upsert(
    session: Session,
    model,
    rows: Sequence[Mapping],
    index_elements: Iterable[str],
    update_columns: Iterable[str],
) -> None:
    """``INSERT ... ON CONFLICT (index_elements) DO UPDATE`` for ``update_columns``."""

    rows = list(rows)
    if not rows:
        return

    stmt = _dialect_insert(session, model.__table__).values(rows)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(index_elements),
        set_={name: stmt.excluded[name] for name in update_columns},
    )
    session.execute(stmt)
