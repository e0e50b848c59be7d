"""Dialect-aware SQL helpers shared by feature services."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlalchemy import insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .mixins import generate_ulid, utc_now


def dialect_name(session: AsyncSession) -> str:
    bind = session.get_bind()
    return bind.dialect.name if bind is not None else ""


def _complete_row(model: type[Any], row: Mapping[str, Any]) -> dict[str, Any]:
    # Multi-row INSERT statements bypass ORM defaults, so fill them in here.
    values = dict(row)
    columns = model.__table__.columns
    if "id" in columns and "id" not in values:
        values["id"] = generate_ulid()
    now = utc_now()
    for name in ("created_at", "updated_at"):
        if name in columns and name not in values:
            values[name] = now
    return values


async def insert_ignore(
    session: AsyncSession,
    model: type[Any],
    rows: Iterable[Mapping[str, Any]],
    *,
    conflict_columns: Sequence[str],
) -> None:
    """Insert ``rows`` skipping any that collide on ``conflict_columns``.

    PostgreSQL uses ``ON CONFLICT DO NOTHING`` and SQLite ``INSERT OR IGNORE``
    so the whole batch is one statement. Other dialects insert row by row,
    each inside a savepoint that treats ``IntegrityError`` as an existing row.
    Existing rows are never read or modified.
    """

    payload = [_complete_row(model, row) for row in rows]
    if not payload:
        return

    dialect = dialect_name(session)
    if dialect == "postgresql":
        stmt = (
            pg_insert(model)
            .values(payload)
            .on_conflict_do_nothing(index_elements=list(conflict_columns))
        )
        await session.execute(stmt)
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).values(payload).prefix_with("OR IGNORE")
        await session.execute(stmt)
    else:
        for values in payload:
            try:
                async with session.begin_nested():
                    await session.execute(insert(model).values(**values))
            except IntegrityError:
                # Row already present (possibly inserted concurrently).
                continue


__all__ = ["dialect_name", "insert_ignore"]
