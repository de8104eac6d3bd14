"""Dialect-aware INSERT ... ON CONFLICT DO UPDATE."""

from typing import Any

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


async def upsert(
    db: AsyncSession,
    model: type,
    values: dict[str, Any],
    conflict_columns: list[str],
) -> None:
    """Insert ``values`` or update the row matching ``conflict_columns``.

    Columns in ``values`` that are not part of the conflict target are
    overwritten on conflict. Supported on PostgreSQL and SQLite.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model)
    else:
        raise NotImplementedError(f"Upsert is not supported for dialect {dialect!r}")

    stmt = stmt.values(**values)
    update_columns = {
        key: stmt.excluded[key] for key in values if key not in conflict_columns
    }
    update_columns["updated_at"] = func.now()
    stmt = stmt.on_conflict_do_update(index_elements=conflict_columns, set_=update_columns)
    await db.execute(stmt)
