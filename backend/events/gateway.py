from __future__ import annotations

"""
Async gateway over the ``hobbit_quiz_events`` table.

Design intent:
- One round trip per operation through a shared SQLAlchemy async engine pool.
- Statement text is assembled only from fixed column names; values travel as binds.
- Rows come back as typed ``EventRecord`` instances.
"""

import logging
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from backend.internal_core.config import async_database_url
from backend.internal_core.contracts import EVENT_COLUMNS, EventPatch, EventRecord

logger = logging.getLogger(__name__)

EVENTS_TABLE = "hobbit_quiz_events"
_SELECT_COLUMNS = ", ".join(EVENT_COLUMNS)


class EventStoreError(RuntimeError):
    """Base class for event store outcomes the router maps to client errors."""


class EventNotFoundError(EventStoreError):
    def __init__(self, event_id: int):
        super().__init__(f"Event not found: {event_id}")
        self.event_id = event_id


class NoFieldsToUpdateError(EventStoreError):
    """Raised when a patch supplies none of the mutable columns."""


def split_ssl_mode(database_url: str) -> tuple[URL, dict[str, Any]]:
    """Move a libpq ``sslmode`` query option into asyncpg connect args.

    asyncpg rejects ``sslmode`` as a keyword but takes the same mode names
    through ``ssl``.
    """
    url = make_url(async_database_url(database_url))
    mode = url.query.get("sslmode")
    if mode is None or url.get_backend_name() != "postgresql":
        return url, {}
    if isinstance(mode, tuple):
        mode = mode[-1]
    return url.difference_update_query(["sslmode"]), {"ssl": mode}


def create_event_engine(database_url: str, **kwargs) -> AsyncEngine:
    url, ssl_args = split_ssl_mode(database_url)
    connect_args = {**ssl_args, **kwargs.pop("connect_args", {})}
    if connect_args:
        kwargs["connect_args"] = connect_args
    return create_async_engine(url, pool_pre_ping=True, **kwargs)


class EventGateway:
    def __init__(self, engine: AsyncEngine, table: str = EVENTS_TABLE):
        self._engine = engine
        self._table = table

    async def ping(self) -> object:
        async with self._engine.connect() as conn:
            result = await conn.execute(text("SELECT CURRENT_TIMESTAMP"))
            return result.scalar()

    async def list_events(self, player_id: Optional[str] = None) -> list[EventRecord]:
        sql = f"SELECT {_SELECT_COLUMNS} FROM {self._table}"
        params: dict[str, object] = {}
        if player_id:
            # Compare as text so integer and text player_id columns both match.
            sql += " WHERE CAST(player_id AS TEXT) = :player_id"
            params["player_id"] = str(player_id)
        sql += " ORDER BY id DESC"

        async with self._engine.connect() as conn:
            result = await conn.execute(text(sql), params)
            rows = result.mappings().all()
        return [EventRecord.model_validate(dict(row)) for row in rows]

    async def update_event(self, event_id: int, patch: EventPatch) -> EventRecord:
        assignments = patch.assignments()
        if not assignments:
            raise NoFieldsToUpdateError("No fields to update")

        set_clause = ", ".join(f"{column} = :{column}" for column, _ in assignments)
        params: dict[str, object] = {column: value for column, value in assignments}
        params["event_id"] = event_id
        sql = (
            f"UPDATE {self._table} SET {set_clause} "
            f"WHERE id = :event_id RETURNING {_SELECT_COLUMNS}"
        )

        async with self._engine.begin() as conn:
            result = await conn.execute(text(sql), params)
            row = result.mappings().first()
        if row is None:
            raise EventNotFoundError(event_id)
        return EventRecord.model_validate(dict(row))

    async def delete_event(self, event_id: int) -> int:
        sql = f"DELETE FROM {self._table} WHERE id = :event_id RETURNING id"
        async with self._engine.begin() as conn:
            result = await conn.execute(text(sql), {"event_id": event_id})
            deleted_id = result.scalar()
        if deleted_id is None:
            raise EventNotFoundError(event_id)
        return int(deleted_id)

    async def dispose(self) -> None:
        await self._engine.dispose()
