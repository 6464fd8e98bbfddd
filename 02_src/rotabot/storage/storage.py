"""SQLite storage implementation."""

import json
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterator, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import Event, Item, ItemStat, Person, RareItemStat, Role, TraceEvent


class StorageError(Exception):
    """A storage operation failed (constraint violation, I/O, SQL error)."""


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except aiosqlite.IntegrityError as e:
        raise StorageError(f"{action}: already exists ({e})") from e
    except aiosqlite.Error as e:
        raise StorageError(f"{action}: {e}") from e


class IStorage(Protocol):
    """Persistent storage for items, people, events and trace events."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Items
    async def create_item(self, name: str) -> str:
        """Create a readable item and return its id."""
        ...

    async def list_readable_items(self) -> list[Item]:
        """Readable items sorted by name."""
        ...

    # People
    async def create_person(self, name: str, role: Role) -> str:
        """Register a person and return its id."""
        ...

    async def list_people(self) -> list[Person]:
        """All people sorted by name."""
        ...

    # Events
    async def create_event(self, day: date, item_name: str, actor_name: str) -> None:
        """Record that ``actor_name`` acted on ``item_name`` on ``day``."""
        ...

    async def get_last_events(self, limit: int) -> list[Event]:
        """Most recent events first."""
        ...

    # Reports
    async def get_ranked_items(
        self,
        limit: int,
        start: date,
        end: date,
        actor_filter: str | None = None,
    ) -> list[ItemStat]:
        """Top items by event count within [start, end]."""
        ...

    async def get_rarely_read_items(
        self, limit: int, follows_only: bool, today: date | None = None
    ) -> list[RareItemStat]:
        """Readable items whose last event is the oldest (never first)."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        if str(self._db_path) != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def _db(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Items
    async def create_item(self, name: str) -> str:
        """Create a readable item and return its id."""
        item_id = str(uuid.uuid4())
        with _storage_errors(f"create item {name!r}"):
            await self._db.execute(
                """
                INSERT INTO items (id, name, is_readable)
                VALUES (?, ?, 1)
                """,
                (item_id, name),
            )
            await self._db.commit()
        return item_id

    async def list_readable_items(self) -> list[Item]:
        """Readable items sorted by name."""
        with _storage_errors("list readable items"):
            cursor = await self._db.execute(
                """
                SELECT id, name, is_readable
                FROM items
                WHERE is_readable = 1
                ORDER BY name ASC
                """
            )
            rows = await cursor.fetchall()

        return [Item(id=row[0], name=row[1], is_readable=bool(row[2])) for row in rows]

    # People
    async def create_person(self, name: str, role: Role) -> str:
        """Register a person and return its id."""
        person_id = str(uuid.uuid4())
        with _storage_errors(f"create person {name!r}"):
            await self._db.execute(
                """
                INSERT INTO people (id, name, role)
                VALUES (?, ?, ?)
                """,
                (person_id, name, Role(role).value),
            )
            await self._db.commit()
        return person_id

    async def list_people(self) -> list[Person]:
        """All people sorted by name."""
        with _storage_errors("list people"):
            cursor = await self._db.execute(
                """
                SELECT id, name, role
                FROM people
                ORDER BY name ASC
                """
            )
            rows = await cursor.fetchall()

        return [Person(id=row[0], name=row[1], role=Role(row[2])) for row in rows]

    # Events
    async def create_event(self, day: date, item_name: str, actor_name: str) -> None:
        """Record that ``actor_name`` acted on ``item_name`` on ``day``."""
        with _storage_errors("create event"):
            await self._db.execute(
                """
                INSERT INTO events (date, item_name, actor_name)
                VALUES (?, ?, ?)
                """,
                (day.isoformat(), item_name, actor_name),
            )
            await self._db.commit()

    async def get_last_events(self, limit: int) -> list[Event]:
        """Most recent events first; same-day events by insertion order."""
        with _storage_errors("get last events"):
            cursor = await self._db.execute(
                """
                SELECT date, item_name, actor_name
                FROM events
                ORDER BY date DESC, id DESC
                LIMIT ?
                """,
                (limit,),
            )
            rows = await cursor.fetchall()

        return [
            Event(date=date.fromisoformat(row[0]), item_name=row[1], actor_name=row[2])
            for row in rows
        ]

    # Reports
    async def get_ranked_items(
        self,
        limit: int,
        start: date,
        end: date,
        actor_filter: str | None = None,
    ) -> list[ItemStat]:
        """
        Top items by event count within [start, end].

        Args:
            limit: Maximum number of rows.
            start: First day of the window (inclusive).
            end: Last day of the window (inclusive).
            actor_filter: Only count this person's events. None counts the
                events of every follows-role person.

        Returns:
            Rows ordered by count descending, then item name ascending.
        """
        conditions = ["date >= ?", "date <= ?"]
        params: list = [start.isoformat(), end.isoformat()]

        if actor_filter:
            conditions.append("actor_name = ?")
            params.append(actor_filter)
        else:
            conditions.append("actor_name IN (SELECT name FROM people WHERE role = ?)")
            params.append(Role.FOLLOWS.value)

        query = f"""
            SELECT item_name, COUNT(*) AS event_count
            FROM events
            WHERE {' AND '.join(conditions)}
            GROUP BY item_name
            ORDER BY event_count DESC, item_name ASC
            LIMIT ?
        """
        params.append(limit)

        with _storage_errors("get ranked items"):
            cursor = await self._db.execute(query, params)
            rows = await cursor.fetchall()

        return [ItemStat(item_name=row[0], count=row[1]) for row in rows]

    async def get_rarely_read_items(
        self, limit: int, follows_only: bool, today: date | None = None
    ) -> list[RareItemStat]:
        """Readable items ordered by last event date, never-used items first."""
        today = today or date.today()

        join_filter = ""
        params: list = []
        if follows_only:
            join_filter = "AND e.actor_name IN (SELECT name FROM people WHERE role = ?)"
            params.append(Role.FOLLOWS.value)

        query = f"""
            SELECT i.name, MAX(e.date) AS last_date
            FROM items i
            LEFT JOIN events e ON e.item_name = i.name {join_filter}
            WHERE i.is_readable = 1
            GROUP BY i.name
            ORDER BY last_date IS NOT NULL, last_date ASC, i.name ASC
            LIMIT ?
        """
        params.append(limit)

        with _storage_errors("get rarely read items"):
            cursor = await self._db.execute(query, params)
            rows = await cursor.fetchall()

        stats = []
        for name, last in rows:
            if last is None:
                stats.append(RareItemStat(item_name=name, last_date=None, days_since=-1))
            else:
                last_date = date.fromisoformat(last)
                stats.append(
                    RareItemStat(
                        item_name=name,
                        last_date=last_date,
                        days_since=(today - last_date).days,
                    )
                )
        return stats

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        with _storage_errors("save trace event"):
            await self._db.execute(
                """
                INSERT INTO trace_events (id, event_type, actor, data, timestamp)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    event.id or str(uuid.uuid4()),
                    event.event_type,
                    event.actor,
                    json.dumps(event.data, default=str),
                    event.timestamp.isoformat(),
                ),
            )
            await self._db.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        conditions = []
        params: list = []

        if after:
            if after.tzinfo is None:
                after = after.replace(tzinfo=timezone.utc)
            conditions.append("timestamp > ?")
            params.append(after.isoformat())
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC
            LIMIT ?
        """
        params.append(limit)

        with _storage_errors("get trace events"):
            cursor = await self._db.execute(query, params)
            rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=datetime.fromisoformat(row[4]).astimezone(timezone.utc),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        tables = [
            "events",
            "items",
            "people",
            "trace_events",
        ]

        with _storage_errors("clear"):
            for table in tables:
                await self._db.execute(f"DELETE FROM {table}")
            await self._db.commit()
