"""SQLAlchemy-backed memory store.

One row per (user_id, package_id, key). Values are opaque bytes; the
sequencer owns serialization. Errors propagate to the caller, which
decides whether to degrade.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stepflow.memory.models import Base, StateRow

logger = logging.getLogger(__name__)

_CONFLICT_COLUMNS = ["user_id", "package_id", "key"]

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class MemoryStore:
    """Read/write access to the ``states`` table."""

    def __init__(self, url: str | None = None, *, engine: Engine | None = None, echo: bool = False) -> None:
        if engine is None:
            if url is None:
                raise ValueError("MemoryStore needs a database url or an engine")
            parsed = self._expand_sqlite_url(url)
            engine = create_engine(parsed, echo=echo, **self._engine_options(parsed))
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    # ── Initialization ───────────────────────────────────────

    @staticmethod
    def _expand_sqlite_url(url: str) -> URL:
        """Expand ~ in a file-backed SQLite url and create its parent directory."""
        parsed = make_url(url)
        if not parsed.drivername.startswith("sqlite"):
            return parsed
        if parsed.database in (None, "", ":memory:"):
            return parsed
        path = Path(parsed.database).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        return parsed.set(database=str(path))

    @staticmethod
    def _engine_options(url: URL) -> dict:
        # The hub drives sequencers on executor threads. An in-memory database
        # only exists on its own connection, so every thread must share it.
        if url.drivername.startswith("sqlite") and url.database in (None, "", ":memory:"):
            return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        return {}

    def create_schema(self) -> None:
        """Create the states table if missing. Idempotent."""
        Base.metadata.create_all(self.engine)
        logger.info("Memory schema ready: %s", self.engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        self.engine.dispose()

    # ── Keyed access ─────────────────────────────────────────

    def get(self, package_id: str, user_id: str, key: str) -> bytes | None:
        stmt = select(StateRow.value).where(
            StateRow.user_id == user_id,
            StateRow.package_id == package_id,
            StateRow.key == key,
        )
        with self._sessions() as session:
            return session.execute(stmt).scalar_one_or_none()

    def put(self, package_id: str, user_id: str, key: str, value: bytes) -> None:
        """Upsert the value. On conflict the stored value is replaced."""
        insert = _DIALECT_INSERTS.get(self.engine.dialect.name)
        with self._sessions.begin() as session:
            if insert is None:
                self._put_portable(session, package_id, user_id, key, value)
                return
            stmt = insert(StateRow).values(
                key=key, value=value, package_id=package_id, user_id=user_id
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=_CONFLICT_COLUMNS,
                set_={"value": stmt.excluded["value"], "updated_at": func.now()},
            )
            session.execute(stmt)

    def _put_portable(
        self, session: Session, package_id: str, user_id: str, key: str, value: bytes
    ) -> None:
        """Select-then-write for dialects without ON CONFLICT support."""
        row = session.execute(
            select(StateRow).where(
                StateRow.user_id == user_id,
                StateRow.package_id == package_id,
                StateRow.key == key,
            )
        ).scalar_one_or_none()
        if row is None:
            session.add(StateRow(key=key, value=value, package_id=package_id, user_id=user_id))
        else:
            row.value = value

    def delete(self, package_id: str, user_id: str, key: str) -> None:
        stmt = delete(StateRow).where(
            StateRow.user_id == user_id,
            StateRow.package_id == package_id,
            StateRow.key == key,
        )
        with self._sessions.begin() as session:
            session.execute(stmt)
