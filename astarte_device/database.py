"""
Property Cache Database

Persists the last known value of every device property so it survives
restarts. SQLAlchemy 2.x with async support, backed by aiosqlite.

Rows are keyed by (interface, path) and remember the interface major version
they were written with. A read that asks for a different major version evicts
the row and reports it as absent.
"""

import logging
import asyncio
from contextlib import asynccontextmanager, nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncGenerator, List, Optional, Protocol

from sqlalchemy import Integer, LargeBinary, String, delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from .errors import AggregateInPropertyError
from .types import Aggregate, JsonPayloadCodec, PayloadCodec

logger = logging.getLogger(__name__)

MEMORY_URL = "sqlite::memory:"


@dataclass(frozen=True)
class StoredProperty:
    """A property row as stored in the cache."""
    interface: str
    path: str
    value: bytes
    interface_major: int


class PropertyStore(Protocol):
    """Storage capability used by the device client to persist properties."""

    async def store_property(self, interface: str, path: str, value: bytes, interface_major: int) -> None: ...

    async def load_property(self, interface: str, path: str, interface_major: int) -> Optional[Any]: ...

    async def delete_property(self, interface: str, path: str) -> None: ...

    async def clear(self) -> None: ...

    async def list_all_properties(self) -> List[StoredProperty]: ...


class Base(DeclarativeBase):
    pass


class PropertyRecord(Base):
    """ORM mapping of the ``propcache`` table."""
    __tablename__ = "propcache"

    interface: Mapped[str] = mapped_column(String, primary_key=True)
    path: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    interface_major: Mapped[int] = mapped_column(Integer, nullable=False)

    def to_stored(self) -> StoredProperty:
        return StoredProperty(
            interface=self.interface,
            path=self.path,
            value=bytes(self.value),
            interface_major=self.interface_major,
        )


def normalize_database_url(url: str) -> str:
    """Convert a sqlite URL to its aiosqlite version.

    ``sqlite::memory:`` is accepted as an alias of an in-memory database.
    """
    if url in (MEMORY_URL, "sqlite://:memory:"):
        return "sqlite+aiosqlite://"
    if url.startswith("sqlite+aiosqlite://"):
        return url
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if url.startswith("sqlite://"):
        # sqlite://props.db names a file relative to the working directory
        name = url[len("sqlite://"):]
        return f"sqlite+aiosqlite:///{name}" if name else "sqlite+aiosqlite://"
    raise ValueError(f"Unsupported property cache URL: {url}")


def _is_memory_database(url: str) -> bool:
    database = make_url(url).database
    return not database or database == ":memory:"


class SqlitePropertyStore:
    """Property store backed by a pooled SQLite connection."""

    def __init__(self, url: str = MEMORY_URL, codec: Optional[PayloadCodec] = None):
        self.url = normalize_database_url(url)
        self.codec: PayloadCodec = codec or JsonPayloadCodec()
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None
        self._session_lock: asyncio.Lock | None = None

    @classmethod
    async def connect(cls, url: str = MEMORY_URL, codec: Optional[PayloadCodec] = None) -> "SqlitePropertyStore":
        """Create a store and make sure its table exists."""
        store = cls(url, codec)
        await store.initialize()
        return store

    async def initialize(self) -> None:
        """Open the connection pool and create the table if absent."""
        logger.info(f"Opening property cache: {self.url}")

        if _is_memory_database(self.url):
            # Every pooled connection would otherwise get its own empty database.
            # The single shared connection only holds one transaction at a time.
            self.engine = create_async_engine(
                self.url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
            self._session_lock = asyncio.Lock()
        else:
            db_path = Path(make_url(self.url).database)
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_async_engine(self.url)

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Property cache initialized")

    async def close(self) -> None:
        """Release the connection pool."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            self._session_lock = None
            logger.info("Property cache closed")

    async def __aenter__(self) -> "SqlitePropertyStore":
        if self.engine is None:
            await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        if not self.session_factory:
            raise RuntimeError("Property cache not initialized. Call initialize() first.")

        async with self._session_lock or nullcontext():
            async with self.session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

    async def store_property(self, interface: str, path: str, value: bytes, interface_major: int) -> None:
        """Insert or fully replace the row for (interface, path)."""
        logger.debug(f"Storing property {interface} {path} in db ({value!r})")

        if not value:
            logger.debug(f"Unsetting {interface} {path}")

        stmt = sqlite_insert(PropertyRecord).values(
            interface=interface,
            path=path,
            value=bytes(value),
            interface_major=interface_major,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[PropertyRecord.interface, PropertyRecord.path],
            set_={
                "value": stmt.excluded.value,
                "interface_major": stmt.excluded.interface_major,
            },
        )

        async with self.get_session() as session:
            await session.execute(stmt)

    async def load_property(self, interface: str, path: str, interface_major: int) -> Optional[Any]:
        """Load and decode a property.

        Returns ``None`` if the property is not cached or was written with a
        different interface major version (in which case it is also deleted).
        An explicitly unset property is returned as ``UNSET``.
        """
        async with self.get_session() as session:
            result = await session.execute(
                select(PropertyRecord.value, PropertyRecord.interface_major).where(
                    PropertyRecord.interface == interface,
                    PropertyRecord.path == path,
                )
            )
            row = result.first()

        if row is None:
            return None

        value, stored_major = row
        logger.debug(f"Loaded property {interface} {path} in db ({value!r})")

        if stored_major != interface_major:
            logger.debug(
                f"Evicting {interface} {path}: stored major {stored_major}, requested {interface_major}"
            )
            await self.delete_property(interface, path)
            return None

        data = self.codec.decode(bytes(value))
        if isinstance(data, Aggregate):
            raise AggregateInPropertyError(interface, path)
        return data.value

    async def delete_property(self, interface: str, path: str) -> None:
        """Remove the row for (interface, path) if present."""
        async with self.get_session() as session:
            await session.execute(
                delete(PropertyRecord).where(
                    PropertyRecord.interface == interface,
                    PropertyRecord.path == path,
                )
            )

    async def clear(self) -> None:
        """Remove every cached property."""
        async with self.get_session() as session:
            result = await session.execute(delete(PropertyRecord))
            logger.debug(f"Cleared {result.rowcount} properties from the cache")

    async def list_all_properties(self) -> List[StoredProperty]:
        """Return every cached row, ordered by interface and path."""
        async with self.get_session() as session:
            result = await session.execute(
                select(PropertyRecord).order_by(PropertyRecord.interface, PropertyRecord.path)
            )
            return [record.to_stored() for record in result.scalars().all()]
