import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.types import (
    Boolean,
    DateTime,
    Float,
    Integer,
    LargeBinary,
    Numeric,
)

from seccheck.core.cache import CacheService
from seccheck.core.config import settings
from seccheck.core.constants import MINIMUM_LEAD_COLUMNS
from seccheck.repositories.base import BaseRepository
from seccheck.schemas.capability import ColumnCapability, TableCapabilities
from seccheck.schemas.common import TypeClass

logger = logging.getLogger(__name__)


def classify_type(col_type: Any) -> TypeClass:
    """Map a reflected SQLAlchemy type onto a storage class."""
    if isinstance(col_type, (Integer, Boolean)):
        return TypeClass.integer
    if isinstance(col_type, (Float, Numeric)):
        return TypeClass.real
    if isinstance(col_type, LargeBinary):
        return TypeClass.blob
    return TypeClass.text


def to_capability(reflected: Dict[str, Any]) -> ColumnCapability:
    """Build a :class:`ColumnCapability` from an ``Inspector.get_columns`` row."""
    col_type = reflected.get("type")
    has_default = (
        reflected.get("default") is not None
        or reflected.get("autoincrement") is True
        or bool(reflected.get("identity"))
        or bool(reflected.get("computed"))
        # an integer primary key is a rowid alias on SQLite
        or (bool(reflected.get("primary_key")) and isinstance(col_type, Integer))
    )
    return ColumnCapability(
        name=reflected["name"],
        nullable=bool(reflected.get("nullable", True)),
        has_default=has_default,
        type_class=classify_type(col_type),
        temporal=isinstance(col_type, DateTime),
    )


def _reflect_columns(sync_conn, table_name: str) -> List[Dict[str, Any]]:
    return inspect(sync_conn).get_columns(table_name)


class SchemaRepository(BaseRepository):
    """Describes the live shape of the tables the adapter writes to.

    Results are memoised for the lifetime of the repository (one request)
    and, when a :class:`CacheService` is wired in, shared between
    requests for ``SCHEMA_CACHE_TTL`` seconds.  Entries expire with the
    TTL or are dropped explicitly through :meth:`forget`.
    """

    def __init__(self, db, cache: Optional[CacheService] = None) -> None:
        super().__init__(db)
        self._cache: CacheService = cache or CacheService()
        self._memo: Dict[str, TableCapabilities] = {}

    async def describe(self, table_name: str) -> List[ColumnCapability]:
        """Return the columns of *table_name*; ``[]`` if it does not exist."""
        caps = await self.capabilities(table_name)
        return list(caps.columns.values())

    async def capabilities(self, table_name: str) -> TableCapabilities:
        """Return the capability map of *table_name* (never raises)."""
        if table_name in self._memo:
            return self._memo[table_name]

        cache_key = self._cache_key(table_name)
        cached = await self._cache.get_json(cache_key)
        if cached is not None:
            try:
                caps = TableCapabilities.model_validate(cached)
                self._memo[table_name] = caps
                return caps
            except ValueError:
                logger.warning("Discarding malformed schema cache entry %s", cache_key)

        try:
            columns = await self._introspect(table_name)
        except SQLAlchemyError:
            logger.warning(
                "Schema introspection failed for %s; assuming required minimum",
                table_name,
                exc_info=True,
            )
            await self._db.rollback()
            caps = TableCapabilities.from_columns(
                table_name, self._required_minimum(table_name)
            )
            self._memo[table_name] = caps
            return caps

        caps = TableCapabilities.from_columns(table_name, columns)
        self._memo[table_name] = caps
        await self._cache.set_json(
            cache_key, caps.model_dump(mode="json"), ttl=settings.SCHEMA_CACHE_TTL
        )
        return caps

    async def forget(self, table_name: Optional[str] = None) -> None:
        """Drop memoised and cached capability maps.

        With no *table_name* every table this repository has described is
        forgotten.  Call after a migration so the next request introspects
        again instead of waiting for the TTL.
        """
        tables = list(self._memo) if table_name is None else [table_name]
        for name in tables:
            self._memo.pop(name, None)
            await self._cache.delete(self._cache_key(name))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _introspect(self, table_name: str) -> List[ColumnCapability]:
        conn = await self._db.connection()
        try:
            reflected = await conn.run_sync(_reflect_columns, table_name)
        except NoSuchTableError:
            logger.debug("Table %s does not exist in this deployment", table_name)
            return []
        return [to_capability(col) for col in reflected]

    @staticmethod
    def _required_minimum(table_name: str) -> List[ColumnCapability]:
        if table_name != settings.LEADS_TABLE:
            return []
        return [ColumnCapability(name=name) for name in MINIMUM_LEAD_COLUMNS]

    def _cache_key(self, table_name: str) -> str:
        database = self._db.get_bind().url.database or ""
        return f"seccheck:schema:{database}:{table_name}"
