import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

from sqlalchemy import DateTime, column, table
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.expression import TableClause

from seccheck.core.column_fallbacks import (
    ALWAYS_APPLIED,
    COLUMN_FALLBACKS,
    TYPE_DEFAULTS,
    FallbackStrategy,
    strategy_for,
)
from seccheck.core.config import settings
from seccheck.core.constants import INITIAL_STATUS
from seccheck.schemas.capability import ColumnCapability, TableCapabilities
from seccheck.schemas.common import TypeClass

logger = logging.getLogger(__name__)


class BaseRepository:
    """Thin base class that holds the database session.

    Every concrete repository receives an ``AsyncSession`` at
    construction time so that multiple repositories can share the same
    unit-of-work within a single request.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._db.commit()

    async def rollback(self) -> None:
        """Roll back the current transaction."""
        await self._db.rollback()


# ---------------------------------------------------------------------------
# Statement helpers shared by the capability-aware repositories
# ---------------------------------------------------------------------------


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(value: datetime) -> str:
    """ISO-8601 with milliseconds and a ``Z`` suffix (sorts lexically)."""
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Read a stored timestamp (datetime or ISO string) as an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Unparseable timestamp %r", value)
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_for(col: ColumnCapability, value: datetime) -> Any:
    """Bind a datetime for temporal columns, an ISO string otherwise."""
    return value if col.temporal else iso_timestamp(value)


def table_clause(caps: TableCapabilities, names: Iterable[str]) -> TableClause:
    """Lightweight table construct over the given existing columns.

    Temporal columns carry a ``DateTime`` type so each dialect binds and
    parses them natively; everything else is bound untyped.
    """
    cols = []
    for name in names:
        cap = caps.columns[name]
        cols.append(column(name, DateTime(timezone=True)) if cap.temporal else column(name))
    return table(caps.table, *cols)


def has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def coerce_for_column(value: Any, col: ColumnCapability) -> Any:
    """Shape a caller value for the column's storage class.

    Temporal columns only accept values that parse as a timestamp; anything
    else comes back as ``None``.
    """
    if col.temporal:
        parsed = parse_timestamp(value)
        return None if parsed is None else timestamp_for(col, parsed)
    if isinstance(value, bool):
        if col.type_class in (TypeClass.integer, TypeClass.real):
            return int(value)
        return "1" if value else "0"
    if isinstance(value, datetime):
        return timestamp_for(col, value)
    if isinstance(value, (list, tuple)):
        return settings.ANSWER_LIST_DELIMITER.join(str(v) for v in value)
    if isinstance(value, str):
        return value.strip()
    return value


def type_default(col: ColumnCapability) -> Any:
    return TYPE_DEFAULTS[col.type_class]


def build_row(
    caps: TableCapabilities,
    values: Mapping[str, Any],
    *,
    now: datetime,
    fallbacks: Mapping[str, FallbackStrategy] = COLUMN_FALLBACKS,
    generated_id: Optional[str] = None,
    locale: Optional[str] = None,
) -> Dict[str, Any]:
    """Resolve the value of every existing column for an INSERT.

    Resolution order per column:

    1. strategies in ``ALWAYS_APPLIED`` (generated id, timestamps,
       initial status) win whenever the column exists;
    2. a detected locale fills locale columns;
    3. a caller-supplied value is used (coerced to the column class),
       except for lifecycle columns, which only status updates write;
    4. columns with a server default or that accept NULL are omitted;
    5. anything left is NOT NULL without a default and gets a fallback.
    """
    row: Dict[str, Any] = {}
    for name, col in caps.columns.items():
        strategy = strategy_for(name, fallbacks)

        if strategy in ALWAYS_APPLIED:
            if strategy is FallbackStrategy.NOW:
                row[name] = timestamp_for(col, now)
            elif strategy is FallbackStrategy.INITIAL_STATUS:
                row[name] = INITIAL_STATUS
            elif generated_id is not None and col.type_class is TypeClass.text:
                # integer identifiers are left to the store's own sequence
                row[name] = generated_id
            continue

        if strategy is FallbackStrategy.DETECTED_LOCALE and locale:
            row[name] = locale
            continue

        value = None if strategy is FallbackStrategy.LIFECYCLE else values.get(name)
        if has_value(value):
            value = coerce_for_column(value, col)
            if value is not None:
                row[name] = value
                continue

        if not col.required:
            continue

        if strategy is FallbackStrategy.ROW_ID and col.type_class is TypeClass.text:
            row[name] = str(uuid.uuid4())
        elif col.temporal:
            row[name] = now
        else:
            row[name] = type_default(col)
    return row
