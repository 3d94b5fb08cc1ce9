import logging
import uuid
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from seccheck.core.column_fallbacks import COLUMN_FALLBACKS
from seccheck.core.config import settings
from seccheck.core.constants import (
    COMPLETED_AT_COLUMNS,
    CONSENT_FLAGS,
    CREATED_AT_COLUMNS,
    INITIAL_STATUS,
    LEAD_ATTRIBUTE_COLUMNS,
    LEAD_ID_COLUMNS,
    UPDATED_AT_COLUMNS,
)
from seccheck.core.exceptions import StorageError
from seccheck.repositories.base import (
    BaseRepository,
    build_row,
    iso_timestamp,
    parse_timestamp,
    table_clause,
    timestamp_for,
    utcnow,
)
from seccheck.repositories.schema_repository import SchemaRepository
from seccheck.schemas.capability import TableCapabilities
from seccheck.schemas.common import LeadStatus, TypeClass
from seccheck.schemas.lead import LeadFilters, LeadRecord

logger = logging.getLogger(__name__)

LANGUAGE_COLUMNS = ("language", "lang", "locale")

TRUTHY_TEXT = ("1", "true", "yes", "on")


def to_flag(value: Any) -> Optional[bool]:
    """Stored 1/0 (or legacy text) -> bool; ``None`` stays unknown."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in TRUTHY_TEXT


class LeadRepository(BaseRepository):
    """Every statement that touches the ``leads`` table.

    Statements are generated per call from the live capability map, so
    only columns the deployment actually has are ever referenced.
    """

    def __init__(
        self,
        db,
        schema: Optional[SchemaRepository] = None,
        table_name: Optional[str] = None,
    ) -> None:
        super().__init__(db)
        self._schema = schema or SchemaRepository(db)
        self._table = table_name or settings.LEADS_TABLE

    async def capabilities(self) -> TableCapabilities:
        return await self._schema.capabilities(self._table)

    @staticmethod
    def identifier_column(caps: TableCapabilities) -> Optional[str]:
        """First text identifier column; integer ids cannot hold a UUID."""
        for name in LEAD_ID_COLUMNS:
            col = caps.get(name)
            if col is not None and col.type_class is TypeClass.text:
                return name
        return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(
        self,
        attributes: Mapping[str, Any],
        *,
        locale: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Insert a lead and commit; return its generated id.

        Raises :class:`StorageError` when the table is missing, has no
        identifier column, or the insert fails.
        """
        caps = await self.capabilities()
        if not caps.exists:
            raise StorageError(f"Table {self._table!r} does not exist")
        id_column = self.identifier_column(caps)
        if id_column is None:
            raise StorageError(f"Table {self._table!r} has no text identifier column")

        lead_id = str(uuid.uuid4())
        row = build_row(
            caps,
            self._column_values(caps, attributes),
            now=now or utcnow(),
            fallbacks=COLUMN_FALLBACKS,
            generated_id=lead_id,
            locale=locale,
        )

        tbl = table_clause(caps, row)
        try:
            await self._db.execute(insert(tbl).values(**row))
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            logger.error("Lead insert into %s failed", self._table, exc_info=True)
            raise StorageError("Could not store the lead") from exc

        logger.info("Created lead %s (%d columns)", lead_id, len(row))
        return lead_id

    async def update_status(
        self, lead_id: str, status: str, *, now: Optional[datetime] = None
    ) -> None:
        """Set the status and keep the completion timestamp in step with it."""
        caps = await self.capabilities()
        id_column = self.identifier_column(caps)
        if "status" not in caps or id_column is None:
            raise StorageError(f"Table {self._table!r} has no status column")

        now = now or utcnow()
        values: Dict[str, Any] = {"status": status}
        completed = caps.first_present(COMPLETED_AT_COLUMNS)
        if completed:
            values[completed] = (
                timestamp_for(caps.columns[completed], now)
                if status == LeadStatus.done.value
                else None
            )
        for name in UPDATED_AT_COLUMNS:
            if name in caps:
                values[name] = timestamp_for(caps.columns[name], now)

        tbl = table_clause(caps, [id_column, *values])
        try:
            await self._db.execute(
                update(tbl).where(tbl.c[id_column] == lead_id).values(**values)
            )
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            logger.error("Status update of lead %s failed", lead_id, exc_info=True)
            raise StorageError("Could not update the lead status") from exc

    async def delete_all(self) -> int:
        """Delete every lead row; returns the number removed (not committed)."""
        caps = await self.capabilities()
        if not caps.exists:
            return 0
        result = await self._db.execute(delete(table_clause(caps, [])))
        return max(result.rowcount or 0, 0)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(self, lead_id: str) -> Optional[LeadRecord]:
        """Return a single lead by identifier, or ``None``."""
        caps = await self.capabilities()
        id_column = self.identifier_column(caps)
        if id_column is None:
            return None

        tbl = table_clause(caps, caps.column_names())
        result = await self._db.execute(
            select(tbl).where(tbl.c[id_column] == lead_id).limit(1)
        )
        row = result.mappings().first()
        if row is None:
            return None
        return self.to_record(caps, row)

    async def list(self, filters: Optional[LeadFilters] = None) -> List[LeadRecord]:
        """Return leads matching *filters*, newest first.

        Date, status and discount filters are pushed into SQL; risk is not
        a column and is left to the caller.
        """
        filters = filters or LeadFilters()
        caps = await self.capabilities()
        id_column = self.identifier_column(caps)
        if id_column is None:
            return []

        tbl = table_clause(caps, caps.column_names())
        stmt = select(tbl)

        created = caps.first_present(CREATED_AT_COLUMNS)
        if filters.date_from or filters.date_to:
            if created is None:
                # without a creation timestamp no lead falls inside a range
                return []
            col = caps.columns[created]
            if filters.date_from:
                stmt = stmt.where(tbl.c[created] >= self._day_start(col, filters.date_from))
            if filters.date_to:
                stmt = stmt.where(tbl.c[created] <= self._day_end(col, filters.date_to))

        if filters.status is not None:
            if "status" in caps:
                status_col = tbl.c["status"]
                if filters.status.value == INITIAL_STATUS:
                    stmt = stmt.where(
                        or_(status_col == INITIAL_STATUS, status_col.is_(None))
                    )
                else:
                    stmt = stmt.where(status_col == filters.status.value)
            elif filters.status.value != INITIAL_STATUS:
                return []

        if filters.discount is not None:
            discount = caps.first_present(LEAD_ATTRIBUTE_COLUMNS["discount_opt_in"])
            if discount is None:
                if filters.discount:
                    return []
            else:
                stmt = stmt.where(
                    self._discount_clause(caps, tbl, discount, filters.discount)
                )

        if created:
            stmt = stmt.order_by(tbl.c[created].desc(), tbl.c[id_column].desc())
        else:
            stmt = stmt.order_by(tbl.c[id_column].desc())

        result = await self._db.execute(stmt)
        return [self.to_record(caps, row) for row in result.mappings().all()]

    # ------------------------------------------------------------------
    # Mapping helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _column_values(
        caps: TableCapabilities, attributes: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """Map canonical attributes onto whichever alias column exists."""
        values: Dict[str, Any] = {
            key: value for key, value in attributes.items() if key in caps
        }
        for canonical, aliases in LEAD_ATTRIBUTE_COLUMNS.items():
            if canonical not in attributes:
                continue
            target = caps.first_present(aliases)
            if target is not None:
                values[target] = attributes[canonical]
        return values

    def to_record(self, caps: TableCapabilities, row: Mapping[str, Any]) -> LeadRecord:
        """Normalise a raw row onto canonical :class:`LeadRecord` fields."""
        consumed = set(LEAD_ID_COLUMNS) | set(UPDATED_AT_COLUMNS)
        data: Dict[str, Any] = {"id": str(row[self.identifier_column(caps)])}

        created = caps.first_present(CREATED_AT_COLUMNS)
        if created:
            data["created_at"] = parse_timestamp(row.get(created))
        consumed.update(CREATED_AT_COLUMNS)

        completed = caps.first_present(COMPLETED_AT_COLUMNS)
        if completed:
            data["completed_at"] = parse_timestamp(row.get(completed))
        consumed.update(COMPLETED_AT_COLUMNS)

        for name in LANGUAGE_COLUMNS:
            if row.get(name):
                data["language"] = str(row[name])
                break
        consumed.update(LANGUAGE_COLUMNS)

        for canonical, aliases in LEAD_ATTRIBUTE_COLUMNS.items():
            consumed.update(aliases)
            value = next(
                (row[a] for a in aliases if a in caps and row.get(a) is not None),
                None,
            )
            if canonical in CONSENT_FLAGS:
                data[canonical] = to_flag(value)
            elif value is not None:
                data[canonical] = str(value)

        data["status"] = str(row.get("status") or INITIAL_STATUS)
        consumed.add("status")

        for name, value in row.items():
            if name in consumed or isinstance(value, (bytes, bytearray, memoryview)):
                continue
            data[name] = value
        return LeadRecord(**data)

    @staticmethod
    def _day_start(col, day: date) -> Any:
        if col.temporal:
            return datetime.combine(day, time.min, timezone.utc)
        # the bare date sorts at or below both "YYYY-MM-DDT..." and
        # "YYYY-MM-DD HH:MM:SS" spellings of that day
        return day.isoformat()

    @staticmethod
    def _day_end(col, day: date) -> Any:
        if col.temporal:
            return datetime.combine(day, time.max, timezone.utc)
        # millisecond precision matches what iso_timestamp() writes
        return iso_timestamp(datetime.combine(day, time(23, 59, 59, 999000), timezone.utc))

    @staticmethod
    def _discount_clause(caps, tbl, name: str, opted_in: bool):
        col = tbl.c[name]
        if caps.columns[name].type_class in (TypeClass.integer, TypeClass.real):
            return col != 0 if opted_in else or_(col.is_(None), col == 0)
        truthy = func.lower(col).in_(TRUTHY_TEXT)
        return truthy if opted_in else or_(col.is_(None), ~truthy)

