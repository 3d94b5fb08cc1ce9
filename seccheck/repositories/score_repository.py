import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from seccheck.core.column_fallbacks import AUXILIARY_COLUMN_FALLBACKS
from seccheck.core.config import settings
from seccheck.core.constants import (
    CREATED_AT_COLUMNS,
    SCORE_FIELD_COLUMNS,
    SCORE_LEAD_COLUMN,
    UPDATED_AT_COLUMNS,
)
from seccheck.repositories.base import (
    BaseRepository,
    build_row,
    table_clause,
    timestamp_for,
    utcnow,
)
from seccheck.repositories.schema_repository import SchemaRepository
from seccheck.schemas.capability import TableCapabilities
from seccheck.schemas.common import WriteStatus
from seccheck.schemas.lead import AuxiliaryWrite
from seccheck.schemas.score import ScoreResult

logger = logging.getLogger(__name__)


class ScoreRepository(BaseRepository):
    """Best-effort storage of the computed score, one row per lead."""

    def __init__(
        self,
        db,
        schema: Optional[SchemaRepository] = None,
        table_name: Optional[str] = None,
    ) -> None:
        super().__init__(db)
        self._schema = schema or SchemaRepository(db)
        self._table = table_name or settings.SCORES_TABLE

    async def capabilities(self) -> TableCapabilities:
        return await self._schema.capabilities(self._table)

    @staticmethod
    def field_columns(caps: TableCapabilities) -> Dict[str, str]:
        """Map ScoreResult field -> the column storing it in this deployment."""
        mapping: Dict[str, str] = {}
        for field, aliases in SCORE_FIELD_COLUMNS.items():
            column = caps.first_present(aliases)
            if column is not None:
                mapping[field] = column
        return mapping

    async def upsert(
        self,
        lead_id: str,
        result: ScoreResult,
        *,
        now: Optional[datetime] = None,
    ) -> AuxiliaryWrite:
        """Update the lead's score row, or insert one when none exists."""
        caps = await self.capabilities()
        columns = self.field_columns(caps)
        reason = None
        if not caps.exists:
            reason = "table missing"
        elif SCORE_LEAD_COLUMN not in caps:
            reason = f"missing column: {SCORE_LEAD_COLUMN}"
        elif not columns:
            reason = "no score columns"
        if reason:
            logger.warning(
                "Score for lead %s not stored: %s (%s)", lead_id, self._table, reason
            )
            return AuxiliaryWrite(
                target=self._table, status=WriteStatus.skipped, failed=1, reason=reason
            )

        now = now or utcnow()
        payload = result.model_dump(mode="json")
        values: Dict[str, Any] = {column: payload[field] for field, column in columns.items()}

        try:
            tbl = table_clause(caps, [SCORE_LEAD_COLUMN])
            existing = await self._db.execute(
                select(tbl.c[SCORE_LEAD_COLUMN])
                .where(tbl.c[SCORE_LEAD_COLUMN] == lead_id)
                .limit(1)
            )
            if existing.first() is not None:
                for name in UPDATED_AT_COLUMNS:
                    if name in caps:
                        values[name] = timestamp_for(caps.columns[name], now)
                tbl = table_clause(caps, [SCORE_LEAD_COLUMN, *values])
                await self._db.execute(
                    update(tbl)
                    .where(tbl.c[SCORE_LEAD_COLUMN] == lead_id)
                    .values(**values)
                )
            else:
                row = build_row(
                    caps,
                    {SCORE_LEAD_COLUMN: lead_id, **values},
                    now=now,
                    fallbacks=AUXILIARY_COLUMN_FALLBACKS,
                )
                await self._db.execute(insert(table_clause(caps, row)).values(**row))
            await self._db.commit()
        except SQLAlchemyError:
            await self._db.rollback()
            logger.warning(
                "Score for lead %s could not be stored", lead_id, exc_info=True
            )
            return AuxiliaryWrite(
                target=self._table,
                status=WriteStatus.failed,
                failed=1,
                reason="write failed",
            )

        return AuxiliaryWrite(target=self._table, status=WriteStatus.persisted, written=1)

    async def get_for_leads(self, lead_ids: Iterable[str]) -> Dict[str, ScoreResult]:
        """Return the compatible persisted scores of *lead_ids*.

        Rows missing a field, or whose numbers do not reproduce the
        scoring identities, are left out so that callers recompute them.
        """
        ids = [str(i) for i in lead_ids]
        caps = await self.capabilities()
        columns = self.field_columns(caps)
        if not ids or SCORE_LEAD_COLUMN not in caps:
            return {}
        if len(columns) < len(SCORE_FIELD_COLUMNS):
            logger.debug("%s cannot hold a complete score; recomputing", self._table)
            return {}

        order = [c for c in (caps.first_present(CREATED_AT_COLUMNS),) if c]
        if "id" in caps:
            order.append("id")
        tbl = table_clause(caps, [SCORE_LEAD_COLUMN, *columns.values(), *order])
        stmt = (
            select(tbl.c[SCORE_LEAD_COLUMN], *(tbl.c[c] for c in columns.values()))
            .where(tbl.c[SCORE_LEAD_COLUMN].in_(ids))
            .order_by(*(tbl.c[c] for c in order))
        )
        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError:
            await self._db.rollback()
            logger.warning("Reading scores from %s failed", self._table, exc_info=True)
            return {}

        scores: Dict[str, ScoreResult] = {}
        for row in result.mappings().all():
            lead_id = str(row[SCORE_LEAD_COLUMN])
            data = {field: row[column] for field, column in columns.items()}
            if isinstance(data["risk_level"], str):
                data["risk_level"] = data["risk_level"].strip().lower()
            try:
                scores[lead_id] = ScoreResult(**data)
            except (PydanticValidationError, TypeError):
                logger.debug("Persisted score of lead %s is incompatible", lead_id)
                scores.pop(lead_id, None)
        return scores

    async def delete_all(self) -> int:
        """Delete every score row; returns the number removed (not committed)."""
        caps = await self.capabilities()
        if not caps.exists:
            return 0
        result = await self._db.execute(delete(table_clause(caps, [])))
        return max(result.rowcount or 0, 0)
