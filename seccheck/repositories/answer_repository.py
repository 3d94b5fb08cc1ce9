import logging
from datetime import datetime
from typing import Dict, Iterable, Mapping, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from seccheck.core.column_fallbacks import AUXILIARY_COLUMN_FALLBACKS
from seccheck.core.config import settings
from seccheck.core.constants import (
    ANSWER_KEY_COLUMN,
    ANSWER_LEAD_COLUMN,
    ANSWER_VALUE_COLUMN,
    CREATED_AT_COLUMNS,
)
from seccheck.repositories.base import BaseRepository, build_row, table_clause, utcnow
from seccheck.repositories.schema_repository import SchemaRepository
from seccheck.schemas.capability import TableCapabilities
from seccheck.schemas.common import WriteStatus
from seccheck.schemas.lead import AuxiliaryWrite

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (ANSWER_LEAD_COLUMN, ANSWER_KEY_COLUMN, ANSWER_VALUE_COLUMN)


def write_outcome(target: str, written: int, failed: int) -> AuxiliaryWrite:
    if failed == 0:
        status = WriteStatus.persisted
    elif written == 0:
        status = WriteStatus.failed
    else:
        status = WriteStatus.partial
    return AuxiliaryWrite(target=target, status=status, written=written, failed=failed)


class AnswerRepository(BaseRepository):
    """Best-effort storage of questionnaire answers, one row per key."""

    def __init__(
        self,
        db,
        schema: Optional[SchemaRepository] = None,
        table_name: Optional[str] = None,
    ) -> None:
        super().__init__(db)
        self._schema = schema or SchemaRepository(db)
        self._table = table_name or settings.ANSWERS_TABLE

    async def capabilities(self) -> TableCapabilities:
        return await self._schema.capabilities(self._table)

    async def insert_many(
        self,
        lead_id: str,
        answers: Mapping[str, str],
        *,
        now: Optional[datetime] = None,
    ) -> AuxiliaryWrite:
        """Write every answer in its own transaction.

        *answers* must already be flattened to text.  A failing row is
        rolled back, logged and counted; the remaining rows are still
        attempted.  Never raises for storage problems.
        """
        caps = await self.capabilities()
        if not caps.exists:
            logger.warning(
                "Answers for lead %s not stored: table %s is missing",
                lead_id,
                self._table,
            )
            return AuxiliaryWrite(
                target=self._table,
                status=WriteStatus.skipped,
                failed=len(answers),
                reason="table missing",
            )
        if not caps.has(*REQUIRED_COLUMNS):
            missing = [c for c in REQUIRED_COLUMNS if c not in caps]
            logger.warning(
                "Answers for lead %s not stored: %s lacks %s",
                lead_id,
                self._table,
                ", ".join(missing),
            )
            return AuxiliaryWrite(
                target=self._table,
                status=WriteStatus.skipped,
                failed=len(answers),
                reason="missing columns: " + ", ".join(missing),
            )

        now = now or utcnow()
        written = failed = 0
        for key, value in answers.items():
            row = build_row(
                caps,
                {
                    ANSWER_LEAD_COLUMN: lead_id,
                    ANSWER_KEY_COLUMN: key,
                    ANSWER_VALUE_COLUMN: value,
                },
                now=now,
                fallbacks=AUXILIARY_COLUMN_FALLBACKS,
            )
            # an empty answer is stored as "", not left NULL
            row[ANSWER_VALUE_COLUMN] = value
            try:
                await self._db.execute(insert(table_clause(caps, row)).values(**row))
                await self._db.commit()
                written += 1
            except SQLAlchemyError:
                await self._db.rollback()
                failed += 1
                logger.warning(
                    "Answer %s for lead %s could not be stored",
                    key,
                    lead_id,
                    exc_info=True,
                )

        outcome = write_outcome(self._table, written, failed)
        if outcome.degraded:
            logger.warning(
                "Answers for lead %s %s (%d written, %d failed)",
                lead_id,
                outcome.status.value,
                written,
                failed,
            )
        return outcome

    async def get_for_leads(self, lead_ids: Iterable[str]) -> Dict[str, Dict[str, str]]:
        """Return ``{lead_id: {question_key: answer_value}}`` for *lead_ids*.

        Rows are read oldest first so that a repeated key resolves to the
        most recently written value.
        """
        ids = [str(i) for i in lead_ids]
        caps = await self.capabilities()
        if not ids or not caps.has(*REQUIRED_COLUMNS):
            return {}

        order_columns = [caps.first_present(CREATED_AT_COLUMNS)]
        if "id" in caps:
            order_columns.append("id")
        order_columns = [c for c in order_columns if c]

        tbl = table_clause(caps, [*REQUIRED_COLUMNS, *order_columns])
        stmt = (
            select(
                tbl.c[ANSWER_LEAD_COLUMN],
                tbl.c[ANSWER_KEY_COLUMN],
                tbl.c[ANSWER_VALUE_COLUMN],
            )
            .where(tbl.c[ANSWER_LEAD_COLUMN].in_(ids))
            .order_by(*(tbl.c[c] for c in order_columns))
        )
        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError:
            await self._db.rollback()
            logger.warning("Reading answers from %s failed", self._table, exc_info=True)
            return {}

        answers: Dict[str, Dict[str, str]] = {}
        for lead_id, key, value in result.all():
            answers.setdefault(str(lead_id), {})[str(key)] = (
                "" if value is None else str(value)
            )
        return answers

    async def delete_all(self) -> int:
        """Delete every answer row; returns the number removed (not committed)."""
        caps = await self.capabilities()
        if not caps.exists:
            return 0
        result = await self._db.execute(delete(table_clause(caps, [])))
        return max(result.rowcount or 0, 0)
