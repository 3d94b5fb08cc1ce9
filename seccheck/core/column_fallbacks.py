"""Declarative fallback table for columns the caller does not fill.

Lead rows are inserted against whatever columns the live ``leads`` table
has.  A handful of column names carry meaning (identifiers, timestamps,
locale, lifecycle status) and always get a value derived from the
request; every other column that is NOT NULL without a server default
gets a value chosen by its storage class.
"""

from enum import Enum
from typing import Dict

from seccheck.schemas.common import TypeClass


class FallbackStrategy(str, Enum):
    NOW = "now"
    GENERATED_ID = "generated_id"
    DETECTED_LOCALE = "detected_locale"
    INITIAL_STATUS = "initial_status"
    ROW_ID = "row_id"
    LIFECYCLE = "lifecycle"
    TYPE_DEFAULT = "type_default"


# Column name -> strategy for the ``leads`` table.  Columns not listed use
# TYPE_DEFAULT and are only filled when the store would otherwise reject
# the insert.
COLUMN_FALLBACKS: Dict[str, FallbackStrategy] = {
    "id": FallbackStrategy.GENERATED_ID,
    "lead_id": FallbackStrategy.GENERATED_ID,
    "created_at": FallbackStrategy.NOW,
    "createdAt": FallbackStrategy.NOW,
    "created": FallbackStrategy.NOW,
    "submitted_at": FallbackStrategy.NOW,
    "updated_at": FallbackStrategy.NOW,
    "updated": FallbackStrategy.NOW,
    "language": FallbackStrategy.DETECTED_LOCALE,
    "lang": FallbackStrategy.DETECTED_LOCALE,
    "locale": FallbackStrategy.DETECTED_LOCALE,
    "status": FallbackStrategy.INITIAL_STATUS,
    # only a status transition writes these; never taken from the caller
    "done_at": FallbackStrategy.LIFECYCLE,
    "completed_at": FallbackStrategy.LIFECYCLE,
}

# Answer and score rows: their own ``id`` is a per-row key, never the lead id
AUXILIARY_COLUMN_FALLBACKS: Dict[str, FallbackStrategy] = {
    "id": FallbackStrategy.ROW_ID,
    "created_at": FallbackStrategy.NOW,
    "createdAt": FallbackStrategy.NOW,
    "created": FallbackStrategy.NOW,
    "updated_at": FallbackStrategy.NOW,
    "updated": FallbackStrategy.NOW,
}

# Strategies whose value is written whenever the column exists, winning over
# anything the caller sent
ALWAYS_APPLIED = frozenset(
    {
        FallbackStrategy.GENERATED_ID,
        FallbackStrategy.NOW,
        FallbackStrategy.INITIAL_STATUS,
    }
)

TYPE_DEFAULTS: Dict[TypeClass, object] = {
    TypeClass.text: "unknown",
    TypeClass.integer: 0,
    TypeClass.real: 0.0,
    TypeClass.blob: b"",
}


def strategy_for(
    column: str, table: Dict[str, FallbackStrategy] = COLUMN_FALLBACKS
) -> FallbackStrategy:
    """Return the fallback strategy configured for *column* in *table*."""
    return table.get(column, FallbackStrategy.TYPE_DEFAULT)
