"""Capability map schemas produced by the schema introspector."""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from seccheck.schemas.common import TypeClass


class ColumnCapability(BaseModel):
    """What the live store says about one column."""

    model_config = ConfigDict(frozen=True)

    name: str
    nullable: bool = True
    has_default: bool = False
    type_class: TypeClass = TypeClass.text
    temporal: bool = False  # bind datetime objects instead of ISO strings

    @property
    def required(self) -> bool:
        """NOT NULL without a default: an insert must supply a value."""
        return not self.nullable and not self.has_default


class TableCapabilities(BaseModel):
    """Columns of one table as reported at introspection time.

    An empty column map means the table does not exist (or could not be
    described) and must not be referenced by generated statements.
    """

    table: str
    columns: Dict[str, ColumnCapability] = Field(default_factory=dict)

    @classmethod
    def from_columns(
        cls, table: str, columns: Iterable[ColumnCapability]
    ) -> "TableCapabilities":
        return cls(table=table, columns={c.name: c for c in columns})

    @property
    def exists(self) -> bool:
        return bool(self.columns)

    def has(self, *names: str) -> bool:
        """Return ``True`` when every column in *names* exists."""
        return all(name in self.columns for name in names)

    def __contains__(self, name: object) -> bool:
        return name in self.columns

    def get(self, name: str) -> Optional[ColumnCapability]:
        return self.columns.get(name)

    def first_present(self, candidates: Iterable[str]) -> Optional[str]:
        """Return the first candidate column name that exists, or ``None``."""
        for name in candidates:
            if name in self.columns:
                return name
        return None

    def column_names(self) -> List[str]:
        return list(self.columns)
