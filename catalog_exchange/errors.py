"""Error taxonomy for catalog exchange.

Whole-batch failures are exceptions. Row-scoped problems are plain records
collected into an ErrorReport and returned next to whatever drafts could
be built.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

__all__ = [
    "ExchangeError",
    "SchemaMismatch",
    "EmptyExportError",
    "UnreadableFileError",
    "TransportError",
    "UnknownEntityKindError",
    "CellParseError",
    "RowShapeError",
    "OrphanVariantError",
    "ErrorReport",
]


class ExchangeError(Exception):
    """Base class for failures that abort a whole export or file decode."""
    pass


class SchemaMismatch(ExchangeError):
    """Raised when a header does not match the registered columns."""

    def __init__(
        self,
        kind: Optional[str],
        expected: Sequence[str],
        found: Sequence[str],
        source: Optional[str] = None,
    ):
        self.kind = kind
        self.expected = list(expected)
        self.found = list(found)
        self.source = source
        self.missing = [name for name in self.expected if name not in self.found]
        self.unexpected = [name for name in self.found if name not in self.expected]
        self.duplicates = sorted({name for name in self.found if self.found.count(name) > 1})

        target = f"'{kind}' schema" if kind else "any registered schema"
        details = []
        if self.missing:
            details.append(f"missing {self.missing}")
        if self.unexpected:
            details.append(f"unexpected {self.unexpected}")
        if self.duplicates:
            details.append(f"duplicated {self.duplicates}")
        where = f" in {source}" if source else ""
        super().__init__(
            f"Header{where} does not match {target}: " + ("; ".join(details) or "no columns")
        )


class EmptyExportError(ExchangeError):
    """Raised when an export is requested for a snapshot with no products."""
    pass


class UnreadableFileError(ExchangeError):
    """Raised when a payload is not UTF-8 text or has no header row."""
    pass


class TransportError(ExchangeError):
    """Raised when a transport cannot read or write a file."""
    pass


class UnknownEntityKindError(LookupError):
    """Raised when the schema registry is asked for a kind it does not define."""
    pass


@dataclass(frozen=True)
class CellParseError:
    """A single cell failed its codec; the row still produced a draft."""

    entity: str
    row: int
    column: str
    value: str
    reason: str


@dataclass(frozen=True)
class RowShapeError:
    """A row carried more cells than the header declares; extras were ignored."""

    entity: str
    row: int
    expected: int
    found: int


@dataclass(frozen=True)
class OrphanVariantError:
    """A variant whose product reference matched no product in the batch."""

    variant_id: str
    product_id: str
    row: Optional[int] = None


@dataclass
class ErrorReport:
    """Accumulated problems from decoding and linking one import batch."""

    schema_errors: List[SchemaMismatch] = field(default_factory=list)
    cell_errors: List[CellParseError] = field(default_factory=list)
    shape_errors: List[RowShapeError] = field(default_factory=list)
    orphan_errors: List[OrphanVariantError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.schema_errors)
            + len(self.cell_errors)
            + len(self.shape_errors)
            + len(self.orphan_errors)
        )

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def merge(self, other: "ErrorReport") -> "ErrorReport":
        """Return a new report holding this report's errors followed by other's."""
        return ErrorReport(
            schema_errors=self.schema_errors + other.schema_errors,
            cell_errors=self.cell_errors + other.cell_errors,
            shape_errors=self.shape_errors + other.shape_errors,
            orphan_errors=self.orphan_errors + other.orphan_errors,
        )

    def as_records(self) -> List[Dict[str, Any]]:
        """Flatten the report into uniform dicts, one per error.

        Keys: category, entity, row, column, value, detail.
        """
        records: List[Dict[str, Any]] = []
        for err in self.schema_errors:
            records.append({
                "category": "schema",
                "entity": err.kind or "",
                "row": None,
                "column": None,
                "value": err.source or "",
                "detail": str(err),
            })
        for cell in self.cell_errors:
            records.append({
                "category": "cell",
                "entity": cell.entity,
                "row": cell.row,
                "column": cell.column,
                "value": cell.value,
                "detail": cell.reason,
            })
        for shape in self.shape_errors:
            records.append({
                "category": "shape",
                "entity": shape.entity,
                "row": shape.row,
                "column": None,
                "value": "",
                "detail": f"expected {shape.expected} cells, found {shape.found}",
            })
        for orphan in self.orphan_errors:
            records.append({
                "category": "orphan",
                "entity": "variant",
                "row": orphan.row,
                "column": "product_id",
                "value": orphan.product_id,
                "detail": f"variant '{orphan.variant_id}' references unknown product",
            })
        return records
