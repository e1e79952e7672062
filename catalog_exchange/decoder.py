"""Raw CSV rows to drafts.

Decoding is total once the header is accepted: every non-blank row yields
a best-effort draft, and cells that fail their codec are reported instead
of raised.
"""

import csv
import io
import logging
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from catalog_exchange.config import CSV_ENCODING, CSV_FIELD_SIZE_LIMIT
from catalog_exchange.errors import (
    CellParseError,
    ErrorReport,
    RowShapeError,
    SchemaMismatch,
    UnreadableFileError,
)
from catalog_exchange.logging_config import get_logger, log_exchange_event
from catalog_exchange.models import ProductDraft, VariantDraft
from catalog_exchange.schema import (
    EMBEDDED_STRUCTURE,
    PRODUCT,
    SCALAR_NUMBER,
    Column,
    detect_kind,
    get_columns,
    parse_number,
    parse_structure,
    validate_header,
)

__all__ = [
    "DecodeResult",
    "read_csv",
    "decode_cell",
    "decode_rows",
    "decode_file",
]

logger = get_logger("decoder")

Draft = Union[ProductDraft, VariantDraft]


class DecodeResult(NamedTuple):
    """Drafts in input row order, plus the row-scoped errors met on the way."""

    drafts: List[Draft]
    errors: ErrorReport


def read_csv(data: Union[bytes, str], source: Optional[str] = None) -> Tuple[List[str], List[List[str]]]:
    """Split a CSV payload into its header and remaining rows.

    Blank rows are kept so row numbers line up with the file.

    Raises:
        UnreadableFileError: payload is not UTF-8 CSV or has no header row
    """
    where = f" {source}" if source else ""
    if isinstance(data, bytes):
        try:
            text = data.decode(CSV_ENCODING + "-sig")
        except UnicodeDecodeError as e:
            raise UnreadableFileError(f"File{where} is not valid UTF-8: {e}") from e
    else:
        text = data

    try:
        csv.field_size_limit(CSV_FIELD_SIZE_LIMIT)
        records = list(csv.reader(io.StringIO(text, newline="")))
    except csv.Error as e:
        raise UnreadableFileError(f"File{where} is not readable CSV: {e}") from e

    if not records or not any(cell.strip() for cell in records[0]):
        raise UnreadableFileError(f"File{where} has no header row")
    return records[0], records[1:]


def decode_cell(column: Column, text: str) -> Any:
    """Decode one cell by its column codec.

    Raises:
        ValueError: the cell does not parse; callers fall back to column.empty()
    """
    if column.codec == SCALAR_NUMBER:
        return parse_number(text)
    if column.codec == EMBEDDED_STRUCTURE:
        return parse_structure(text, column.shape)
    return text


def _decode_row(
    kind: str,
    columns: Sequence[Column],
    positions: Dict[str, int],
    cells: Sequence[str],
    row_number: int,
    errors: ErrorReport,
) -> Draft:
    values: Dict[str, Any] = {}
    for column in columns:
        position = positions[column.name]
        text = cells[position] if position < len(cells) else ""
        try:
            values[column.attr] = decode_cell(column, text)
        except ValueError as e:
            values[column.attr] = column.empty()
            errors.cell_errors.append(
                CellParseError(
                    entity=kind,
                    row=row_number,
                    column=column.name,
                    value=text,
                    reason=str(e),
                )
            )

    if kind == PRODUCT:
        return ProductDraft(row=row_number, **values)
    return VariantDraft(row=row_number, **values)


def decode_rows(
    kind: str,
    header: Sequence[str],
    rows: Sequence[Sequence[str]],
    source: Optional[str] = None,
) -> DecodeResult:
    """Decode rows of one entity kind into drafts.

    Row numbers are 1-based and count data rows after the header,
    blank rows included.

    Raises:
        SchemaMismatch: header does not match the kind's columns; nothing
            is decoded
        UnknownEntityKindError: kind is not registered
    """
    columns = get_columns(kind)
    try:
        names = validate_header(kind, header, source=source)
    except SchemaMismatch as e:
        log_exchange_event(
            "schema_mismatch",
            {"message": str(e), "kind": kind, "source": source, "found": e.found},
            level=logging.ERROR,
            logger_name="decoder",
        )
        raise

    positions = {name: index for index, name in enumerate(names)}
    drafts: List[Draft] = []
    errors = ErrorReport()

    for row_number, cells in enumerate(rows, start=1):
        if not any(cell.strip() for cell in cells):
            continue
        if len(cells) > len(names):
            errors.shape_errors.append(
                RowShapeError(entity=kind, row=row_number, expected=len(names), found=len(cells))
            )
        drafts.append(_decode_row(kind, columns, positions, cells, row_number, errors))

    log_exchange_event(
        "decode_finished",
        {
            "message": f"Decoded {len(drafts)} {kind} rows ({errors.total} problems)",
            "kind": kind,
            "source": source,
            "drafts": len(drafts),
            "cell_errors": len(errors.cell_errors),
            "shape_errors": len(errors.shape_errors),
        },
        logger_name="decoder",
    )
    return DecodeResult(drafts, errors)


def decode_file(
    data: Union[bytes, str],
    kind: Optional[str] = None,
    source: Optional[str] = None,
) -> Tuple[str, DecodeResult]:
    """Decode a whole CSV payload.

    When kind is None the header decides which schema applies.

    Returns:
        (kind, DecodeResult)

    Raises:
        UnreadableFileError: payload is not UTF-8 CSV or has no header row
        SchemaMismatch: header matches no (or not the requested) schema
    """
    header, rows = read_csv(data, source=source)
    if kind is None:
        try:
            kind = detect_kind(header, source=source)
        except SchemaMismatch as e:
            logger.error(str(e))
            raise
    return kind, decode_rows(kind, header, rows, source=source)
