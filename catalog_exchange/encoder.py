"""Snapshot to flat rows.

Products become one row each; their variants become rows in a second
table carrying the owning product's id as a foreign key.
"""

import csv
import io
import logging
import math
from typing import Any, List, NamedTuple, Sequence

from catalog_exchange.config import CSV_ENCODING
from catalog_exchange.errors import EmptyExportError
from catalog_exchange.logging_config import get_logger, log_exchange_event
from catalog_exchange.models import Product, Snapshot, Variant
from catalog_exchange.schema import (
    EMBEDDED_STRUCTURE,
    PRODUCT,
    SCALAR_NUMBER,
    VARIANT,
    Column,
    column_names,
    dump_structure,
    get_columns,
    parse_number,
)

__all__ = [
    "EncodedCatalog",
    "encode_cell",
    "encode_product",
    "encode_variant",
    "encode_snapshot",
    "rows_to_csv",
]

logger = get_logger("encoder")

Row = List[str]


class EncodedCatalog(NamedTuple):
    """Rows for both files, without headers."""

    product_rows: List[Row]
    variant_rows: List[Row]

    @property
    def has_variants(self) -> bool:
        return bool(self.variant_rows)


def _encode_number(column: Column, value: Any, record_id: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if isinstance(value, float) and not math.isfinite(value):
            return ""
        return str(value)
    try:
        number = parse_number(str(value))
    except ValueError:
        log_exchange_event(
            "coerced_cell",
            {
                "message": f"{column.name} on record {record_id!r} is not a number, left blank",
                "record_id": record_id,
                "column": column.name,
            },
            level=logging.WARNING,
            logger_name="encoder",
        )
        return ""
    return "" if number is None else str(number)


def encode_cell(column: Column, value: Any, record_id: str = "") -> str:
    """Encode one value into cell text according to the column's codec.

    Never raises for dirty values: structures that cannot be represented
    as JSON become an empty structure.
    """
    if column.codec == EMBEDDED_STRUCTURE:
        try:
            return dump_structure(value, column.shape)
        except (TypeError, ValueError) as e:
            log_exchange_event(
                "coerced_cell",
                {
                    "message": f"{column.name} on record {record_id!r} replaced with empty structure: {e}",
                    "record_id": record_id,
                    "column": column.name,
                },
                level=logging.WARNING,
                logger_name="encoder",
            )
            return dump_structure(column.shape(), column.shape)
    if column.codec == SCALAR_NUMBER:
        return _encode_number(column, value, record_id)
    return "" if value is None else str(value)


def encode_product(product: Product) -> Row:
    record_id = str(product.id)
    return [
        encode_cell(column, getattr(product, column.attr), record_id)
        for column in get_columns(PRODUCT)
    ]


def encode_variant(variant: Variant, product_id: Any) -> Row:
    """Encode a variant row, using the owning product's id as foreign key."""
    record_id = str(variant.id)
    row: Row = []
    for column in get_columns(VARIANT):
        value = product_id if column.name == "product_id" else getattr(variant, column.attr)
        row.append(encode_cell(column, value, record_id))
    return row


def encode_snapshot(snapshot: Snapshot) -> EncodedCatalog:
    """Encode a snapshot into product rows and variant rows.

    Pure: the snapshot is only read. Product order and each product's
    variant order are preserved.

    Raises:
        EmptyExportError: snapshot has no products
    """
    if not snapshot.products:
        raise EmptyExportError("No products to export.")

    product_rows: List[Row] = []
    variant_rows: List[Row] = []
    for product in snapshot.products:
        product_rows.append(encode_product(product))
        for variant in product.variants:
            variant_rows.append(encode_variant(variant, product.id))

    logger.debug(f"Encoded {len(product_rows)} products and {len(variant_rows)} variants")
    return EncodedCatalog(product_rows, variant_rows)


def rows_to_csv(kind: str, rows: Sequence[Sequence[str]]) -> bytes:
    """Render rows as UTF-8 CSV bytes with the kind's header row first."""
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer)
    writer.writerow(column_names(kind))
    writer.writerows(rows)
    return buffer.getvalue().encode(CSV_ENCODING)
