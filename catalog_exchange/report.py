"""Tabular views of import results for the command line."""

from typing import List

import pandas as pd

from catalog_exchange.errors import ErrorReport
from catalog_exchange.linker import LinkResult

__all__ = ["REPORT_COLUMNS", "error_report_frame", "summarize_import"]

REPORT_COLUMNS: List[str] = ["category", "entity", "row", "column", "value", "detail"]


def error_report_frame(report: ErrorReport) -> pd.DataFrame:
    """One row per error, ordered schema, cell, shape, orphan."""
    df = pd.DataFrame(report.as_records(), columns=REPORT_COLUMNS)
    df["row"] = df["row"].astype("Int64")
    return df


def summarize_import(result: LinkResult) -> pd.DataFrame:
    """Per-product summary of an import: id, title, source row, variant count."""
    df = pd.DataFrame(
        [
            {
                "id": product.id,
                "title": product.title,
                "row": product.row,
                "variants": len(product.variants),
            }
            for product in result.products
        ],
        columns=["id", "title", "row", "variants"],
    )
    df["row"] = df["row"].astype("Int64")
    return df
