"""Reattach decoded variants to their product drafts."""

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, NamedTuple, Optional, Sequence

from catalog_exchange.errors import ErrorReport, OrphanVariantError
from catalog_exchange.logging_config import log_exchange_event
from catalog_exchange.models import ProductDraft, VariantDraft

__all__ = ["LinkResult", "link_drafts"]


class LinkResult(NamedTuple):
    """Assembled product drafts and the accumulated error report."""

    products: List[ProductDraft]
    errors: ErrorReport


def _dedupe_products(products: Sequence[ProductDraft]) -> List[ProductDraft]:
    """Keep the last draft for each non-blank id, at its own position."""
    last_index: Dict[str, int] = {}
    for index, product in enumerate(products):
        if product.id:
            last_index[product.id] = index

    survivors: List[ProductDraft] = []
    for index, product in enumerate(products):
        if product.id and last_index[product.id] != index:
            log_exchange_event(
                "product_superseded",
                {
                    "message": f"Product {product.id!r} at row {product.row} superseded by a later row",
                    "product_id": product.id,
                    "row": product.row,
                    "winning_row": products[last_index[product.id]].row,
                },
                level=logging.DEBUG,
                logger_name="linker",
            )
            continue
        survivors.append(product)
    return survivors


def link_drafts(
    product_drafts: Sequence[ProductDraft],
    variant_drafts: Sequence[VariantDraft],
    errors: Optional[ErrorReport] = None,
) -> LinkResult:
    """Group variant drafts under the product drafts they reference.

    Duplicate product ids resolve last-write-wins. Variants referencing no
    surviving product are reported as orphans and attached nowhere. Any
    decode errors passed in are carried into the returned report.

    Inputs are not modified; returned products are fresh copies.
    """
    report = ErrorReport().merge(errors) if errors is not None else ErrorReport()
    products = _dedupe_products(product_drafts)
    known_ids = {product.id for product in products if product.id}

    grouped: Dict[str, List[VariantDraft]] = defaultdict(list)
    for variant in variant_drafts:
        if variant.product_id and variant.product_id in known_ids:
            grouped[variant.product_id].append(variant)
            continue
        report.orphan_errors.append(
            OrphanVariantError(variant_id=variant.id, product_id=variant.product_id, row=variant.row)
        )
        log_exchange_event(
            "orphan_variant",
            {
                "message": f"Variant {variant.id!r} references unknown product {variant.product_id!r}",
                "variant_id": variant.id,
                "product_id": variant.product_id,
                "row": variant.row,
            },
            level=logging.WARNING,
            logger_name="linker",
        )

    assembled = [
        replace(product, variants=list(grouped.get(product.id, [])) if product.id else [])
        for product in products
    ]
    return LinkResult(assembled, report)
