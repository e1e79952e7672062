"""High-level export and import workflows.

These tie the pure pieces (encoder, decoder, linker) to a transport on one
side and a reconciliation gateway on the other. Each call runs to
completion before returning; nothing is written until a complete result
exists.
"""

import asyncio
import time
from typing import Any, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from catalog_exchange.config import (
    PRODUCTS_FILENAME,
    TIMESTAMPED_PRODUCTS_PATTERN,
    TIMESTAMPED_VARIANTS_PATTERN,
    VARIANTS_FILENAME,
)
from catalog_exchange.decoder import decode_file
from catalog_exchange.encoder import encode_snapshot, rows_to_csv
from catalog_exchange.errors import ErrorReport, SchemaMismatch
from catalog_exchange.linker import LinkResult, link_drafts
from catalog_exchange.logging_config import log_exchange_event
from catalog_exchange.models import ProductDraft, Snapshot, VariantDraft
from catalog_exchange.schema import PRODUCT, VARIANT
from catalog_exchange.transport import TransportAdapter

__all__ = [
    "ReconciliationGateway",
    "export_filenames",
    "export_catalog",
    "import_payloads",
    "import_files",
    "reconcile",
    "export_catalog_async",
    "import_files_async",
]


class ReconciliationGateway(Protocol):
    """Owner of the create-vs-update decision for assembled drafts."""

    def reconcile(self, drafts: Sequence[ProductDraft], report: ErrorReport) -> Sequence[Any]:
        """Apply drafts and return one outcome per product draft."""
        ...


def export_filenames(timestamped: bool = False, stamp: Optional[int] = None) -> Tuple[str, str]:
    """Return (products filename, variants filename).

    Timestamped names carry epoch milliseconds, e.g. products_export_1700000000000.csv.
    """
    if not timestamped:
        return PRODUCTS_FILENAME, VARIANTS_FILENAME
    stamp = int(time.time() * 1000) if stamp is None else stamp
    return (
        TIMESTAMPED_PRODUCTS_PATTERN.format(stamp=stamp),
        TIMESTAMPED_VARIANTS_PATTERN.format(stamp=stamp),
    )


def export_catalog(
    snapshot: Snapshot,
    transport: TransportAdapter,
    timestamped: bool = False,
    stamp: Optional[int] = None,
) -> List[str]:
    """Encode a snapshot and save the products file, plus the variants file
    when there is at least one variant.

    Both files are fully rendered before the first save.

    Returns:
        Locations reported by the transport, products first

    Raises:
        EmptyExportError: snapshot has no products; nothing is saved
    """
    encoded = encode_snapshot(snapshot)
    products_name, variants_name = export_filenames(timestamped, stamp)

    payloads = [(products_name, rows_to_csv(PRODUCT, encoded.product_rows))]
    if encoded.has_variants:
        payloads.append((variants_name, rows_to_csv(VARIANT, encoded.variant_rows)))

    locations = [transport.save_file(data, name) for name, data in payloads]

    log_exchange_event(
        "export_finished",
        {
            "message": (
                f"Exported {len(encoded.product_rows)} products and "
                f"{len(encoded.variant_rows)} variants"
            ),
            "products": len(encoded.product_rows),
            "variants": len(encoded.variant_rows),
            "files": locations,
        },
        logger_name="workflows",
    )
    return locations


def import_payloads(payloads: Iterable[Tuple[str, Union[bytes, str]]]) -> LinkResult:
    """Decode any mix of product and variant files, then link them.

    Each payload is (name, data). The header decides which schema applies.
    A file whose header matches no schema is recorded in the report's
    schema_errors and contributes no drafts; the other files still decode.

    Raises:
        UnreadableFileError: a payload is not UTF-8 CSV or has no header
    """
    products: List[ProductDraft] = []
    variants: List[VariantDraft] = []
    report = ErrorReport()

    for name, data in payloads:
        try:
            kind, result = decode_file(data, source=name)
        except SchemaMismatch as e:
            report.schema_errors.append(e)
            continue
        if kind == PRODUCT:
            products.extend(result.drafts)
        else:
            variants.extend(result.drafts)
        report = report.merge(result.errors)

    linked = link_drafts(products, variants, report)
    log_exchange_event(
        "import_finished",
        {
            "message": f"Assembled {len(linked.products)} product drafts ({linked.errors.total} problems)",
            "products": len(linked.products),
            "variants": sum(len(p.variants) for p in linked.products),
            "schema_errors": len(linked.errors.schema_errors),
            "cell_errors": len(linked.errors.cell_errors),
            "orphan_errors": len(linked.errors.orphan_errors),
        },
        logger_name="workflows",
    )
    return linked


def import_files(transport: TransportAdapter, filenames: Sequence[str]) -> LinkResult:
    """Read files through a transport and import them together."""
    return import_payloads((name, transport.read_file(name)) for name in filenames)


def reconcile(result: LinkResult, gateway: ReconciliationGateway) -> Sequence[Any]:
    """Hand assembled drafts and their error report to the gateway."""
    return gateway.reconcile(result.products, result.errors)


async def export_catalog_async(
    snapshot: Snapshot,
    transport: TransportAdapter,
    timestamped: bool = False,
) -> List[str]:
    """Run export_catalog in a worker thread so the event loop stays free."""
    return await asyncio.to_thread(export_catalog, snapshot, transport, timestamped)


async def import_files_async(transport: TransportAdapter, filenames: Sequence[str]) -> LinkResult:
    """Run import_files in a worker thread so the event loop stays free."""
    return await asyncio.to_thread(import_files, transport, list(filenames))
