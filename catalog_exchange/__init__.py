"""Bulk catalog exchange: products and variants as linked CSV files."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from catalog_exchange.decoder import DecodeResult, decode_file, decode_rows, read_csv
from catalog_exchange.encoder import EncodedCatalog, encode_snapshot, rows_to_csv
from catalog_exchange.errors import (
    CellParseError,
    EmptyExportError,
    ErrorReport,
    ExchangeError,
    OrphanVariantError,
    RowShapeError,
    SchemaMismatch,
    TransportError,
    UnknownEntityKindError,
    UnreadableFileError,
)
from catalog_exchange.linker import LinkResult, link_drafts
from catalog_exchange.models import (
    Product,
    ProductDraft,
    Snapshot,
    Variant,
    VariantDraft,
    build_snapshot,
)
from catalog_exchange.schema import PRODUCT, VARIANT, column_names, detect_kind, get_columns
from catalog_exchange.transport import FileSystemTransport, HttpTransport, TransportAdapter
from catalog_exchange.workflows import (
    export_catalog,
    import_files,
    import_payloads,
    reconcile,
)

__all__ = [
    # Version
    "__version__",
    # Schema
    "PRODUCT",
    "VARIANT",
    "get_columns",
    "column_names",
    "detect_kind",
    # Models
    "Product",
    "Variant",
    "ProductDraft",
    "VariantDraft",
    "Snapshot",
    "build_snapshot",
    # Errors
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
    # Core functions
    "encode_snapshot",
    "EncodedCatalog",
    "rows_to_csv",
    "read_csv",
    "decode_rows",
    "decode_file",
    "DecodeResult",
    "link_drafts",
    "LinkResult",
    # Workflows
    "TransportAdapter",
    "FileSystemTransport",
    "HttpTransport",
    "export_catalog",
    "import_payloads",
    "import_files",
    "reconcile",
]
