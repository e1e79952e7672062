"""Configuration and constants for catalog exchange."""

import os
from pathlib import Path

from dotenv import load_dotenv

__all__ = [
    "PROJECT_ROOT",
    "DB_PATH",
    "EXPORT_DIR",
    "LOG_DIR",
    "PRODUCTS_FILENAME",
    "VARIANTS_FILENAME",
    "TIMESTAMPED_PRODUCTS_PATTERN",
    "TIMESTAMPED_VARIANTS_PATTERN",
    "CSV_ENCODING",
    "CSV_FIELD_SIZE_LIMIT",
    "HTTP_HEADERS",
    "HTTP_TIMEOUT",
    "HTTP_MAX_RETRIES",
    "HTTP_BACKOFF_BASE",
    "HTTP_MAX_BACKOFF",
    "HTTP_RETRY_STATUS_CODES",
]

PROJECT_ROOT = Path(__file__).parent.parent

# Allow a local .env to override defaults (same pattern as the web app)
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")

# Storage paths
DB_PATH = os.getenv("CATALOG_DB_PATH", "data/catalog.db")
EXPORT_DIR = os.getenv("CATALOG_EXPORT_DIR", "data/exports")
LOG_DIR = Path(os.getenv("CATALOG_LOG_DIR", str(PROJECT_ROOT / "logs")))

# Export file names
PRODUCTS_FILENAME = "products.csv"
VARIANTS_FILENAME = "variants.csv"

# Browser-style export names, stamp is epoch milliseconds
TIMESTAMPED_PRODUCTS_PATTERN = "products_export_{stamp}.csv"
TIMESTAMPED_VARIANTS_PATTERN = "variants_export_{stamp}.csv"

CSV_ENCODING = "utf-8"

# Largest single cell accepted on import (csv module default is 131072)
CSV_FIELD_SIZE_LIMIT = int(os.getenv("CATALOG_CSV_FIELD_SIZE_LIMIT", str(2**31 - 1)))

# HTTP transport
HTTP_HEADERS = {
    "User-Agent": "catalog-exchange/0.1",
    "Accept": "text/csv, */*;q=0.5",
}
HTTP_TIMEOUT = float(os.getenv("CATALOG_HTTP_TIMEOUT", "15"))

# Retry settings with exponential backoff
HTTP_MAX_RETRIES = int(os.getenv("CATALOG_HTTP_MAX_RETRIES", "3"))
HTTP_BACKOFF_BASE = float(os.getenv("CATALOG_HTTP_BACKOFF_BASE", "2.0"))
HTTP_MAX_BACKOFF = float(os.getenv("CATALOG_HTTP_MAX_BACKOFF", "30.0"))
HTTP_RETRY_STATUS_CODES = {429, 500, 502, 503, 504}
