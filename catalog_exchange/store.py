"""SQLite catalog store.

Holds persisted catalog state for the CLI: exports read a Snapshot from
here, and SqliteCatalogGateway applies reconciled import drafts back.
Create vs. update is decided by product id alone.
"""

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Sequence, Set, Tuple

from catalog_exchange.config import DB_PATH
from catalog_exchange.errors import ErrorReport
from catalog_exchange.logging_config import get_logger, log_exchange_event
from catalog_exchange.models import Product, ProductDraft, Snapshot, build_snapshot

__all__ = [
    "get_connection",
    "init_db",
    "save_product",
    "get_all_products",
    "load_snapshot",
    "get_product_count",
    "get_variant_count",
    "ReconcileOutcome",
    "SqliteCatalogGateway",
]

logger = get_logger("store")

CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"


@contextmanager
def get_connection(db_path: str = DB_PATH) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str = DB_PATH) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS products (
                pk INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT UNIQUE NOT NULL,
                title TEXT,
                description TEXT,
                price NUMERIC,
                discounted_price NUMERIC,
                quantity NUMERIC,
                status TEXT,
                category_id TEXT,
                attributes_json TEXT,
                image_urls_json TEXT,
                video_url TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Variant ids are optional on import, so rows get a surrogate key
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS variants (
                pk INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT,
                product_id TEXT NOT NULL,
                color TEXT,
                size TEXT,
                price NUMERIC,
                stock NUMERIC,
                sku TEXT,
                FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE CASCADE
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_variants_product_id ON variants(product_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_variants_sku ON variants(sku)")

        conn.commit()


def _write_product(cursor: sqlite3.Cursor, product: Product) -> Tuple[str, str]:
    """Insert or update one product and replace its variants.

    Returns:
        (product id, 'created' or 'updated')
    """
    values = (
        product.title,
        product.description,
        product.price,
        product.discounted_price,
        product.quantity,
        product.status,
        product.category_id,
        json.dumps(product.attributes, ensure_ascii=False, default=str),
        json.dumps(product.image_urls, ensure_ascii=False),
        product.video_url,
    )

    existing = None
    if product.id:
        cursor.execute("SELECT pk FROM products WHERE id = ?", (product.id,))
        existing = cursor.fetchone()

    if existing:
        cursor.execute("""
            UPDATE products SET
                title = ?,
                description = ?,
                price = ?,
                discounted_price = ?,
                quantity = ?,
                status = ?,
                category_id = ?,
                attributes_json = ?,
                image_urls_json = ?,
                video_url = ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        """, values + (product.id,))
        product_id, action = product.id, UPDATED
    else:
        # New products without an id take their surrogate key as id
        cursor.execute("""
            INSERT INTO products (id, title, description, price, discounted_price, quantity,
                                  status, category_id, attributes_json, image_urls_json, video_url)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (product.id or "",) + values)
        product_id, action = product.id, CREATED
        if not product_id:
            product_id = str(cursor.lastrowid)
            cursor.execute("UPDATE products SET id = ? WHERE pk = ?", (product_id, cursor.lastrowid))

    cursor.execute("DELETE FROM variants WHERE product_id = ?", (product_id,))
    cursor.executemany(
        """
        INSERT INTO variants (id, product_id, color, size, price, stock, sku)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (v.id, product_id, v.color, v.size, v.price, v.stock, v.sku)
            for v in product.variants
        ],
    )
    return product_id, action


def save_product(db_path: str, product: Product) -> str:
    """Insert or update a product with its variants, returning its id."""
    init_db(db_path)
    with get_connection(db_path) as conn:
        product_id, _ = _write_product(conn.cursor(), product)
        conn.commit()
        return product_id


def get_all_products(db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Retrieve all products as plain dicts, in insertion order.

    Structured fields stay JSON text and variants are attached as dicts;
    build_snapshot turns these into models.
    """
    with get_connection(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("SELECT * FROM variants ORDER BY pk")
        variants_by_product: Dict[str, List[Dict[str, Any]]] = {}
        for row in cursor.fetchall():
            variant = dict(row)
            del variant["pk"]
            variants_by_product.setdefault(variant["product_id"], []).append(variant)

        cursor.execute("SELECT * FROM products ORDER BY pk")
        products = []
        for row in cursor.fetchall():
            product = dict(row)
            product["attributes"] = product.pop("attributes_json")
            product["image_urls"] = product.pop("image_urls_json")
            product["variants"] = variants_by_product.get(product["id"], [])
            products.append(product)

        return products


def load_snapshot(db_path: str = DB_PATH) -> Snapshot:
    """Build an export Snapshot from the persisted catalog."""
    return build_snapshot(get_all_products(db_path))


def get_product_count(db_path: str = DB_PATH) -> int:
    with get_connection(db_path) as conn:
        return conn.execute("SELECT COUNT(*) FROM products").fetchone()[0]


def get_variant_count(db_path: str = DB_PATH) -> int:
    with get_connection(db_path) as conn:
        return conn.execute("SELECT COUNT(*) FROM variants").fetchone()[0]


# =============================================================================
# Reconciliation
# =============================================================================

@dataclass(frozen=True)
class ReconcileOutcome:
    """What happened to one product draft."""

    product_id: str
    action: str
    row: Optional[int] = None
    variants: int = 0
    skipped_variants: int = 0


class SqliteCatalogGateway:
    """Applies import drafts to the SQLite catalog, upserting by product id.

    With skip_rows_with_errors (the default) a product whose own row had
    cell errors is left untouched, and variant rows with cell errors are
    not written.
    """

    def __init__(self, db_path: str = DB_PATH, skip_rows_with_errors: bool = True):
        self.db_path = db_path
        self.skip_rows_with_errors = skip_rows_with_errors
        init_db(db_path)

    @staticmethod
    def _bad_rows(report: ErrorReport, entity: str) -> Set[int]:
        return {e.row for e in report.cell_errors if e.entity == entity}

    def reconcile(
        self,
        drafts: Sequence[ProductDraft],
        report: ErrorReport,
    ) -> List[ReconcileOutcome]:
        bad_products: Set[int] = set()
        bad_variants: Set[int] = set()
        if self.skip_rows_with_errors:
            bad_products = self._bad_rows(report, "product")
            bad_variants = self._bad_rows(report, "variant")

        outcomes: List[ReconcileOutcome] = []
        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()
            try:
                for draft in drafts:
                    if draft.row is not None and draft.row in bad_products:
                        outcomes.append(ReconcileOutcome(draft.id, SKIPPED, row=draft.row))
                        continue

                    kept = [v for v in draft.variants if v.row is None or v.row not in bad_variants]
                    product = Product(**{
                        name: getattr(draft, name) for name in Product.__dataclass_fields__
                    })
                    product.variants = kept
                    product_id, action = _write_product(cursor, product)
                    outcomes.append(
                        ReconcileOutcome(
                            product_id,
                            action,
                            row=draft.row,
                            variants=len(kept),
                            skipped_variants=len(draft.variants) - len(kept),
                        )
                    )
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                logger.exception("Reconciliation failed, rolled back")
                raise

        counts = {action: sum(1 for o in outcomes if o.action == action)
                  for action in (CREATED, UPDATED, SKIPPED)}
        log_exchange_event(
            "reconcile_finished",
            {
                "message": (
                    f"Reconciled {len(outcomes)} products: {counts[CREATED]} created, "
                    f"{counts[UPDATED]} updated, {counts[SKIPPED]} skipped"
                ),
                "db_path": self.db_path,
                "report_errors": report.total,
                **counts,
            },
            logger_name="store",
        )
        return outcomes
