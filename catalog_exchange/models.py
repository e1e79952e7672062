"""Data models for catalog snapshots and import drafts."""

import json
import logging
import math
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from catalog_exchange.logging_config import log_exchange_event
from catalog_exchange.schema import parse_number

__all__ = [
    "Product",
    "Variant",
    "ProductDraft",
    "VariantDraft",
    "Snapshot",
    "build_snapshot",
    "normalize_product",
    "normalize_variant",
]

Number = Union[int, float]


@dataclass
class Variant:
    """A purchasable variant owned by a product."""

    id: str = ""
    product_id: str = ""
    color: str = ""
    size: str = ""
    price: Optional[Number] = None
    stock: Optional[Number] = None
    sku: str = ""


@dataclass
class Product:
    """A catalog product and its ordered variants.

    attributes is an unordered key/value mapping, image_urls keeps its order.
    """

    id: str = ""
    title: str = ""
    description: str = ""
    price: Optional[Number] = None
    discounted_price: Optional[Number] = None
    quantity: Optional[Number] = None
    status: str = ""
    category_id: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)
    image_urls: List[str] = field(default_factory=list)
    video_url: str = ""
    variants: List[Variant] = field(default_factory=list)


@dataclass
class VariantDraft(Variant):
    """A variant decoded from external rows, not yet reconciled.

    row is the 1-based data row the draft came from.
    """

    row: Optional[int] = None


@dataclass
class ProductDraft(Product):
    """A product decoded from external rows, not yet reconciled."""

    row: Optional[int] = None


@dataclass(frozen=True)
class Snapshot:
    """Read-only, ordered catalog state taken at export time."""

    products: Tuple[Product, ...] = ()

    @property
    def variant_count(self) -> int:
        return sum(len(product.variants) for product in self.products)

    @classmethod
    def from_products(cls, products: Iterable[Product]) -> "Snapshot":
        return cls(products=tuple(products))


# =============================================================================
# Normalization at the snapshot boundary
# =============================================================================
# Upstream records are loosely typed: structured fields arrive either parsed
# or as JSON text, numbers either as numbers or as strings. Everything below
# turns them into the one shape the encoder expects.

def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _number(value: Any, field_name: str, record_id: str) -> Optional[Number]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    try:
        return parse_number(str(value))
    except ValueError:
        log_exchange_event(
            "coerced_number",
            {
                "message": f"Unreadable {field_name} on record {record_id!r}, left blank",
                "record_id": record_id,
                "field": field_name,
                "value": str(value),
            },
            level=logging.WARNING,
        )
        return None


def _structure(value: Any, shape: type, field_name: str, record_id: str) -> Any:
    """Return value as a fresh dict or list, parsing JSON text when needed."""
    if value is None or value == "":
        return shape()
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except (ValueError, RecursionError):
            value = None
    if shape is dict and isinstance(value, Mapping):
        return {str(key): item for key, item in value.items()}
    if shape is list and isinstance(value, (list, tuple)):
        return list(value)

    log_exchange_event(
        "coerced_structure",
        {
            "message": f"Unreadable {field_name} on record {record_id!r}, replaced with empty {shape.__name__}",
            "record_id": record_id,
            "field": field_name,
        },
        level=logging.WARNING,
    )
    return shape()


def normalize_variant(record: Union[Variant, Mapping[str, Any]], product_id: str = "") -> Variant:
    """Build a Variant from a loose mapping (or copy an existing Variant).

    Accepts `variant_id` as an alias for `id`. When the record has no
    product reference the owning product's id is used.
    """
    if isinstance(record, Variant):
        record = asdict(record)
    raw_id = record.get("id")
    variant_id = _text(raw_id if raw_id is not None else record.get("variant_id"))
    return Variant(
        id=variant_id,
        product_id=_text(record.get("product_id")) or product_id,
        color=_text(record.get("color")),
        size=_text(record.get("size")),
        price=_number(record.get("price"), "price", variant_id),
        stock=_number(record.get("stock"), "stock", variant_id),
        sku=_text(record.get("sku")),
    )


def normalize_product(record: Union[Product, Mapping[str, Any]]) -> Product:
    """Build a Product from a loose mapping (or copy an existing Product)."""
    if isinstance(record, Product):
        record = asdict(record)
    product_id = _text(record.get("id"))
    raw_variants = _structure(record.get("variants"), list, "variants", product_id)
    variants = [
        normalize_variant(v, product_id=product_id)
        for v in raw_variants
        if isinstance(v, (Variant, Mapping))
    ]
    return Product(
        id=product_id,
        title=_text(record.get("title")),
        description=_text(record.get("description")),
        price=_number(record.get("price"), "price", product_id),
        discounted_price=_number(record.get("discounted_price"), "discounted_price", product_id),
        quantity=_number(record.get("quantity"), "quantity", product_id),
        status=_text(record.get("status")),
        category_id=_text(record.get("category_id")),
        attributes=_structure(record.get("attributes"), dict, "attributes", product_id),
        image_urls=[
            _text(url)
            for url in _structure(record.get("image_urls"), list, "image_urls", product_id)
        ],
        video_url=_text(record.get("video_url")),
        variants=variants,
    )


def build_snapshot(records: Iterable[Union[Product, Mapping[str, Any]]]) -> Snapshot:
    """Normalize loosely-typed catalog records into a Snapshot.

    Records keep their order; each product's variants keep theirs.
    """
    return Snapshot.from_products(normalize_product(record) for record in records)
