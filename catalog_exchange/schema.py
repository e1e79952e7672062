"""Fixed column definitions for the product and variant files.

Each entity kind maps to an ordered list of columns. A column names its
CSV header, the model attribute it carries, and the codec that turns the
value into a single cell and back.
"""

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from catalog_exchange.errors import SchemaMismatch, UnknownEntityKindError

__all__ = [
    "PRODUCT",
    "VARIANT",
    "ENTITY_KINDS",
    "SCALAR_TEXT",
    "SCALAR_NUMBER",
    "EMBEDDED_STRUCTURE",
    "Column",
    "get_columns",
    "column_names",
    "detect_kind",
    "validate_header",
    "normalize_header",
    "parse_number",
    "parse_structure",
    "dump_structure",
]

Number = Union[int, float]

PRODUCT = "product"
VARIANT = "variant"

SCALAR_TEXT = "scalar-text"
SCALAR_NUMBER = "scalar-number"
EMBEDDED_STRUCTURE = "embedded-structure"

_INT_RE = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True)
class Column:
    """One CSV column.

    `shape` is only set for embedded-structure columns: dict for a
    key/value mapping, list for an ordered sequence of strings.
    """

    name: str
    attr: str
    codec: str
    shape: Optional[type] = None

    def empty(self) -> Any:
        """Fallback value used when a cell cannot be decoded."""
        if self.codec == EMBEDDED_STRUCTURE:
            return self.shape()
        if self.codec == SCALAR_NUMBER:
            return 0
        return ""


_REGISTRY: Dict[str, Tuple[Column, ...]] = {
    PRODUCT: (
        Column("id", "id", SCALAR_TEXT),
        Column("title", "title", SCALAR_TEXT),
        Column("description", "description", SCALAR_TEXT),
        Column("price", "price", SCALAR_NUMBER),
        Column("discounted_price", "discounted_price", SCALAR_NUMBER),
        Column("quantity", "quantity", SCALAR_NUMBER),
        Column("status", "status", SCALAR_TEXT),
        Column("category_id", "category_id", SCALAR_TEXT),
        Column("attributes", "attributes", EMBEDDED_STRUCTURE, dict),
        Column("image_urls", "image_urls", EMBEDDED_STRUCTURE, list),
        Column("video_url", "video_url", SCALAR_TEXT),
    ),
    VARIANT: (
        Column("variant_id", "id", SCALAR_TEXT),
        Column("product_id", "product_id", SCALAR_TEXT),
        Column("color", "color", SCALAR_TEXT),
        Column("size", "size", SCALAR_TEXT),
        Column("price", "price", SCALAR_NUMBER),
        Column("stock", "stock", SCALAR_NUMBER),
        Column("sku", "sku", SCALAR_TEXT),
    ),
}

ENTITY_KINDS: Tuple[str, ...] = tuple(_REGISTRY)


def get_columns(kind: str) -> Tuple[Column, ...]:
    """Return the ordered columns for an entity kind.

    Raises:
        UnknownEntityKindError: kind is not 'product' or 'variant'
    """
    try:
        return _REGISTRY[kind]
    except KeyError:
        raise UnknownEntityKindError(
            f"Unknown entity kind {kind!r}; expected one of {list(ENTITY_KINDS)}"
        ) from None


def column_names(kind: str) -> List[str]:
    return [column.name for column in get_columns(kind)]


def normalize_header(header: Sequence[str]) -> List[str]:
    """Strip whitespace and a leading byte-order mark from header cells."""
    names = [str(name).strip() for name in header]
    if names:
        names[0] = names[0].lstrip("\ufeff").strip()
    return names


def validate_header(kind: str, header: Sequence[str], source: Optional[str] = None) -> List[str]:
    """Check a header against the registered columns for kind.

    Column order may differ from the registry; every registered column must
    appear exactly once and nothing else may appear.

    Returns:
        The normalized header

    Raises:
        SchemaMismatch: header does not match the kind's columns
    """
    expected = column_names(kind)
    names = normalize_header(header)
    if len(names) != len(set(names)) or set(names) != set(expected):
        raise SchemaMismatch(kind, expected, names, source=source)
    return names


def detect_kind(header: Sequence[str], source: Optional[str] = None) -> str:
    """Pick the entity kind whose columns match header.

    Raises:
        SchemaMismatch: header matches no registered schema
    """
    names = normalize_header(header)
    for kind in ENTITY_KINDS:
        if len(names) == len(set(names)) and set(names) == set(column_names(kind)):
            return kind

    # Report against the closest schema so the caller sees useful details
    closest = max(ENTITY_KINDS, key=lambda k: len(set(names) & set(column_names(k))))
    raise SchemaMismatch(None, column_names(closest), names, source=source)


# =============================================================================
# Cell codecs
# =============================================================================

def parse_number(text: str) -> Optional[Number]:
    """Parse a numeric cell.

    Blank text is None. Integer text gives an int, other finite decimal
    text gives a float.

    Raises:
        ValueError: text is not a finite number
    """
    text = text.strip()
    if not text:
        return None
    if _INT_RE.match(text):
        return int(text)
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"non-finite number {text!r}")
    return value


def _check_shape(value: Any, shape: type) -> Any:
    if shape is dict:
        if not isinstance(value, dict):
            raise ValueError(f"expected a JSON object, got {type(value).__name__}")
        return value
    if not isinstance(value, list):
        raise ValueError(f"expected a JSON array, got {type(value).__name__}")
    if not all(isinstance(item, str) for item in value):
        raise ValueError("expected a JSON array of strings")
    return value


def parse_structure(text: str, shape: type) -> Any:
    """Parse an embedded-structure cell into a dict or list of strings.

    Blank text is an empty structure.

    Raises:
        ValueError: text is not JSON or has the wrong shape
    """
    if not text.strip():
        return shape()
    try:
        value = json.loads(text)
    except RecursionError:
        raise ValueError("structure nested too deeply") from None
    return _check_shape(value, shape)


def dump_structure(value: Any, shape: type) -> str:
    """Serialize a structure compactly, the way JSON.stringify does.

    Raises:
        ValueError: value is the wrong shape or holds non-JSON data
        TypeError: value holds objects json cannot serialize
    """
    if value is None:
        value = shape()
    _check_shape(value, shape)
    return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
