"""Deterministic snapshot normalization.

Reduces a JSON-like tree to one canonical form so two independently produced
but semantically identical trees serialize to identical text.

Guarantees:
- normalize(normalize(x)) == normalize(x)
- Floats are rounded to NUMERIC_PRECISION places, half away from zero,
  on their exact binary value; -0.0 collapses to 0.0
- NaN and infinities become the strings "NaN", "Infinity", "-Infinity"
- Properties named "id" (any case) are removed
- Arrays of objects carrying "name"/"referencePath" are stably sorted
- Other arrays keep their order; object keys keep first-seen order
- Output is indented JSON with locale-independent number formatting
"""
from __future__ import annotations

import dataclasses
import json
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

NUMERIC_PRECISION = 6

ID_KEY = "id"
SORT_KEY_FIELDS = ("name", "referencePath")

_QUANTUM = Decimal(1).scaleb(-NUMERIC_PRECISION)
# Every float at or above 2**52 is already a whole number.
_INTEGRAL_FLOAT = float(2**52)


def normalize_json(text: str) -> str:
    """Parse JSON text and return its canonical serialization."""
    return serialize(canonicalize(json.loads(text)))


def normalize_value(value: Any) -> str:
    """Canonicalize a JSON-like value, dataclass or object with to_dict()."""
    return serialize(canonicalize(to_json_tree(value)))


def serialize(tree: Any) -> str:
    return json.dumps(tree, indent=2, ensure_ascii=False)


def canonicalize(value: Any) -> Any:
    """Map a JSON-like tree to its canonical tree. The input is not modified."""
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return round_number(value)
    if isinstance(value, dict):
        return {
            key: canonicalize(child)
            for key, child in value.items()
            if not _is_id_key(key)
        }
    if isinstance(value, (list, tuple)):
        return _canonicalize_array([canonicalize(item) for item in value])
    return str(value)


def round_number(value: float) -> Any:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if abs(value) >= _INTEGRAL_FLOAT:
        return value
    rounded = float(Decimal(value).quantize(_QUANTUM, rounding=ROUND_HALF_UP))
    if rounded == 0.0:
        rounded = 0.0
    return rounded


def to_json_tree(value: Any) -> Any:
    """Best-effort conversion of model objects to plain JSON-like values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_json_tree(dataclasses.asdict(value))
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_json_tree(to_dict())
    if isinstance(value, dict):
        return {str(k): to_json_tree(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_tree(v) for v in value]
    return value


def _is_id_key(key: Any) -> bool:
    return isinstance(key, str) and key.casefold() == ID_KEY


def _canonicalize_array(items: List[Any]) -> List[Any]:
    if not items or not all(isinstance(item, dict) for item in items):
        return items

    if not any(all(f in item for item in items) for f in SORT_KEY_FIELDS):
        return items

    indexed = sorted(
        enumerate(items),
        key=lambda pair: (_sort_key(pair[1]), pair[0]),
    )
    return [item for _, item in indexed]


def _sort_key(item: Dict[str, Any]) -> str:
    return "|".join(_key_text(item.get(f)) for f in SORT_KEY_FIELDS)


def _key_text(value: Optional[Any]) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, ensure_ascii=False)
