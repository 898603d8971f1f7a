"""
Strict-schema snapshot normalization.

Validates a snapshot document against a fixed JSON Schema (Draft 7) before
normalizing it. Every violation is collected, each qualified with a
"$"-rooted path, and reported together in one SnapshotSchemaError. After
validation the document is rebuilt following the same schema: properties in
schema order, object arrays sorted by their "sortBy" keys (original index as
the final tie-break), and numbers rounded like the permissive normalizer.

Document shape:

    root            title, type, unitToMeters?, rootComponent
    component       name, transform, materialColor, bodies, children,
                    referenceFrames
    body            name, tessellation
    referenceFrame  name, type, transform
"""

from __future__ import annotations

import json
import math
from typing import Any, Dict, Iterator, List, Sequence, Set, Tuple, Union

from jsonschema import Draft7Validator, validators
from jsonschema.exceptions import ValidationError

from .canon import round_number, serialize

SORT_KEYWORD = "sortBy"


class SnapshotSchemaError(ValueError):
    """
    Raised when a snapshot does not match the expected document shape.

    Attributes:
        errors: Every violation found, in document order
    """

    def __init__(self, message: str, errors: Sequence[str]):
        super().__init__(message)
        self.errors: List[str] = list(errors or [])

    def __str__(self) -> str:
        if not self.errors:
            return self.args[0]
        details = "\n".join(f"  - {e}" for e in self.errors)
        return f"{self.args[0]}\n{details}"


# =============================================================================
# Schema
# =============================================================================

_STRING = {"type": "string", "pattern": r"\S"}
_NUMBER = {"type": "number", "finite": True}
_NUMBER_ARRAY = {"type": "array", "items": _NUMBER}


def _object(properties: Dict[str, Any], optional: Tuple[str, ...] = ()) -> Dict[str, Any]:
    return {
        "type": "object",
        "required": [name for name in properties if name not in optional],
        "additionalProperties": False,
        "properties": properties,
    }


def _object_array(definition: str, *sort_by: str) -> Dict[str, Any]:
    return {
        "type": "array",
        "items": {"$ref": f"#/definitions/{definition}"},
        SORT_KEYWORD: list(sort_by),
    }


SNAPSHOT_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    **_object(
        {
            "title": _STRING,
            "type": _STRING,
            "unitToMeters": _NUMBER,
            "rootComponent": {"$ref": "#/definitions/component"},
        },
        optional=("unitToMeters",),
    ),
    "definitions": {
        "component": _object(
            {
                "name": _STRING,
                "transform": _NUMBER_ARRAY,
                "materialColor": _NUMBER_ARRAY,
                "bodies": _object_array("body", "name"),
                "children": _object_array("component", "name"),
                "referenceFrames": _object_array("referenceFrame", "name", "type"),
            }
        ),
        "body": _object({"name": _STRING, "tessellation": _NUMBER_ARRAY}),
        "referenceFrame": _object(
            {"name": _STRING, "type": _STRING, "transform": _NUMBER_ARRAY}
        ),
    },
}


def _finite(validator, finite, instance, schema) -> Iterator[ValidationError]:
    if finite and isinstance(instance, float) and not math.isfinite(instance):
        yield ValidationError("NaN or Infinity is not supported.")


SnapshotValidator = validators.extend(Draft7Validator, {"finite": _finite})

_VALIDATOR = SnapshotValidator(SNAPSHOT_SCHEMA)

_TYPE_MESSAGES = {
    "string": "must be a non-empty string.",
    "number": "must be a number.",
    "array": "must be an array.",
    "object": "must be an object.",
}


# =============================================================================
# Public API
# =============================================================================


def normalize_snapshot(text: str) -> str:
    """
    Validate snapshot JSON text and return its canonical serialization.

    Raises:
        ValueError: If text is empty
        SnapshotSchemaError: If text is not JSON or violates the schema
    """
    if text is None or not text.strip():
        raise ValueError("Snapshot JSON is required.")

    document = _parse(text)
    errors = _validate_document(document)
    if errors:
        raise SnapshotSchemaError("Snapshot schema validation failed.", errors)

    return serialize(_normalize(document, SNAPSHOT_SCHEMA))


def validate_snapshot(document: Union[str, Any]) -> List[str]:
    """Return every schema violation in a snapshot (text or parsed value)."""
    if isinstance(document, str):
        if not document.strip():
            return ["Snapshot JSON is required."]
        try:
            document = _parse(document)
        except SnapshotSchemaError as exc:
            return list(exc.errors)
    return _validate_document(document)


def _parse(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        message = f"Invalid JSON at line {exc.lineno}, position {exc.colno}: {exc.msg}"
        raise SnapshotSchemaError(message, [message]) from exc
    except RecursionError as exc:
        message = "Invalid JSON: nesting is too deep."
        raise SnapshotSchemaError(message, [message]) from exc


# =============================================================================
# Validation
# =============================================================================


def _validate_document(document: Any) -> List[str]:
    if not isinstance(document, dict):
        return ["Root value must be a JSON object."]

    errors: List[str] = []
    reported: Set[Tuple[str, str]] = set()
    for error in _VALIDATOR.iter_errors(document):
        path = error.json_path
        keyword = error.validator

        # required / additionalProperties describe the parent object; expand
        # them once per object into one message per property.
        if keyword in ("required", "additionalProperties"):
            if (path, keyword) in reported:
                continue
            reported.add((path, keyword))

        errors.extend(_describe(error, path, keyword))
    return errors


def _describe(error: ValidationError, path: str, keyword: str) -> List[str]:
    if keyword == "required":
        return [
            f"{path}.{name}: required field is missing."
            for name in error.validator_value
            if name not in error.instance
        ]
    if keyword == "additionalProperties":
        allowed = error.schema.get("properties", {})
        return [
            f"{path}.{key}: unexpected field."
            for key in error.instance
            if key not in allowed
        ]
    if keyword == "type":
        return [f"{path}: {_TYPE_MESSAGES[error.validator_value]}"]
    if keyword == "pattern":
        return [f"{path}: {_TYPE_MESSAGES['string']}"]
    return [f"{path}: {error.message}"]


# =============================================================================
# Normalization (input already validated)
# =============================================================================


def _resolve(schema: Dict[str, Any]) -> Dict[str, Any]:
    ref = schema.get("$ref")
    if ref is None:
        return schema
    return SNAPSHOT_SCHEMA["definitions"][ref.rsplit("/", 1)[-1]]


def _normalize(value: Any, schema: Dict[str, Any]) -> Any:
    schema = _resolve(schema)
    kind = schema.get("type")

    if kind == "object":
        return {
            name: _normalize(value[name], child)
            for name, child in schema["properties"].items()
            if name in value
        }

    if kind == "array":
        sort_by = schema.get(SORT_KEYWORD, ())
        items = list(enumerate(value))
        if sort_by:
            items.sort(
                key=lambda pair: (tuple(pair[1].get(k) or "" for k in sort_by), pair[0])
            )
        return [_normalize(item, schema["items"]) for _, item in items]

    if kind == "number" and isinstance(value, float):
        return round_number(value)
    return value
