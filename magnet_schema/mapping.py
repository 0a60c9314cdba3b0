# magnet_schema/mapping.py
"""Canonical schema fragments for primitives and built-in containers."""

import copy
from typing import Any

from magnet_schema.errors import UnsupportedShapeError
from magnet_schema.shapes import PrimitiveKind

SchemaDocument = dict[str, Any]

NULL_TYPE = "null"

UUID_PATTERN = (
    "^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

_FRAGMENTS: dict[PrimitiveKind, SchemaDocument] = {
    PrimitiveKind.BOOL: {"type": "boolean"},
    PrimitiveKind.F32: {"type": "number"},
    PrimitiveKind.F64: {"type": "number"},
    PrimitiveKind.STRING: {"type": "string"},
    PrimitiveKind.URL: {"type": "string"},
    PrimitiveKind.UUID: {"type": "string", "pattern": UUID_PATTERN},
    PrimitiveKind.BINARY: {"bsonType": "binData"},
    PrimitiveKind.DATETIME: {"bsonType": "date"},
}


def primitive_schema(kind: PrimitiveKind) -> SchemaDocument:
    """
    Return a fresh schema fragment for a primitive kind.

    Integers up to 32 bits are stored as ``int``, wider ones as ``long``.
    Unsigned integers are stored signed, so they get an implicit ``minimum: 0``.
    """
    if kind.is_integer:
        doc: SchemaDocument = {"bsonType": "int" if kind.width <= 32 else "long"}
        if not kind.signed:
            doc["minimum"] = 0
        return doc
    return copy.deepcopy(_FRAGMENTS[kind])


def array_schema(items: SchemaDocument) -> SchemaDocument:
    return {"type": "array", "items": items}


def set_schema(items: SchemaDocument) -> SchemaDocument:
    return {"type": "array", "uniqueItems": True, "items": items}


def fixed_array_schema(items: SchemaDocument, length: int) -> SchemaDocument:
    return {"type": "array", "minItems": length, "maxItems": length, "items": items}


def tuple_schema(items: list[SchemaDocument]) -> SchemaDocument:
    return {
        "type": "array",
        "items": items,
        "additionalItems": False,
        "minItems": len(items),
        "maxItems": len(items),
    }


def map_schema(key: PrimitiveKind, values: SchemaDocument) -> SchemaDocument:
    """
    Object whose every property matches ``values``.

    The key kind adds nothing to the schema (document keys are always strings)
    but it must display as plain text.

    Raises:
        UnsupportedShapeError: If ``key`` is not a text-displayable kind
    """
    if not key.is_text:
        raise UnsupportedShapeError(
            f"map keys must display as text; '{key.value}' keys are not supported"
        )
    return {"type": "object", "additionalProperties": values}


def document_schema() -> SchemaDocument:
    return {"type": "object"}


def object_id_schema() -> SchemaDocument:
    return {"bsonType": "objectId"}


def unit_struct_schema() -> SchemaDocument:
    return {"type": "array", "maxItems": 0}


def widen_nullable(doc: SchemaDocument) -> SchemaDocument:
    """
    Make ``doc`` also accept null, in place.

    The type list is widened (``bsonType`` first, then ``type``) rather than
    wrapping the whole schema in an ``anyOf``. Union schemas get a null
    alternative; schemas without type information already accept null.
    """
    for key in ("bsonType", "type"):
        if key in doc:
            doc[key] = _with_null(doc[key])
            return doc

    if "anyOf" in doc:
        alternatives = doc["anyOf"]
        if {"type": NULL_TYPE} not in alternatives:
            alternatives.append({"type": NULL_TYPE})
    return doc


def _with_null(type_spec: Any) -> Any:
    if isinstance(type_spec, str):
        if type_spec == NULL_TYPE:
            return type_spec
        return [type_spec, NULL_TYPE]
    if isinstance(type_spec, list):
        if NULL_TYPE in type_spec:
            return type_spec
        return [*type_spec, NULL_TYPE]
    raise UnsupportedShapeError(f"invalid type specification {type_spec!r}")
