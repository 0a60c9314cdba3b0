# magnet_schema/tagging.py
"""
Enum tagging conventions and their schema encodings.

The serialized form of a tagged union differs by convention, so the validation
schema has to follow the same convention exactly:

- External:  ``{"Variant": <payload>}``
- Internal:  ``{"<tag>": "Variant", ...payload fields}``
- Adjacent:  ``{"<tag>": "Variant", "<content>": <payload>}``
- Untagged:  ``<payload>``

Each convention encodes one variant at a time; ``encode_enum`` wraps the
per-variant schemas in a single ``anyOf`` in declaration order.
"""

import copy
from dataclasses import dataclass
from typing import Any

from magnet_schema.errors import UnsupportedShapeError

SchemaDocument = dict[str, Any]

# Unit payloads serialize as an absent value or an empty sequence.
UNIT_PAYLOAD: SchemaDocument = {"type": ["array", "null"], "maxItems": 0}


@dataclass(frozen=True)
class EncodedVariant:
    """
    A variant ready to be encoded.

    ``schema`` is the payload schema, or ``None`` for unit variants.
    ``mergeable`` is set when the payload is an object whose properties can be
    inlined next to an internal tag (struct variants, newtypes around structs
    or maps).
    """

    key: str
    schema: SchemaDocument | None = None
    mergeable: bool = False

    @property
    def is_unit(self) -> bool:
        return self.schema is None

    def payload(self) -> SchemaDocument:
        if self.schema is None:
            return copy.deepcopy(UNIT_PAYLOAD)
        return self.schema


class TaggingStrategy:
    """Base class for the four enum representation conventions."""

    def encode(self, variant: EncodedVariant) -> SchemaDocument:
        raise NotImplementedError

    def check(self) -> None:
        """Validate the strategy's own parameters."""


@dataclass(frozen=True)
class External(TaggingStrategy):
    """The variant name is the only key of a single-entry object. The default."""

    def encode(self, variant: EncodedVariant) -> SchemaDocument:
        return {
            "type": "object",
            "properties": {variant.key: variant.payload()},
            "required": [variant.key],
            "additionalProperties": False,
        }


@dataclass(frozen=True)
class Internal(TaggingStrategy):
    """The variant name is stored under ``tag`` next to the payload's own fields."""

    tag: str

    def check(self) -> None:
        if not self.tag:
            raise UnsupportedShapeError("internal tag name must not be empty")

    def encode(self, variant: EncodedVariant) -> SchemaDocument:
        tag_schema = {"enum": [variant.key]}
        if variant.is_unit:
            return {
                "type": "object",
                "properties": {self.tag: tag_schema},
                "required": [self.tag],
                "additionalProperties": False,
            }

        if not variant.mergeable:
            raise UnsupportedShapeError(
                f"internally tagged variant '{variant.key}' must carry a struct or map payload"
            )

        payload = variant.schema
        properties = payload.get("properties", {})
        if self.tag in properties:
            raise UnsupportedShapeError(
                f"variant '{variant.key}' has a field named like the tag '{self.tag}'"
            )

        doc: SchemaDocument = {
            "type": "object",
            "properties": {self.tag: tag_schema, **properties},
            "required": [self.tag, *payload.get("required", [])],
        }
        if "additionalProperties" in payload:
            doc["additionalProperties"] = payload["additionalProperties"]
        return doc


@dataclass(frozen=True)
class Adjacent(TaggingStrategy):
    """The variant name is stored under ``tag`` and the payload under ``content``."""

    tag: str
    content: str

    def check(self) -> None:
        if not self.tag or not self.content:
            raise UnsupportedShapeError("adjacent tag and content names must not be empty")
        if self.tag == self.content:
            raise UnsupportedShapeError(
                f"adjacent tag and content names must differ (both are '{self.tag}')"
            )

    def encode(self, variant: EncodedVariant) -> SchemaDocument:
        return {
            "type": "object",
            "properties": {
                self.tag: {"enum": [variant.key]},
                self.content: variant.payload(),
            },
            "required": [self.tag, self.content],
            "additionalProperties": False,
        }


@dataclass(frozen=True)
class Untagged(TaggingStrategy):
    """No discriminator: the payload stands alone."""

    def encode(self, variant: EncodedVariant) -> SchemaDocument:
        return variant.payload()


def encode_enum(strategy: TaggingStrategy, variants: list[EncodedVariant]) -> SchemaDocument:
    """
    Encode every variant under ``strategy`` and wrap them in one ``anyOf``.

    Distinguishability of untagged payloads is not checked; overlapping
    alternatives produce a valid but not mutually exclusive ``anyOf``.

    Raises:
        UnsupportedShapeError: If there are no variants, or the strategy
            rejects a variant's payload
    """
    strategy.check()
    if not variants:
        raise UnsupportedShapeError("an enum needs at least one variant")
    return {"anyOf": [strategy.encode(variant) for variant in variants]}
