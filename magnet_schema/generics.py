# magnet_schema/generics.py
"""Substitution of generic type parameters in a shape graph."""

import logging
from collections.abc import Mapping

from magnet_schema.shapes import (
    ArrayShape,
    EnumShape,
    Field,
    FixedArrayShape,
    GenericParam,
    MapShape,
    NewtypeShape,
    OptionalShape,
    SetShape,
    Shape,
    StructShape,
    TupleStructShape,
    Variant,
    VariantKind,
)

logger = logging.getLogger(__name__)


def substitute(shape: Shape, bindings: Mapping[str, Shape]) -> Shape:
    """
    Replace bound ``GenericParam`` placeholders throughout a shape graph.

    Returns a new graph; the input is not modified. Structs, tuple structs
    and enums are always copied; other nodes are shared with the input when
    nothing below them changed. Cycles are preserved: a struct or enum reached
    twice maps to the same copy.
    Placeholders without a binding are left in place for the builder to report.

    Args:
        shape: Root of the graph
        bindings: Placeholder name -> concrete shape

    Returns:
        The substituted graph root
    """
    if not bindings:
        return shape
    return _Substitution(bindings).visit(shape)


class _Substitution:
    def __init__(self, bindings: Mapping[str, Shape]) -> None:
        self.bindings = bindings
        self.memo: dict[int, Shape] = {}

    def visit(self, shape: Shape) -> Shape:
        key = id(shape)
        if key in self.memo:
            return self.memo[key]

        if isinstance(shape, GenericParam):
            result = self.bindings.get(shape.name, shape)
            if result is not shape:
                logger.debug(f"Bound generic parameter '{shape.name}'")
        elif isinstance(shape, OptionalShape):
            result = self._rebuild(shape, OptionalShape, self.visit(shape.inner), shape.inner)
        elif isinstance(shape, ArrayShape):
            result = self._rebuild(shape, ArrayShape, self.visit(shape.element), shape.element)
        elif isinstance(shape, SetShape):
            result = self._rebuild(shape, SetShape, self.visit(shape.element), shape.element)
        elif isinstance(shape, FixedArrayShape):
            element = self.visit(shape.element)
            result = shape if element is shape.element else FixedArrayShape(element, shape.length)
        elif isinstance(shape, MapShape):
            value = self.visit(shape.value)
            result = shape if value is shape.value else MapShape(shape.key, value)
        elif isinstance(shape, NewtypeShape):
            inner = self.visit(shape.inner)
            result = shape if inner is shape.inner else NewtypeShape(shape.name, inner)
        elif isinstance(shape, StructShape):
            # register before descending so self-references resolve to the copy
            copy = StructShape(shape.name, [], shape.rename_all, shape.extra)
            self.memo[key] = copy
            copy.fields.extend(self._fields(shape.fields))
            if isinstance(shape.extra, (bool, type(None))):
                return copy
            copy.extra = self.visit(shape.extra)
            return copy
        elif isinstance(shape, TupleStructShape):
            copy = TupleStructShape(shape.name, [])
            self.memo[key] = copy
            copy.elements.extend(self.visit(element) for element in shape.elements)
            return copy
        elif isinstance(shape, EnumShape):
            copy = EnumShape(shape.name, [], shape.tagging, shape.rename_all)
            self.memo[key] = copy
            copy.variants.extend(self._variant(variant) for variant in shape.variants)
            return copy
        else:
            result = shape

        self.memo[key] = result
        return result

    def _rebuild(self, shape, cls, new_child, old_child):
        return shape if new_child is old_child else cls(new_child)

    def _fields(self, fields: list[Field]) -> list[Field]:
        out = []
        for f in fields:
            new_shape = self.visit(f.shape)
            out.append(f if new_shape is f.shape else Field(f.name, new_shape, f.constraints))
        return out

    def _variant(self, variant: Variant) -> Variant:
        if variant.kind is VariantKind.STRUCT:
            items = tuple(self._fields(list(variant.items)))
        else:
            items = tuple(self.visit(item) for item in variant.items)
        return Variant(variant.name, variant.kind, items, variant.constraints)
