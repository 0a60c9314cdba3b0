# tests/unit/test_generics.py
"""Tests for generic parameter substitution."""

from magnet_schema.shapes import (
    I32,
    STRING,
    ArrayShape,
    EnumShape,
    Field,
    GenericParam,
    OptionalShape,
    StructShape,
    Variant,
)
from magnet_schema.generics import substitute

T = GenericParam("T")


class TestSubstitute:
    def test_no_bindings_returns_input(self):
        shape = StructShape("Box", [Field("value", T)])
        assert substitute(shape, {}) is shape

    def test_replaces_parameter(self):
        shape = StructShape("Box", [Field("value", ArrayShape(T))])
        result = substitute(shape, {"T": STRING})
        assert result.fields[0].shape.element is STRING
        assert result.name == "Box"

    def test_input_not_modified(self):
        shape = StructShape("Box", [Field("value", T)])
        substitute(shape, {"T": STRING})
        assert shape.fields[0].shape is T

    def test_unbound_parameter_left_in_place(self):
        u = GenericParam("U")
        shape = StructShape("Pair", [Field("left", T), Field("right", u)])
        result = substitute(shape, {"T": I32})
        assert result.fields[0].shape is I32
        assert result.fields[1].shape is u

    def test_unchanged_subtrees_are_shared(self):
        tags = ArrayShape(STRING)
        shape = StructShape("Box", [Field("value", T), Field("tags", tags)])
        result = substitute(shape, {"T": I32})
        assert result.fields[1] is shape.fields[1]

    def test_cycle_preserved(self):
        """A struct reached twice maps to a single copy."""
        node = StructShape("List")
        node.fields.append(Field("head", T))
        node.fields.append(Field("tail", OptionalShape(node)))

        result = substitute(node, {"T": I32})
        assert result is not node
        assert result.fields[0].shape is I32
        assert result.fields[1].shape.inner is result

    def test_enum_variants(self):
        enum = EnumShape("Maybe", [Variant.unit("Nothing"), Variant.newtype("Just", T)])
        result = substitute(enum, {"T": STRING})
        assert result.variants[0].name == "Nothing"
        assert result.variants[1].payload is STRING
        assert enum.variants[1].payload is T

    def test_struct_variant_fields(self):
        enum = EnumShape("E", [Variant.struct("S", [Field("x", T)])])
        result = substitute(enum, {"T": I32})
        assert result.variants[0].items[0].shape is I32
