# tests/unit/test_introspect.py
"""Tests for reflecting dataclasses, pydantic models and typing constructs into shapes."""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Generic, Literal, Optional, TypeVar

import pytest
from annotated_types import Ge, Gt, Interval, Lt
from pydantic import BaseModel, ConfigDict, Field as PydanticField

from magnet_schema.builder import derive
from magnet_schema.config.schema import DeriveConfig
from magnet_schema.constraints import Constraints
from magnet_schema.errors import UnsupportedShapeError
from magnet_schema.introspect import ShapeRegistry, field_shape, shape_of
from magnet_schema.shapes import (
    F64,
    ArrayShape,
    DocumentShape,
    EnumShape,
    GenericParam,
    MapShape,
    ObjectIdShape,
    OptionalShape,
    PrimitiveKind,
    PrimitiveShape,
    SetShape,
    StructShape,
    TupleStructShape,
)
from magnet_schema.tagging import Untagged


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@dataclass
class Address:
    street: str
    zip_code: Annotated[int, Ge(0), Lt(100000)]


@dataclass
class Person:
    name: str
    age: Optional[int] = None
    tags: list[str] = field(default_factory=list)
    address: Address | None = None


@dataclass
class TreeNode:
    value: int
    children: list["TreeNode"]


@dataclass
class Stored:
    id: uuid.UUID = field(metadata={"magnet": Constraints(rename="_id")})
    created: datetime = None
    blob: bytes = b""


@dataclass
class BadField:
    value: Any


T = TypeVar("T")


@dataclass
class Box(Generic[T]):
    item: T


@dataclass
class Holder:
    box: Box[int]
    labels: Box[str] | None = None


class Item(BaseModel):
    model_config = ConfigDict(extra="allow")

    sku: str = PydanticField(alias="SKU")
    price: float = PydanticField(gt=0)
    quantity: int = PydanticField(default=1, ge=0, le=1000)
    note: str | None = None


class Category(BaseModel):
    name: str
    parent: Optional["Category"] = None


Category.model_rebuild()


class ObjectId:
    """Stand-in with the database driver's class name."""


class Color(enum.Enum):
    RED = "red"


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestScalars:
    @pytest.mark.parametrize(
        "tp, kind",
        [
            (bool, PrimitiveKind.BOOL),
            (int, PrimitiveKind.I64),
            (float, PrimitiveKind.F64),
            (str, PrimitiveKind.STRING),
            (bytes, PrimitiveKind.BINARY),
            (uuid.UUID, PrimitiveKind.UUID),
            (datetime, PrimitiveKind.DATETIME),
        ],
    )
    def test_scalar_kinds(self, tp, kind):
        shape = shape_of(tp)
        assert isinstance(shape, PrimitiveShape)
        assert shape.kind is kind

    def test_default_int_kind_from_config(self):
        shape = shape_of(int, config=DeriveConfig(default_int_kind="i32"))
        assert shape.kind is PrimitiveKind.I32

    def test_kind_override(self):
        assert shape_of(Annotated[int, PrimitiveKind.U8]).kind is PrimitiveKind.U8

    def test_kind_override_on_non_primitive(self):
        with pytest.raises(UnsupportedShapeError):
            shape_of(Annotated[list[int], PrimitiveKind.U8])

    def test_object_id_by_class_name(self):
        """Any class named ObjectId maps without importing a driver."""
        assert isinstance(shape_of(ObjectId), ObjectIdShape)


class TestContainers:
    def test_list(self):
        shape = shape_of(list[str])
        assert isinstance(shape, ArrayShape)
        assert shape.element.kind is PrimitiveKind.STRING

    def test_set(self):
        assert isinstance(shape_of(frozenset[int]), SetShape)

    def test_homogeneous_tuple(self):
        """tuple[T, ...] is a plain array."""
        assert isinstance(shape_of(tuple[int, ...]), ArrayShape)

    def test_fixed_tuple(self):
        shape = shape_of(tuple[int, str])
        assert isinstance(shape, TupleStructShape)
        assert shape.name is None
        assert [e.kind for e in shape.elements] == [PrimitiveKind.I64, PrimitiveKind.STRING]

    def test_mapping(self):
        shape = shape_of(dict[str, float])
        assert isinstance(shape, MapShape)
        assert shape.key is PrimitiveKind.STRING

    def test_free_form_documents(self):
        assert isinstance(shape_of(dict), DocumentShape)
        assert isinstance(shape_of(dict[str, Any]), DocumentShape)

    def test_integer_keys_fail_at_derivation(self):
        """Reflection keeps integer keys; the builder rejects them."""
        with pytest.raises(UnsupportedShapeError, match="map keys"):
            derive(shape_of(dict[int, str]))

    def test_bounds_inside_container_rejected(self):
        with pytest.raises(UnsupportedShapeError, match="only supported on fields"):
            shape_of(list[Annotated[int, Ge(0)]])


class TestUnions:
    def test_optional(self):
        shape = shape_of(Optional[str])
        assert isinstance(shape, OptionalShape)
        assert shape.inner.kind is PrimitiveKind.STRING

    def test_pipe_optional(self):
        assert isinstance(shape_of(int | None), OptionalShape)

    def test_union_becomes_untagged_enum(self):
        shape = shape_of(int | str)
        assert isinstance(shape, EnumShape)
        assert isinstance(shape.tagging, Untagged)
        assert [v.name for v in shape.variants] == ["int", "str"]
        assert derive(shape) == {"anyOf": [{"bsonType": "long"}, {"type": "string"}]}

    def test_optional_union(self):
        doc = derive(shape_of(Optional[int | str]))
        assert doc["anyOf"][-1] == {"type": "null"}

    def test_bounds_survive_optional(self):
        shape, constraints = field_shape(Optional[Annotated[int, Ge(1)]])
        assert isinstance(shape, OptionalShape)
        assert constraints.min_inclusive == 1


class TestDataclasses:
    def test_fields_and_requiredness(self):
        doc = derive(shape_of(Person))
        assert list(doc["properties"]) == ["name", "age", "tags", "address"]
        assert doc["required"] == ["name", "tags"]
        assert doc["properties"]["age"] == {"bsonType": ["long", "null"]}
        assert doc["properties"]["tags"] == {"type": "array", "items": {"type": "string"}}
        assert doc["properties"]["address"]["type"] == ["object", "null"]

    def test_annotated_bounds(self):
        doc = derive(shape_of(Address))
        assert doc["properties"]["zip_code"] == {
            "bsonType": "long",
            "minimum": 0,
            "maximum": 100000,
            "exclusiveMaximum": True,
        }

    def test_field_metadata_rename(self):
        """Constraints in field metadata are merged into the field."""
        doc = derive(shape_of(Stored))
        assert list(doc["properties"]) == ["_id", "created", "blob"]
        assert doc["properties"]["created"] == {"bsonType": "date"}
        assert doc["properties"]["blob"] == {"bsonType": "binData"}

    def test_recursive_dataclass(self):
        """A self-referencing dataclass becomes a cyclic shape graph."""
        shape = shape_of(TreeNode)
        assert isinstance(shape, StructShape)
        assert shape.fields[1].shape.element is shape
        doc = derive(shape)
        assert doc["properties"]["children"] == {"type": "array", "items": {"type": "object"}}

    def test_unsupported_field_reports_path(self):
        with pytest.raises(UnsupportedShapeError) as exc_info:
            shape_of(BadField)
        assert exc_info.value.path == "BadField.value"

    def test_parametrized_generic_field(self):
        """A field typed Box[int] reflects Box with T bound to int."""
        doc = derive(shape_of(Holder))
        assert doc["required"] == ["box"]
        assert doc["properties"]["box"]["properties"] == {"item": {"bsonType": "long"}}
        labels = doc["properties"]["labels"]
        assert labels["type"] == ["object", "null"]
        assert labels["properties"] == {"item": {"type": "string"}}

    def test_each_parametrization_is_a_separate_shape(self):
        assert shape_of(Box[int]) is not shape_of(Box[str])
        assert isinstance(shape_of(Box).fields[0].shape, GenericParam)


class TestPydanticModels:
    def test_aliases_bounds_and_extra(self):
        """Aliases rename keys and extra="allow" opens the object."""
        doc = derive(shape_of(Item))
        assert list(doc["properties"]) == ["SKU", "price", "quantity", "note"]
        assert doc["required"] == ["SKU", "price", "quantity"]
        assert doc["properties"]["price"] == {"type": "number", "minimum": 0, "exclusiveMinimum": True}
        assert doc["properties"]["quantity"] == {"bsonType": "long", "minimum": 0, "maximum": 1000}
        assert doc["properties"]["note"] == {"type": ["string", "null"]}
        assert doc["additionalProperties"] is True

    def test_recursive_model(self):
        shape = shape_of(Category)
        assert shape.fields[1].shape.inner is shape
        doc = derive(shape)
        assert doc["properties"]["parent"] == {"type": ["object", "null"]}


class TestRegistryAndErrors:
    def test_registry_wins(self):
        registry = ShapeRegistry()
        registry.register(Decimal, F64)
        assert Decimal in registry
        assert shape_of(list[Decimal], registry=registry).element is F64

    def test_type_var(self):
        shape = shape_of(TypeVar("T"))
        assert isinstance(shape, GenericParam)
        assert shape.name == "T"

    def test_interval_metadata(self):
        _, constraints = field_shape(Annotated[float, Interval(gt=0, le=1)])
        assert constraints.min_exclusive == 0
        assert constraints.max_inclusive == 1

    def test_conflicting_bounds_detected_at_derivation(self):
        """Ge and Gt are both recorded; check() rejects them later."""
        _, constraints = field_shape(Annotated[int, Ge(0), Gt(0)])
        assert constraints.min_inclusive == 0
        assert constraints.min_exclusive == 0

    @pytest.mark.parametrize("tp", [Any, Literal["a", "b"], Color, type(None), list, date])
    def test_unsupported(self, tp):
        with pytest.raises(UnsupportedShapeError):
            shape_of(tp)

    def test_date_is_not_mapped(self):
        """Only datetime has a BSON encoding; a bare date field is reported."""
        @dataclass
        class Event:
            day: date

        with pytest.raises(UnsupportedShapeError, match="cannot reflect") as exc_info:
            shape_of(Event)
        assert exc_info.value.path == "Event.day"
