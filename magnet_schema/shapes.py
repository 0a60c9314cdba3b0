# magnet_schema/shapes.py
"""
The closed set of type shapes the schema builder consumes.

A shape graph is built once (by hand, through ``introspect.shape_of``, or by
any other registration step) and then treated as read-only input. Shapes
compare and hash by identity: two structurally identical structs are still two
different types.

Structs and enums keep their members in lists so a type can be declared first
and populated afterwards, which is how self-referential graphs are built::

    node = StructShape("Node")
    node.fields.append(Field("next", OptionalShape(node)))
"""

from dataclasses import dataclass, field
from enum import Enum

from magnet_schema.constraints import Constraints
from magnet_schema.naming import RenameRule
from magnet_schema.tagging import External, TaggingStrategy


class PrimitiveKind(Enum):
    """Scalar kinds with a canonical schema fragment."""

    BOOL = "bool"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    F32 = "f32"
    F64 = "f64"
    STRING = "string"
    BINARY = "binary"
    UUID = "uuid"
    DATETIME = "datetime"
    URL = "url"

    @property
    def is_integer(self) -> bool:
        return self.value[0] in "iu" and self.value[1:].isdigit()

    @property
    def is_float(self) -> bool:
        return self in (PrimitiveKind.F32, PrimitiveKind.F64)

    @property
    def is_numeric(self) -> bool:
        return self.is_integer or self.is_float

    @property
    def signed(self) -> bool:
        return self.value.startswith("i") or self.is_float

    @property
    def width(self) -> int | None:
        """Bit width for numeric kinds, ``None`` otherwise."""
        if self.is_numeric:
            return int(self.value[1:])
        return None

    @property
    def is_text(self) -> bool:
        """Whether values of this kind display as plain text (usable as map keys)."""
        return self in (PrimitiveKind.STRING, PrimitiveKind.UUID, PrimitiveKind.URL)


@dataclass(frozen=True, eq=False)
class PrimitiveShape:
    kind: PrimitiveKind


@dataclass(frozen=True, eq=False)
class OptionalShape:
    inner: "Shape"


@dataclass(frozen=True, eq=False)
class ArrayShape:
    element: "Shape"


@dataclass(frozen=True, eq=False)
class SetShape:
    element: "Shape"


@dataclass(frozen=True, eq=False)
class MapShape:
    key: PrimitiveKind
    value: "Shape"

    def __post_init__(self) -> None:
        if not isinstance(self.key, PrimitiveKind):
            raise TypeError(f"map key must be a PrimitiveKind, got {self.key!r}")


@dataclass(frozen=True, eq=False)
class FixedArrayShape:
    element: "Shape"
    length: int

    def __post_init__(self) -> None:
        if self.length < 0:
            raise ValueError(f"fixed array length must be >= 0, got {self.length}")


@dataclass(frozen=True, eq=False)
class Field:
    """A named struct field (or struct-variant field) with its constraints."""

    name: str
    shape: "Shape"
    constraints: Constraints = Constraints.NONE

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("field name must not be empty")


@dataclass(eq=False)
class StructShape:
    """
    A record with named fields.

    ``extra`` controls ``additionalProperties``: ``None`` defers to the
    configured default, ``True`` allows anything, a shape constrains the extra
    values to that shape.
    """

    name: str
    fields: list[Field] = field(default_factory=list)
    rename_all: RenameRule | None = None
    extra: "bool | Shape | None" = None


@dataclass(frozen=True, eq=False)
class NewtypeShape:
    """A named wrapper around a single value; transparent in the schema."""

    name: str
    inner: "Shape"


@dataclass(eq=False)
class TupleStructShape:
    """A positional record; ``name`` is ``None`` for anonymous tuples."""

    name: str | None
    elements: list["Shape"] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class UnitStructShape:
    name: str


class VariantKind(Enum):
    UNIT = "unit"
    NEWTYPE = "newtype"
    TUPLE = "tuple"
    STRUCT = "struct"


@dataclass(frozen=True, eq=False)
class Variant:
    """
    One alternative of an EnumShape.

    ``items`` holds the payload: empty for unit variants, one shape for
    newtype variants, the element shapes for tuple variants and Field objects
    for struct variants. Prefer the ``unit``/``newtype``/``tuple``/``struct``
    constructors.
    """

    name: str
    kind: VariantKind
    items: tuple = ()
    constraints: Constraints = Constraints.NONE

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("variant name must not be empty")
        if self.kind is VariantKind.UNIT and self.items:
            raise ValueError(f"unit variant '{self.name}' cannot carry a payload")
        if self.kind is VariantKind.NEWTYPE and len(self.items) != 1:
            raise ValueError(f"newtype variant '{self.name}' needs exactly one payload shape")

    @classmethod
    def unit(cls, name: str, constraints: Constraints = Constraints.NONE) -> "Variant":
        return cls(name, VariantKind.UNIT, (), constraints)

    @classmethod
    def newtype(
        cls, name: str, shape: "Shape", constraints: Constraints = Constraints.NONE
    ) -> "Variant":
        return cls(name, VariantKind.NEWTYPE, (shape,), constraints)

    @classmethod
    def tuple(cls, name: str, *shapes: "Shape", constraints: Constraints = Constraints.NONE) -> "Variant":
        return cls(name, VariantKind.TUPLE, tuple(shapes), constraints)

    @classmethod
    def struct(
        cls, name: str, fields: list[Field], constraints: Constraints = Constraints.NONE
    ) -> "Variant":
        return cls(name, VariantKind.STRUCT, tuple(fields), constraints)

    @property
    def payload(self) -> "Shape":
        """The single payload shape of a newtype variant."""
        return self.items[0]


@dataclass(eq=False)
class EnumShape:
    """A tagged union; ``rename_all`` applies to variant names."""

    name: str
    variants: list[Variant] = field(default_factory=list)
    tagging: TaggingStrategy = field(default_factory=External)
    rename_all: RenameRule | None = None


@dataclass(frozen=True, eq=False)
class DocumentShape:
    """An opaque embedded document; no constraints beyond being an object."""


@dataclass(frozen=True, eq=False)
class ObjectIdShape:
    """The database's native object identifier."""


@dataclass(frozen=True, eq=False)
class GenericParam:
    """A type-parameter placeholder; must be substituted before building."""

    name: str


Shape = (
    PrimitiveShape
    | OptionalShape
    | ArrayShape
    | SetShape
    | MapShape
    | FixedArrayShape
    | StructShape
    | NewtypeShape
    | TupleStructShape
    | UnitStructShape
    | EnumShape
    | DocumentShape
    | ObjectIdShape
    | GenericParam
)

SHAPE_TYPES = Shape.__args__

BOOL = PrimitiveShape(PrimitiveKind.BOOL)
I8 = PrimitiveShape(PrimitiveKind.I8)
I16 = PrimitiveShape(PrimitiveKind.I16)
I32 = PrimitiveShape(PrimitiveKind.I32)
I64 = PrimitiveShape(PrimitiveKind.I64)
U8 = PrimitiveShape(PrimitiveKind.U8)
U16 = PrimitiveShape(PrimitiveKind.U16)
U32 = PrimitiveShape(PrimitiveKind.U32)
U64 = PrimitiveShape(PrimitiveKind.U64)
F32 = PrimitiveShape(PrimitiveKind.F32)
F64 = PrimitiveShape(PrimitiveKind.F64)
STRING = PrimitiveShape(PrimitiveKind.STRING)
BINARY = PrimitiveShape(PrimitiveKind.BINARY)
UUID = PrimitiveShape(PrimitiveKind.UUID)
DATETIME = PrimitiveShape(PrimitiveKind.DATETIME)
URL = PrimitiveShape(PrimitiveKind.URL)


def describe(shape: "Shape") -> str:
    """Short human-readable label used in log lines and error paths."""
    name = getattr(shape, "name", None)
    if isinstance(shape, PrimitiveShape):
        return shape.kind.value
    if name:
        return name
    return type(shape).__name__.removesuffix("Shape")
