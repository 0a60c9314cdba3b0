# magnet_schema/introspect.py
"""
Runtime reflection: Python annotations -> shapes.

Supplies shape graphs for dataclasses, pydantic models and the usual typing
constructs so callers don't have to describe their types by hand. Field-level
refinements come from ``Annotated`` metadata: a ``Constraints`` value, a
``PrimitiveKind`` (integer width override) or the ``annotated_types`` bounds
that pydantic's ``Field(ge=..., lt=...)`` produces.

Recursive types yield cyclic shape graphs: a class is registered before its
fields are reflected, so a self-reference resolves to the shape being built.
"""

import collections.abc
import dataclasses
import datetime
import logging
import types
import typing
import uuid
from typing import Annotated, Any, Literal, TypeVar, Union, get_args, get_origin

import annotated_types
from pydantic import BaseModel
from pydantic.fields import FieldInfo

from magnet_schema.config.schema import DeriveConfig
from magnet_schema.constraints import Constraints
from magnet_schema.errors import SchemaError, UnsupportedShapeError
from magnet_schema.generics import substitute
from magnet_schema.shapes import (
    ArrayShape,
    DocumentShape,
    EnumShape,
    Field,
    GenericParam,
    MapShape,
    ObjectIdShape,
    OptionalShape,
    PrimitiveKind,
    PrimitiveShape,
    SetShape,
    Shape,
    StructShape,
    TupleStructShape,
    Variant,
)
from magnet_schema.tagging import Untagged

logger = logging.getLogger(__name__)

NoneType = type(None)

_SCALARS: dict[Any, PrimitiveKind] = {
    bool: PrimitiveKind.BOOL,
    float: PrimitiveKind.F64,
    str: PrimitiveKind.STRING,
    bytes: PrimitiveKind.BINARY,
    bytearray: PrimitiveKind.BINARY,
    uuid.UUID: PrimitiveKind.UUID,
    # plain datetime.date has no BSON encoding; only datetime is mapped
    datetime.datetime: PrimitiveKind.DATETIME,
}

_SEQUENCES = {list, collections.abc.Sequence, collections.abc.MutableSequence}
_SETS = {set, frozenset, collections.abc.Set, collections.abc.MutableSet}
_MAPPINGS = {dict, collections.abc.Mapping, collections.abc.MutableMapping}

# dataclass field metadata key holding a Constraints value
METADATA_KEY = "magnet"


class ShapeRegistry:
    """Explicit shapes for types that cannot (or should not) be reflected."""

    def __init__(self) -> None:
        self._shapes: dict[Any, Shape] = {}

    def register(self, tp: Any, shape: Shape) -> None:
        self._shapes[tp] = shape
        logger.debug(f"Registered shape for {tp!r}")

    def lookup(self, tp: Any) -> Shape | None:
        try:
            return self._shapes.get(tp)
        except TypeError:
            return None

    def __contains__(self, tp: Any) -> bool:
        return self.lookup(tp) is not None


def shape_of(
    tp: Any,
    *,
    registry: ShapeRegistry | None = None,
    config: DeriveConfig | None = None,
) -> Shape:
    """
    Reflect a Python type into a shape graph.

    Args:
        tp: Class or typing annotation
        registry: Explicit shapes, consulted before reflection
        config: Supplies the primitive kind used for plain ``int``

    Returns:
        Root shape; bounds found on the root annotation are dropped
        (they belong to a field, use ``field_shape`` to keep them)

    Raises:
        UnsupportedShapeError: If the annotation has no shape equivalent
    """
    shape, _ = field_shape(tp, registry=registry, config=config)
    return shape


def field_shape(
    tp: Any,
    *,
    registry: ShapeRegistry | None = None,
    config: DeriveConfig | None = None,
) -> tuple[Shape, Constraints]:
    """Reflect an annotation, returning its shape and its field-level constraints."""
    return _Reflector(registry, config).resolve(tp)


class _Reflector:
    def __init__(self, registry: ShapeRegistry | None, config: DeriveConfig | None) -> None:
        self.registry = registry or ShapeRegistry()
        config = config or DeriveConfig()
        self.int_kind = PrimitiveKind(config.default_int_kind)
        self.memo: dict[Any, Shape] = {}

    def resolve(self, tp: Any) -> tuple[Shape, Constraints]:
        if get_origin(tp) is Annotated:
            base, *metadata = get_args(tp)
            shape, constraints = self.resolve(base)
            return self._annotate(shape, constraints, metadata, tp)

        registered = self.registry.lookup(tp)
        if registered is not None:
            return registered, Constraints.NONE

        try:
            if tp in self.memo:
                return self.memo[tp], Constraints.NONE
        except TypeError:
            pass

        origin = get_origin(tp)
        if origin is Union or origin is types.UnionType:
            return self._union(tp)
        return self._build(tp), Constraints.NONE

    def plain(self, tp: Any) -> Shape:
        """Resolve an annotation that must not carry bounds of its own."""
        shape, constraints = self.resolve(tp)
        if constraints.has_bounds:
            raise UnsupportedShapeError(
                f"bounds on {_type_name(tp)} are only supported on fields, not nested inside containers"
            )
        return shape

    def _annotate(self, shape, constraints, metadata, tp) -> tuple[Shape, Constraints]:
        for item in metadata:
            if isinstance(item, PrimitiveKind):
                if not isinstance(shape, PrimitiveShape):
                    raise UnsupportedShapeError(
                        f"primitive kind {item.value} cannot annotate {_type_name(tp)}"
                    )
                shape = PrimitiveShape(item)
            else:
                constraints = constraints.merge(metadata_constraints([item]))
        return shape, constraints

    def _union(self, tp: Any) -> tuple[Shape, Constraints]:
        args = get_args(tp)
        members = [arg for arg in args if arg is not NoneType]
        nullable = len(members) != len(args)

        if len(members) == 1:
            inner, constraints = self.resolve(members[0])
        else:
            inner, constraints = self._untagged(tp, members), Constraints.NONE

        if nullable:
            return OptionalShape(inner), constraints
        return inner, constraints

    def _untagged(self, tp: Any, members: list[Any]) -> EnumShape:
        enum = EnumShape(_type_name(tp), tagging=Untagged())
        seen: set[str] = set()
        for i, member in enumerate(members):
            name = _type_name(member)
            if name in seen:
                name = f"{name}{i}"
            seen.add(name)
            enum.variants.append(Variant.newtype(name, self.plain(member)))
        return enum

    def _build(self, tp: Any) -> Shape:
        if tp is NoneType:
            raise UnsupportedShapeError("None is only meaningful inside Optional[...]")
        if tp is int:
            return PrimitiveShape(self.int_kind)
        if tp in _SCALARS:
            return PrimitiveShape(_SCALARS[tp])
        if isinstance(tp, TypeVar):
            return GenericParam(tp.__name__)
        if tp is dict:
            return DocumentShape()
        if isinstance(tp, type) and tp.__name__ == "ObjectId":
            return ObjectIdShape()

        origin = get_origin(tp)
        args = get_args(tp)
        if origin in _SEQUENCES:
            return ArrayShape(self.plain(_single_arg(tp, args)))
        if origin in _SETS:
            return SetShape(self.plain(_single_arg(tp, args)))
        if origin is tuple:
            return self._tuple(tp, args)
        if origin in _MAPPINGS:
            return self._mapping(tp, args)
        if origin is Literal:
            raise UnsupportedShapeError(f"Literal types are not supported: {tp!r}")
        if isinstance(origin, type) and dataclasses.is_dataclass(origin):
            return self._generic_dataclass(tp, origin, args)

        if isinstance(tp, type):
            if dataclasses.is_dataclass(tp):
                return self._dataclass(tp)
            if issubclass(tp, BaseModel):
                return self._model(tp)

        raise UnsupportedShapeError(f"cannot reflect {_type_name(tp)}; register an explicit shape")

    def _tuple(self, tp: Any, args: tuple) -> Shape:
        if len(args) == 2 and args[1] is Ellipsis:
            return ArrayShape(self.plain(args[0]))
        if args == ((),):
            args = ()
        return TupleStructShape(None, [self.plain(arg) for arg in args])

    def _mapping(self, tp: Any, args: tuple) -> Shape:
        if len(args) != 2:
            return DocumentShape()
        key_tp, value_tp = args
        key = self.plain(key_tp)
        if not isinstance(key, PrimitiveShape):
            raise UnsupportedShapeError(f"map keys must be primitive, got {_type_name(key_tp)}")
        if value_tp is Any:
            return DocumentShape() if key.kind.is_text else MapShape(key.kind, DocumentShape())
        return MapShape(key.kind, self.plain(value_tp))

    def _dataclass(self, tp: type) -> StructShape:
        shape = StructShape(tp.__name__)
        self.memo[tp] = shape
        try:
            hints = typing.get_type_hints(tp, include_extras=True)
        except NameError as e:
            raise UnsupportedShapeError(f"cannot resolve annotations of {tp.__name__}: {e}") from e

        for f in dataclasses.fields(tp):
            fshape, constraints = self._field(tp, f.name, hints[f.name])
            extra = f.metadata.get(METADATA_KEY)
            if isinstance(extra, Constraints):
                constraints = constraints.merge(extra)
            shape.fields.append(Field(f.name, fshape, constraints))
        logger.debug(f"Reflected dataclass {tp.__name__} ({len(shape.fields)} fields)")
        return shape

    def _generic_dataclass(self, tp: Any, origin: type, args: tuple) -> Shape:
        """Reflect ``Box[int]``: the generic ``Box`` with its parameters bound."""
        params = getattr(origin, "__parameters__", ())
        if len(params) != len(args):
            raise UnsupportedShapeError(
                f"{origin.__name__} takes {len(params)} type parameter(s), got {len(args)}"
            )
        generic, _ = self.resolve(origin)
        bindings = {param.__name__: self.plain(arg) for param, arg in zip(params, args)}
        shape = substitute(generic, bindings)
        self.memo[tp] = shape
        return shape

    def _model(self, tp: type[BaseModel]) -> StructShape:
        shape = StructShape(tp.__name__)
        self.memo[tp] = shape
        if tp.model_config.get("extra") == "allow":
            shape.extra = True

        for name, info in tp.model_fields.items():
            if info.exclude:
                continue
            fshape, constraints = self._field(tp, name, info.annotation)
            constraints = constraints.merge(metadata_constraints(info.metadata))
            alias = info.serialization_alias or info.alias
            if alias and alias != name:
                constraints = constraints.merge(Constraints(rename=alias))
            shape.fields.append(Field(name, fshape, constraints))
        logger.debug(f"Reflected model {tp.__name__} ({len(shape.fields)} fields)")
        return shape

    def _field(self, owner: type, name: str, annotation: Any) -> tuple[Shape, Constraints]:
        try:
            return self.resolve(annotation)
        except SchemaError as exc:
            if exc.path:
                raise
            raise exc.at(f"{owner.__name__}.{name}") from None


def metadata_constraints(metadata: list[Any]) -> Constraints:
    """Translate ``Annotated``/pydantic field metadata into Constraints."""
    constraints = Constraints.NONE
    for item in metadata:
        if isinstance(item, Constraints):
            constraints = constraints.merge(item)
        elif isinstance(item, annotated_types.Ge):
            constraints = constraints.merge(Constraints(min_inclusive=item.ge))
        elif isinstance(item, annotated_types.Gt):
            constraints = constraints.merge(Constraints(min_exclusive=item.gt))
        elif isinstance(item, annotated_types.Le):
            constraints = constraints.merge(Constraints(max_inclusive=item.le))
        elif isinstance(item, annotated_types.Lt):
            constraints = constraints.merge(Constraints(max_exclusive=item.lt))
        elif isinstance(item, annotated_types.Interval):
            constraints = constraints.merge(
                Constraints(
                    min_inclusive=item.ge,
                    min_exclusive=item.gt,
                    max_inclusive=item.le,
                    max_exclusive=item.lt,
                )
            )
        elif isinstance(item, FieldInfo):
            constraints = constraints.merge(metadata_constraints(item.metadata))
    return constraints


def _single_arg(tp: Any, args: tuple) -> Any:
    if len(args) != 1:
        raise UnsupportedShapeError(f"{_type_name(tp)} needs exactly one element type")
    return args[0]


def _type_name(tp: Any) -> str:
    name = getattr(tp, "__name__", None)
    if name:
        return name
    return repr(tp).removeprefix("typing.")
