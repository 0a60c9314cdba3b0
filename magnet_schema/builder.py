# magnet_schema/builder.py
"""
Recursive schema derivation.

Walks a shape graph and composes one schema document whose structure mirrors
the serialized representation of the type:

1. primitives and containers come from the mapping table, then numeric bounds
   are merged in (renames only change the parent's property key);
2. optional shapes widen the inner schema's type list with ``null``;
3. structs become strict objects requiring every non-optional field;
4. newtypes are transparent, tuple structs are fixed-length arrays, unit
   structs are empty arrays;
5. enums are encoded by their tagging strategy;
6. generic placeholders must already be substituted;
7. re-entering a struct/enum that is still being expanded yields a minimal
   placeholder instead of recursing forever.

The builder performs no I/O and holds no per-call state, so one instance can
serve concurrent derivations.
"""

import logging
from collections.abc import Mapping
from typing import Any

from magnet_schema.cache import SchemaCache
from magnet_schema.config.schema import DeriveConfig
from magnet_schema.constraints import Constraints
from magnet_schema.errors import SchemaError, UnsupportedShapeError
from magnet_schema.generics import substitute
from magnet_schema.mapping import (
    array_schema,
    document_schema,
    fixed_array_schema,
    map_schema,
    object_id_schema,
    primitive_schema,
    set_schema,
    tuple_schema,
    unit_struct_schema,
    widen_nullable,
)
from magnet_schema.naming import RenameRule, resolve_key
from magnet_schema.shapes import (
    ArrayShape,
    DocumentShape,
    EnumShape,
    Field,
    FixedArrayShape,
    GenericParam,
    MapShape,
    NewtypeShape,
    ObjectIdShape,
    OptionalShape,
    PrimitiveShape,
    SetShape,
    Shape,
    StructShape,
    TupleStructShape,
    UnitStructShape,
    Variant,
    VariantKind,
    describe,
)
from magnet_schema.tagging import EncodedVariant, encode_enum

logger = logging.getLogger(__name__)

SchemaDocument = dict[str, Any]

# Shapes whose identity is tracked on the expansion stack; every cycle in a
# shape graph runs through one of them.
_NOMINAL = (StructShape, TupleStructShape, EnumShape, NewtypeShape)


class SchemaBuilder:
    """
    Derives schema documents from shapes.

    A builder owns a SchemaCache unless caching is disabled in its config. A
    cache passed in explicitly must not be shared with builders configured
    differently, since the configuration affects the output.
    """

    def __init__(
        self,
        config: DeriveConfig | None = None,
        cache: SchemaCache | None = None,
    ) -> None:
        self.config = config or DeriveConfig()
        if cache is None and self.config.cache_enabled:
            cache = SchemaCache()
        self.cache = cache

    def build(
        self,
        shape: Shape,
        constraints: Constraints | None = None,
        bindings: Mapping[str, Shape] | None = None,
    ) -> SchemaDocument:
        """
        Derive the schema document for ``shape``.

        Args:
            shape: Root of the shape graph
            constraints: Refinements applying to the root value itself
            bindings: Generic parameter name -> shape, substituted first

        Returns:
            A freshly built document owned by the caller

        Raises:
            UnsupportedShapeError: If the graph contains a combination the
                schema dialect cannot express
            MalformedConstraintError: If a constraint is self-contradictory
        """
        if bindings:
            shape = substitute(shape, bindings)
        name = describe(shape)
        logger.debug(f"Deriving schema for {name}")
        doc = _Derivation(self).derive(shape, constraints or Constraints.NONE, name)
        logger.debug(f"Derived schema for {name}")
        return doc


class _Frame:
    __slots__ = ("identity", "tainted", "visited")

    def __init__(self, identity: int) -> None:
        self.identity = identity
        self.tainted = False
        self.visited = {identity}


class _Derivation:
    """State of a single ``build`` call: the expansion stack."""

    def __init__(self, builder: SchemaBuilder) -> None:
        self.strict = builder.config.strict_objects
        self.cache = builder.cache
        self.stack: list[_Frame] = []
        self.positions: dict[int, int] = {}

    def derive(self, shape: Shape, constraints: Constraints, path: str) -> SchemaDocument:
        try:
            constraints.check()
        except SchemaError as exc:
            raise exc.at(path) from None

        doc = self.shape(shape, path)
        if constraints.has_bounds:
            self.apply_bounds(shape, constraints, doc, path)
        return doc

    # -- stack handling -----------------------------------------------------

    def shape(self, shape: Shape, path: str) -> SchemaDocument:
        if not isinstance(shape, _NOMINAL):
            return self.dispatch(shape, path)

        identity = id(shape)
        if identity in self.positions:
            return self.cut(shape, identity, path)

        if self.cache is not None:
            entry = self.cache.get(shape, set(self.positions))
            if entry is not None:
                logger.debug(f"Cache hit for {describe(shape)}")
                if self.stack:
                    self.stack[-1].visited |= entry.visited
                return entry.schema

        frame = _Frame(identity)
        self.positions[identity] = len(self.stack)
        self.stack.append(frame)
        try:
            doc = self.dispatch(shape, path)
        finally:
            self.stack.pop()
            del self.positions[identity]

        if self.stack:
            self.stack[-1].visited |= frame.visited
        if self.cache is not None and not frame.tainted:
            self.cache.put(shape, doc, frozenset(frame.visited))
        return doc

    def cut(self, shape: Shape, identity: int, path: str) -> SchemaDocument:
        """
        Terminate a cyclic branch at an identity already being expanded.

        Every frame above the re-entered one was cut short relative to a fresh
        derivation of itself, so those frames are marked as not cacheable.
        """
        logger.debug(f"Cycle at {path}: {describe(shape)} is already being expanded")
        for frame in self.stack[self.positions[identity] + 1:]:
            frame.tainted = True
        self.stack[-1].visited.add(identity)

        if isinstance(shape, StructShape):
            return {"type": "object"}
        if isinstance(shape, TupleStructShape):
            return {"type": "array"}
        return {}

    # -- per-shape rules ----------------------------------------------------

    def dispatch(self, shape: Shape, path: str) -> SchemaDocument:
        if isinstance(shape, PrimitiveShape):
            return primitive_schema(shape.kind)
        if isinstance(shape, OptionalShape):
            return widen_nullable(self.shape(shape.inner, path))
        if isinstance(shape, ArrayShape):
            return array_schema(self.shape(shape.element, f"{path}[]"))
        if isinstance(shape, SetShape):
            return set_schema(self.shape(shape.element, f"{path}[]"))
        if isinstance(shape, FixedArrayShape):
            return fixed_array_schema(self.shape(shape.element, f"{path}[]"), shape.length)
        if isinstance(shape, MapShape):
            try:
                return map_schema(shape.key, self.shape(shape.value, f"{path}{{}}"))
            except UnsupportedShapeError as exc:
                raise (exc if exc.path else exc.at(path)) from None
        if isinstance(shape, DocumentShape):
            return document_schema()
        if isinstance(shape, ObjectIdShape):
            return object_id_schema()
        if isinstance(shape, StructShape):
            return self.struct(shape.fields, shape.rename_all, shape.extra, path)
        if isinstance(shape, NewtypeShape):
            return self.shape(shape.inner, path)
        if isinstance(shape, TupleStructShape):
            return self.tuple(shape.elements, path)
        if isinstance(shape, UnitStructShape):
            return unit_struct_schema()
        if isinstance(shape, EnumShape):
            return self.enum(shape, path)
        if isinstance(shape, GenericParam):
            raise UnsupportedShapeError(
                f"unresolved generic parameter '{shape.name}'; bind it before deriving", path
            )
        raise UnsupportedShapeError(f"not a shape: {shape!r}", path)

    def struct(
        self,
        fields: list[Field],
        rename_all: RenameRule | None,
        extra: Any,
        path: str,
    ) -> SchemaDocument:
        properties: dict[str, SchemaDocument] = {}
        required: list[str] = []
        for f in fields:
            key = resolve_key(f.name, f.constraints.rename, rename_all)
            if key in properties:
                raise UnsupportedShapeError(f"duplicate property key '{key}'", path)
            properties[key] = self.derive(f.shape, f.constraints, f"{path}.{f.name}")
            if not isinstance(f.shape, OptionalShape):
                required.append(key)

        doc: SchemaDocument = {"type": "object", "properties": properties}
        if required:
            doc["required"] = required
        doc["additionalProperties"] = self.extra(extra, path)
        return doc

    def extra(self, extra: Any, path: str) -> Any:
        if extra is None:
            return not self.strict
        if isinstance(extra, bool):
            return extra
        return self.shape(extra, f"{path}{{}}")

    def tuple(self, elements: list[Shape], path: str) -> SchemaDocument:
        return tuple_schema(
            [self.shape(element, f"{path}[{i}]") for i, element in enumerate(elements)]
        )

    def enum(self, shape: EnumShape, path: str) -> SchemaDocument:
        encoded: list[EncodedVariant] = []
        keys: set[str] = set()
        for variant in shape.variants:
            item = self.variant(variant, shape.rename_all, path)
            if item.key in keys:
                raise UnsupportedShapeError(f"duplicate variant key '{item.key}'", path)
            keys.add(item.key)
            encoded.append(item)
        try:
            return encode_enum(shape.tagging, encoded)
        except SchemaError as exc:
            raise (exc if exc.path else exc.at(path)) from None

    def variant(
        self, variant: Variant, rename_all: RenameRule | None, path: str
    ) -> EncodedVariant:
        key = resolve_key(variant.name, variant.constraints.rename, rename_all, variant=True)
        vpath = f"{path}.{variant.name}"

        if variant.constraints.has_bounds and variant.kind is not VariantKind.NEWTYPE:
            raise UnsupportedShapeError(
                "numeric bounds on a variant require a newtype payload", vpath
            )

        if variant.kind is VariantKind.UNIT:
            return EncodedVariant(key)
        if variant.kind is VariantKind.NEWTYPE:
            schema = self.derive(variant.payload, variant.constraints, vpath)
            return EncodedVariant(key, schema, _is_object_payload(variant.payload))
        if variant.kind is VariantKind.TUPLE:
            return EncodedVariant(key, self.tuple(list(variant.items), vpath))
        return EncodedVariant(key, self.struct(list(variant.items), None, None, vpath), True)

    def apply_bounds(
        self, shape: Shape, constraints: Constraints, doc: SchemaDocument, path: str
    ) -> None:
        target = shape
        while isinstance(target, (OptionalShape, NewtypeShape)):
            target = target.inner
        if not (isinstance(target, PrimitiveShape) and target.kind.is_numeric):
            raise UnsupportedShapeError(
                f"numeric bounds cannot apply to non-numeric shape '{describe(target)}'", path
            )

        if constraints.has_lower_bound:
            doc.pop("minimum", None)
            doc.pop("exclusiveMinimum", None)
        doc.update(constraints.bound_keywords())


def _is_object_payload(shape: Shape) -> bool:
    while isinstance(shape, NewtypeShape):
        shape = shape.inner
    return isinstance(shape, (StructShape, MapShape))


_default_builder: SchemaBuilder | None = None


def derive(
    shape: Shape,
    constraints: Constraints | None = None,
    *,
    bindings: Mapping[str, Shape] | None = None,
    config: DeriveConfig | None = None,
) -> SchemaDocument:
    """
    Derive the schema document for ``shape``.

    Uses a process-wide builder (and its cache) unless ``config`` is given.
    See ``SchemaBuilder.build`` for arguments and errors.
    """
    global _default_builder
    if config is not None:
        return SchemaBuilder(config).build(shape, constraints, bindings)
    if _default_builder is None:
        _default_builder = SchemaBuilder()
    return _default_builder.build(shape, constraints, bindings)
