# magnet_schema/__init__.py
"""
magnet-schema: MongoDB ``$jsonSchema`` validators derived from type shapes.

Describe a type as a shape graph (or reflect one from a dataclass or pydantic
model with ``shape_of``), then call ``derive`` to get the validator document.
"""

from magnet_schema.builder import SchemaBuilder, derive
from magnet_schema.cache import SchemaCache
from magnet_schema.constraints import Constraints
from magnet_schema.equality import document_diff, documents_equal
from magnet_schema.errors import (
    ConfigError,
    MalformedConstraintError,
    SchemaError,
    UnsupportedShapeError,
)
from magnet_schema.generics import substitute
from magnet_schema.introspect import ShapeRegistry, field_shape, shape_of
from magnet_schema.naming import RenameRule
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
    PrimitiveKind,
    PrimitiveShape,
    SetShape,
    Shape,
    StructShape,
    TupleStructShape,
    UnitStructShape,
    Variant,
    VariantKind,
)
from magnet_schema.tagging import Adjacent, External, Internal, TaggingStrategy, Untagged
from magnet_schema.validator import collmod_command, create_collection_command, to_validator

__version__ = "0.1.0"

__all__ = [
    "derive",
    "SchemaBuilder",
    "SchemaCache",
    "Constraints",
    "RenameRule",
    "substitute",
    "shape_of",
    "field_shape",
    "ShapeRegistry",
    "documents_equal",
    "document_diff",
    "to_validator",
    "create_collection_command",
    "collmod_command",
    "SchemaError",
    "UnsupportedShapeError",
    "MalformedConstraintError",
    "ConfigError",
    "TaggingStrategy",
    "External",
    "Internal",
    "Adjacent",
    "Untagged",
    "Shape",
    "PrimitiveKind",
    "PrimitiveShape",
    "OptionalShape",
    "ArrayShape",
    "SetShape",
    "MapShape",
    "FixedArrayShape",
    "Field",
    "StructShape",
    "NewtypeShape",
    "TupleStructShape",
    "UnitStructShape",
    "Variant",
    "VariantKind",
    "EnumShape",
    "DocumentShape",
    "ObjectIdShape",
    "GenericParam",
]
