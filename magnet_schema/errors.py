# magnet_schema/errors.py
"""
Errors raised while deriving a schema.

All of them are detected synchronously at derivation time. Derivation is pure,
so retrying with the same input always reproduces the same error.
"""


class SchemaError(Exception):
    """
    Base class for every derivation failure.

    Carries the dotted location inside the shape graph where the problem was
    found (e.g. ``Contact.email.address``) so callers can point at the
    offending field or variant.
    """

    def __init__(self, message: str, path: str = "") -> None:
        self.message = message
        self.path = path
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message

    def at(self, path: str) -> "SchemaError":
        """Return a copy of this error located at ``path``."""
        return type(self)(self.message, path)


class UnsupportedShapeError(SchemaError):
    """A shape combination the engine cannot express as a schema."""


class MalformedConstraintError(SchemaError):
    """A field/variant constraint that is self-contradictory or ill-typed."""


class ConfigError(SchemaError):
    """The configuration file could not be read or failed validation."""
