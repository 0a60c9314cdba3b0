# magnet_schema/naming.py
"""
Case-conversion rules for container-wide renaming.

Struct fields are declared in snake_case and enum variants in PascalCase; a
``rename_all`` rule on the container rewrites every key the same way the
serializer does, so the schema keys match the stored documents.
"""

from enum import Enum

from magnet_schema.errors import MalformedConstraintError


class RenameRule(Enum):
    """Supported ``rename_all`` conventions."""

    LOWERCASE = "lowercase"
    UPPERCASE = "UPPERCASE"
    PASCAL_CASE = "PascalCase"
    CAMEL_CASE = "camelCase"
    SNAKE_CASE = "snake_case"
    SCREAMING_SNAKE_CASE = "SCREAMING_SNAKE_CASE"
    KEBAB_CASE = "kebab-case"
    SCREAMING_KEBAB_CASE = "SCREAMING-KEBAB-CASE"

    @classmethod
    def parse(cls, text: str) -> "RenameRule":
        """
        Look up a rule by its conventional spelling.

        Raises:
            MalformedConstraintError: If ``text`` names no known rule
        """
        try:
            return cls(text)
        except ValueError:
            known = ", ".join(rule.value for rule in cls)
            raise MalformedConstraintError(
                f"unknown rename rule '{text}' (expected one of: {known})"
            ) from None

    def apply_to_field(self, name: str) -> str:
        """Rename a snake_case field name."""
        if self in (RenameRule.LOWERCASE, RenameRule.SNAKE_CASE):
            return name
        if self is RenameRule.UPPERCASE:
            return name.upper()
        if self is RenameRule.PASCAL_CASE:
            return "".join(part[:1].upper() + part[1:] for part in name.split("_"))
        if self is RenameRule.CAMEL_CASE:
            pascal = RenameRule.PASCAL_CASE.apply_to_field(name)
            return pascal[:1].lower() + pascal[1:]
        if self is RenameRule.SCREAMING_SNAKE_CASE:
            return name.upper()
        if self is RenameRule.KEBAB_CASE:
            return name.replace("_", "-")
        return name.upper().replace("_", "-")

    def apply_to_variant(self, name: str) -> str:
        """Rename a PascalCase variant name."""
        if self is RenameRule.PASCAL_CASE:
            return name
        if self is RenameRule.LOWERCASE:
            return name.lower()
        if self is RenameRule.UPPERCASE:
            return name.upper()
        if self is RenameRule.CAMEL_CASE:
            return name[:1].lower() + name[1:]
        if self is RenameRule.SNAKE_CASE:
            return _pascal_to_snake(name)
        if self is RenameRule.SCREAMING_SNAKE_CASE:
            return _pascal_to_snake(name).upper()
        if self is RenameRule.KEBAB_CASE:
            return _pascal_to_snake(name).replace("_", "-")
        return _pascal_to_snake(name).upper().replace("_", "-")


def _pascal_to_snake(name: str) -> str:
    out = []
    for i, ch in enumerate(name):
        if ch.isupper() and i > 0:
            out.append("_")
        out.append(ch.lower())
    return "".join(out)


def resolve_key(
    declared: str,
    rename: str | None,
    rule: RenameRule | None,
    *,
    variant: bool = False,
) -> str:
    """Explicit rename wins over the container rule, which wins over the declared name."""
    if rename is not None:
        return rename
    if rule is None:
        return declared
    if variant:
        return rule.apply_to_variant(declared)
    return rule.apply_to_field(declared)
