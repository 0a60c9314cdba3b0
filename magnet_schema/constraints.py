# magnet_schema/constraints.py
"""
Declarative per-field / per-variant refinements.

A Constraints value is the resolved, typed effect of whatever annotation syntax
the caller uses (``Annotated`` metadata, pydantic ``Field(ge=...)``, explicit
construction). It is attached to a Field or Variant when the shape graph is
built and checked by the builder before any schema keyword is emitted.
"""

import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, ClassVar

from magnet_schema.errors import MalformedConstraintError

Number = int | float


@dataclass(frozen=True)
class Constraints:
    """Numeric bounds plus an optional property/variant key override."""

    min_inclusive: Number | None = None
    min_exclusive: Number | None = None
    max_inclusive: Number | None = None
    max_exclusive: Number | None = None
    rename: str | None = None

    NONE: ClassVar["Constraints"]

    @property
    def has_bounds(self) -> bool:
        return any(
            bound is not None
            for bound in (
                self.min_inclusive,
                self.min_exclusive,
                self.max_inclusive,
                self.max_exclusive,
            )
        )

    @property
    def has_lower_bound(self) -> bool:
        return self.min_inclusive is not None or self.min_exclusive is not None

    @property
    def is_empty(self) -> bool:
        return not self.has_bounds and self.rename is None

    def merge(self, other: "Constraints") -> "Constraints":
        """
        Overlay ``other`` on top of this value.

        Set attributes of ``other`` win. Used when several annotation sources
        (e.g. ``Annotated`` metadata and pydantic field info) describe one field.
        """
        return Constraints(
            min_inclusive=_pick(other.min_inclusive, self.min_inclusive),
            min_exclusive=_pick(other.min_exclusive, self.min_exclusive),
            max_inclusive=_pick(other.max_inclusive, self.max_inclusive),
            max_exclusive=_pick(other.max_exclusive, self.max_exclusive),
            rename=_pick(other.rename, self.rename),
        )

    def check(self) -> None:
        """
        Validate this constraint set.

        Raises:
            MalformedConstraintError: If both an inclusive and an exclusive
                bound are given for one side, a bound is not a real number,
                is NaN or infinite, the bounds describe an empty range, or the
                rename is empty.
        """
        if self.min_inclusive is not None and self.min_exclusive is not None:
            raise MalformedConstraintError(
                "both min_inclusive and min_exclusive are set; at most one lower bound is allowed"
            )
        if self.max_inclusive is not None and self.max_exclusive is not None:
            raise MalformedConstraintError(
                "both max_inclusive and max_exclusive are set; at most one upper bound is allowed"
            )

        for name in ("min_inclusive", "min_exclusive", "max_inclusive", "max_exclusive"):
            value = getattr(self, name)
            if value is not None and not _is_real(value):
                raise MalformedConstraintError(
                    f"{name} must be a number, got {type(value).__name__}"
                )
            if isinstance(value, float) and not math.isfinite(value):
                raise MalformedConstraintError(f"{name} must be finite, got {value}")

        lower, lower_excl = self._lower()
        upper, upper_excl = self._upper()
        if lower is not None and upper is not None:
            if lower > upper or (lower == upper and (lower_excl or upper_excl)):
                raise MalformedConstraintError(
                    f"lower bound {lower} and upper bound {upper} admit no value"
                )

        if self.rename is not None and not self.rename.strip():
            raise MalformedConstraintError("rename must be a non-empty string")

    def bound_keywords(self) -> dict[str, Any]:
        """Schema keywords for the bounds, in draft-4 ``$jsonSchema`` form."""
        keywords: dict[str, Any] = {}
        lower, lower_excl = self._lower()
        upper, upper_excl = self._upper()
        if lower is not None:
            keywords["minimum"] = lower
            if lower_excl:
                keywords["exclusiveMinimum"] = True
        if upper is not None:
            keywords["maximum"] = upper
            if upper_excl:
                keywords["exclusiveMaximum"] = True
        return keywords

    def _lower(self) -> tuple[Number | None, bool]:
        if self.min_exclusive is not None:
            return self.min_exclusive, True
        return self.min_inclusive, False

    def _upper(self) -> tuple[Number | None, bool]:
        if self.max_exclusive is not None:
            return self.max_exclusive, True
        return self.max_inclusive, False


Constraints.NONE = Constraints()


def _pick(preferred, fallback):
    return preferred if preferred is not None else fallback


def _is_real(value: object) -> bool:
    # bool is an int subclass; a boolean bound is always a mistake
    return isinstance(value, Real) and not isinstance(value, bool)
