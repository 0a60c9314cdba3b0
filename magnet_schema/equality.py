# magnet_schema/equality.py
"""
Order-insensitive structural comparison of schema documents.

Two independently produced documents can differ in key order without meaning
anything different. Mapping key order is ignored; sequence order is
significant, except under keywords the caller names in ``unordered_keys``
(e.g. ``required``), whose values are compared as multisets.
"""

from collections.abc import Iterable, Mapping
from typing import Any


def documents_equal(a: Any, b: Any, *, unordered_keys: Iterable[str] = ()) -> bool:
    """Return True iff ``a`` and ``b`` are structurally equivalent."""
    return not document_diff(a, b, unordered_keys=unordered_keys, limit=1)


def document_diff(
    a: Any,
    b: Any,
    *,
    unordered_keys: Iterable[str] = (),
    limit: int | None = None,
) -> list[str]:
    """
    List the locations where two documents differ.

    Args:
        a: Left document (or any nested value)
        b: Right document
        unordered_keys: Keywords whose sequence values ignore order
        limit: Stop after this many differences (None = report all)

    Returns:
        Human-readable difference descriptions, empty when equal
    """
    differences: list[str] = []
    _compare(a, b, "$", frozenset(unordered_keys), differences, limit)
    return differences


def _compare(a, b, path, unordered, out, limit) -> None:
    if limit is not None and len(out) >= limit:
        return

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        for key in [k for k in a if k not in b]:
            out.append(f"{path}.{key}: only in left")
        for key in [k for k in b if k not in a]:
            out.append(f"{path}.{key}: only in right")
        for key in [k for k in a if k in b]:
            child = f"{path}.{key}"
            if key in unordered and _is_sequence(a[key]) and _is_sequence(b[key]):
                if not _same_multiset(a[key], b[key], unordered):
                    out.append(f"{child}: {a[key]!r} != {b[key]!r} (ignoring order)")
            else:
                _compare(a[key], b[key], child, unordered, out, limit)
        return

    if _is_sequence(a) and _is_sequence(b):
        if len(a) != len(b):
            out.append(f"{path}: length {len(a)} != {len(b)}")
            return
        for i, (left, right) in enumerate(zip(a, b)):
            _compare(left, right, f"{path}[{i}]", unordered, out, limit)
        return

    if not _scalars_equal(a, b):
        out.append(f"{path}: {a!r} != {b!r}")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _scalars_equal(a: Any, b: Any) -> bool:
    # True == 1 in Python; a boolean keyword value never equals a number
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (Mapping, list, tuple)) or isinstance(b, (Mapping, list, tuple)):
        return False
    return a == b


def _same_multiset(a, b, unordered) -> bool:
    if len(a) != len(b):
        return False
    remaining = list(b)
    for item in a:
        for i, candidate in enumerate(remaining):
            if not document_diff(item, candidate, unordered_keys=unordered, limit=1):
                del remaining[i]
                break
        else:
            return False
    return True
