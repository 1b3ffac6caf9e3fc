"""
Ward property lookup.

Ward sources spell their identifying keys differently (municipal
exports use ``WARD_ID`` / ``WARD_NAME``, the API uses ``ward_id``, the
pruned client cache uses ``id``).  Each field is resolved by trying its
candidate keys in the order below and taking the first present value.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

ID_KEYS: tuple[str, ...] = ("id", "WARD_ID", "ward_id")
NAME_KEYS: tuple[str, ...] = ("name", "WARD_NAME")
MUNICIPALITY_KEYS: tuple[str, ...] = ("municipality", "MUNICIPALITY", "municipality_id")


def first_present(properties: Mapping[str, Any] | None, keys: Sequence[str]) -> Any:
    """Value of the first key in ``keys`` with a non-empty value, else None."""
    if not properties:
        return None
    for key in keys:
        value = properties.get(key)
        if value is not None and value != "":
            return value
    return None


def ward_id_of(properties: Mapping[str, Any] | None) -> str | None:
    value = first_present(properties, ID_KEYS)
    return None if value is None else str(value)


def ward_name_of(properties: Mapping[str, Any] | None) -> str | None:
    name = first_present(properties, NAME_KEYS)
    if name is not None:
        return str(name)
    ward_id = ward_id_of(properties)
    return f"Ward {ward_id}" if ward_id is not None else None


def municipality_of(properties: Mapping[str, Any] | None) -> str | None:
    value = first_present(properties, MUNICIPALITY_KEYS)
    return None if value is None else str(value)


def minimal_properties(properties: Mapping[str, Any] | None) -> dict[str, Any]:
    """The pruned property set kept in the client cache."""
    return {
        "id": ward_id_of(properties),
        "name": ward_name_of(properties),
        "municipality": municipality_of(properties),
    }
