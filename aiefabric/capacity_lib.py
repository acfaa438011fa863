"""Built-in port capacity library.

Holds the per-(entity kind, role, bundle) port counts of the fabric and merges
overrides from ``cwd/lib/capacities.yml`` when present. The user file must be a
nested mapping: kind -> role -> bundle -> count. User entries override
built-ins one bundle at a time.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml

from aiefabric.ports import EntityKind, PortRole, WireBundle

CapacityTable = dict[str, dict[str, dict[str, int]]]

# Built-in capacity library
_BUILTIN_CAPACITIES: CapacityTable = {
    "switchbox": {
        "source": {"ME": 2, "DMA": 2, "North": 4, "South": 6, "East": 4, "West": 4},
        "dest": {"ME": 2, "DMA": 2, "North": 6, "South": 4, "East": 4, "West": 4},
    },
    "tile": {
        "source": {"ME": 2, "DMA": 2},
        "dest": {"ME": 2, "DMA": 2},
    },
}


def _load_user_library(file_name: str) -> dict[str, Any]:
    """Load a user library YAML mapping from ``lib/<file_name>`` if present.

    Args:
        file_name: YAML file name inside the ``lib`` directory.

    Returns:
        A dictionary parsed from the YAML file, or an empty dict when the file
        does not exist.

    Raises:
        ValueError: If the YAML exists but is invalid or not a mapping.
    """
    lib_path = Path.cwd() / "lib" / file_name
    if not lib_path.exists():
        return {}

    try:
        with lib_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except Exception as exc:  # noqa: BLE001 - provide clear context
        raise ValueError(f"Failed to parse YAML: {lib_path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"User library YAML must be a mapping: {lib_path}")

    return data


def merge_capacities(base: CapacityTable, overrides: dict[str, Any]) -> CapacityTable:
    """Return ``base`` updated with ``overrides`` without mutating either.

    Kind, role and bundle keys are normalized (``north`` -> ``North``).

    Raises:
        ValueError: If an override names an unknown kind, role or bundle, or
            carries a negative or non-integer count.
    """
    merged = deepcopy(base)
    for kind_key, roles in (overrides or {}).items():
        kind = _parse_kind(kind_key).value
        if not isinstance(roles, dict):
            raise ValueError(f"Capacity override for '{kind}' must be a mapping")
        for role_key, bundles in roles.items():
            role = _parse_role(role_key).value
            if not isinstance(bundles, dict):
                raise ValueError(
                    f"Capacity override for '{kind}.{role}' must be a mapping"
                )
            for bundle_key, count in bundles.items():
                bundle = WireBundle.parse(bundle_key).value
                try:
                    value = int(count)
                except (TypeError, ValueError) as exc:
                    raise ValueError(
                        f"Capacity for '{kind}.{role}.{bundle}' must be an integer"
                    ) from exc
                if value < 0:
                    raise ValueError(
                        f"Capacity for '{kind}.{role}.{bundle}' cannot be negative"
                    )
                merged.setdefault(kind, {}).setdefault(role, {})[bundle] = value
    return merged


def get_builtin_capacities() -> CapacityTable:
    """Return the capacity library merged with user overrides.

    The result is a deep copy of built-ins, updated with entries from
    ``lib/capacities.yml`` in the current working directory if present.

    Returns:
        Nested mapping kind -> role -> bundle -> port count.
    """
    user_capacities = _load_user_library("capacities.yml")
    return merge_capacities(_BUILTIN_CAPACITIES, user_capacities)


def get_builtin_capacity_table(kind: str) -> dict[str, dict[str, int]]:
    """Get the built-in table for one entity kind.

    Args:
        kind: Entity kind name (e.g., "switchbox", "tile").

    Returns:
        Mapping role -> bundle -> port count.

    Raises:
        KeyError: If the kind is not found.
    """
    if kind not in _BUILTIN_CAPACITIES:
        available = list(_BUILTIN_CAPACITIES.keys())
        raise KeyError(f"Entity kind '{kind}' not found. Available: {available}")

    return deepcopy(_BUILTIN_CAPACITIES[kind])


def list_entity_kinds() -> list[str]:
    """Get a sorted list of entity kinds with a capacity table."""
    return sorted(_BUILTIN_CAPACITIES.keys())


def capacity(
    kind: EntityKind | str,
    bundle: WireBundle | str,
    role: PortRole | str,
    table: CapacityTable | None = None,
) -> int:
    """Return the exclusive upper bound on port indices.

    Total over every kind/bundle/role combination: combinations that are not
    wired on the entity kind return 0.

    Args:
        kind: Entity kind owning the ports.
        bundle: Wire bundle of the port.
        role: Source or destination use of the port.
        table: Optional capacity table; defaults to the built-in one.
    """
    lookup = _BUILTIN_CAPACITIES if table is None else table
    kind_key = _parse_kind(kind).value
    role_key = _parse_role(role).value
    bundle_key = WireBundle.parse(bundle).value
    return int(lookup.get(kind_key, {}).get(role_key, {}).get(bundle_key, 0))


def num_source_connections(
    kind: EntityKind | str, bundle: WireBundle | str, table: CapacityTable | None = None
) -> int:
    """Number of source ports of ``bundle`` on an entity of ``kind``."""
    return capacity(kind, bundle, PortRole.SOURCE, table)


def num_dest_connections(
    kind: EntityKind | str, bundle: WireBundle | str, table: CapacityTable | None = None
) -> int:
    """Number of destination ports of ``bundle`` on an entity of ``kind``."""
    return capacity(kind, bundle, PortRole.DEST, table)


def _parse_kind(value: EntityKind | str) -> EntityKind:
    if isinstance(value, EntityKind):
        return value
    try:
        return EntityKind(str(value).strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown entity kind '{value}'") from exc


def _parse_role(value: PortRole | str) -> PortRole:
    if isinstance(value, PortRole):
        return value
    text = str(value).strip().lower()
    if text in ("destination", "dst"):
        text = "dest"
    elif text == "src":
        text = "source"
    try:
        return PortRole(text)
    except ValueError as exc:
        raise ValueError(f"Unknown port role '{value}'") from exc
