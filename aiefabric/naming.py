"""Naming utilities for stable entity identifiers.

Provides a single source of truth for default tile names and for the short
labels used when diagnostics refer to body entries that carry no name.
"""

from __future__ import annotations

from typing import Any


def tile_name(col: int, row: int) -> str:
    """Return the default handle for the tile at ``(col, row)``.

    Args:
        col: Column index in the array.
        row: Row index in the array.

    Returns:
        Name of the form ``tile_<col>_<row>``.
    """
    return f"tile_{int(col)}_{int(row)}"


def entry_label(entry: Any, position: int) -> str:
    """Return a label for a body entry used in diagnostics.

    Named entries keep their name. Unnamed ones are labelled by operation name
    and position inside the body, e.g. ``connect#2``.
    """
    name = str(getattr(entry, "name", "") or "").strip()
    if name:
        return name
    op_name = str(getattr(entry, "op_name", "op"))
    return f"{op_name}#{position}"
