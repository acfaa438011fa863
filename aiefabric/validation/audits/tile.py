"""Tile attachment audit."""

from __future__ import annotations

from aiefabric.design import Design, Tile

from ..diagnostics import MULTIPLE_SWITCHBOXES, Diagnostic


def check_tile(design: Design, tile: Tile) -> list[Diagnostic]:
    """Ensure at most one switchbox lists ``tile`` as its tile.

    Scans the tile's dependents in the reference graph and reports the second
    switchbox found, naming the first one as its peer.
    """
    first: str | None = None
    for user in design.users(tile.name):
        if design.kind_of(user) != "switchbox":
            continue
        if first is None:
            first = user
            continue
        return [
            Diagnostic(
                tile.name,
                MULTIPLE_SWITCHBOXES,
                f"tile can only have one switchbox: '{user}' conflicts with '{first}'",
                related=(first, user),
            )
        ]
    return []
