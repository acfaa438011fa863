"""Helper utilities for design audits."""

from __future__ import annotations

from typing import Any

from aiefabric.design import AMSel, BodyEntry, Design, UnresolvedReferenceError
from aiefabric.naming import entry_label

from .diagnostics import UNRESOLVED_TILE, Diagnostic


def _labelled(body: tuple[BodyEntry, ...]) -> list[tuple[str, BodyEntry]]:
    """Pair each body entry with its diagnostic label."""
    return [(entry_label(entry, pos), entry) for pos, entry in enumerate(body)]


def _amsel_index(body: tuple[BodyEntry, ...]) -> dict[str, AMSel]:
    """Return AMSel entries of a body keyed by name."""
    return {e.name: e for e in body if isinstance(e, AMSel)}


def _tile_diagnostics(design: Design, entity: Any) -> list[Diagnostic]:
    """Report a tile handle that does not resolve to a tile."""
    try:
        design.tile_of(entity)
    except UnresolvedReferenceError as e:
        return [
            Diagnostic(
                entity.name,
                UNRESOLVED_TILE,
                f"{entity.kind} tile reference {e}",
                related=(str(entity.tile),),
            )
        ]
    return []
