"""Core and mem structural audits."""

from __future__ import annotations

from aiefabric.design import Alloc, Core, Design, Mem
from aiefabric.naming import entry_label

from ..diagnostics import MISSING_ALLOC_ID, Diagnostic
from ..helpers import _tile_diagnostics


def check_core(design: Design, core: Core) -> list[Diagnostic]:
    """Ensure the core's tile reference resolves to a tile."""
    return _tile_diagnostics(design, core)


def check_mem(design: Design, mem: Mem) -> list[Diagnostic]:
    """Ensure the mem's tile resolves and every allocation carries an ``id``.

    Only allocations directly in the mem body are inspected. A missing id is
    reported once per allocation.
    """
    issues = _tile_diagnostics(design, mem)
    for pos, entry in enumerate(mem.body):
        if not isinstance(entry, Alloc) or entry.has_id:
            continue
        label = entry_label(entry, pos)
        issues.append(
            Diagnostic(
                mem.name,
                MISSING_ALLOC_ID,
                f"alloc '{label}' in mem region should have an id attribute",
                related=(label,),
            )
        )
    return issues
