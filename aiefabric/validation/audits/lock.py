"""Lock and lock-use reference audits."""

from __future__ import annotations

from aiefabric.design import Design, Lock, UseLock

from ..diagnostics import UNRESOLVED_LOCK, Diagnostic, Severity
from ..helpers import _tile_diagnostics


def check_lock(design: Design, lock: Lock) -> list[Diagnostic]:
    """Ensure the lock's tile reference resolves to a tile."""
    return _tile_diagnostics(design, lock)


def check_use_lock(
    design: Design, use_lock: UseLock, *, strict: bool = False
) -> list[Diagnostic]:
    """Resolve the lock referenced by ``use_lock``.

    A dangling reference is reported as a warning, or as an error when
    ``strict`` is set.
    """
    if design.lookup_lock(use_lock.lock) is not None:
        return []
    other = design.kind_of(use_lock.lock)
    if other is not None:
        detail = f"'{use_lock.lock}' is a {other}, not a lock"
    else:
        detail = f"'{use_lock.lock}' does not resolve to a lock"
    return [
        Diagnostic(
            use_lock.name,
            UNRESOLVED_LOCK,
            f"use_lock ({use_lock.action}) expected a lock: {detail}",
            severity=Severity.ERROR if strict else Severity.WARNING,
            related=(use_lock.lock,),
        )
    ]
