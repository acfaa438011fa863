"""Shim switchbox body audit.

Shim switchboxes sit on the array boundary and interface off-fabric, so only
destination uniqueness is checked; port ranges are not bounded here.
"""

from __future__ import annotations

from aiefabric.design import Connect, End, ShimSwitchbox
from aiefabric.ports import Port

from ..diagnostics import DUPLICATE_DESTINATION, ILLEGAL_BODY_CONTENT, Diagnostic
from ..helpers import _labelled


def check_shim_switchbox(
    shim: ShimSwitchbox, *, fail_fast: bool = True
) -> list[Diagnostic]:
    """Ensure connect destinations are unique and the body holds only connects."""
    issues: list[Diagnostic] = []
    used_dests: dict[Port, str] = {}
    for label, entry in _labelled(shim.body):
        if isinstance(entry, Connect):
            peer = used_dests.get(entry.dest)
            if peer is None:
                used_dests[entry.dest] = label
                continue
            issues.append(
                Diagnostic(
                    shim.name,
                    DUPLICATE_DESTINATION,
                    f"{label} targets same destination {entry.dest} as {peer}",
                    related=(label, peer),
                )
            )
        elif isinstance(entry, End):
            continue
        else:
            issues.append(
                Diagnostic(
                    shim.name,
                    ILLEGAL_BODY_CONTENT,
                    f"{label} ({entry.op_name}) cannot be contained in a shim "
                    "switchbox",
                    related=(label,),
                )
            )
        if fail_fast:
            break
    return issues
