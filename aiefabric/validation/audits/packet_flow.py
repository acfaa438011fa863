"""Packet flow structure audit."""

from __future__ import annotations

from aiefabric.design import End, PacketDest, PacketFlow, PacketSource

from ..diagnostics import ILLEGAL_BODY_CONTENT, Diagnostic
from ..helpers import _labelled


def check_packet_flow(flow: PacketFlow, *, fail_fast: bool = True) -> list[Diagnostic]:
    """Ensure a packet flow body holds only packet sources, dests and end.

    Ports shared between flows are not an error here; contention is checked
    per switchbox through packet rules.
    """
    issues: list[Diagnostic] = []
    for label, entry in _labelled(flow.body):
        if isinstance(entry, (PacketSource, PacketDest, End)):
            continue
        issues.append(
            Diagnostic(
                flow.name,
                ILLEGAL_BODY_CONTENT,
                f"{label} ({entry.op_name}) cannot be contained in a packet flow",
                related=(label,),
            )
        )
        if fail_fast:
            break
    return issues
