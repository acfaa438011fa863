"""Switchbox body audit: destination conflicts, port ranges and arbitration."""

from __future__ import annotations

from aiefabric.capacity_lib import CapacityTable
from aiefabric.design import (
    AMSel,
    Connect,
    End,
    MasterSet,
    PacketRules,
    Switchbox,
)
from aiefabric.log_config import get_logger
from aiefabric.ports import Port

from ..diagnostics import (
    ARBITER_CONFLICT,
    DEST_INDEX_RANGE,
    DUPLICATE_DESTINATION,
    ILLEGAL_BODY_CONTENT,
    PACKET_SOURCE_COLLISION,
    SOURCE_INDEX_RANGE,
    UNKNOWN_AMSEL,
    Diagnostic,
)
from ..helpers import _amsel_index, _labelled

logger = get_logger(__name__)


def _index_problem(label: str, port: Port, role: str, bound: int) -> str | None:
    """Return a message when ``port`` is outside ``[0, bound)``, else None."""
    if port.index < 0:
        return f"{label} {role} index cannot be less than zero ({port})"
    if port.index >= bound:
        return (
            f"{label} {role} index for {role} bundle {port.bundle} must be less "
            f"than {bound} ({port})"
        )
    return None


def check_switchbox(
    switchbox: Switchbox,
    *,
    capacities: CapacityTable | None = None,
    fail_fast: bool = True,
) -> list[Diagnostic]:
    """Audit one switchbox body in order.

    Connect and masterset entries may not share a destination port, and
    their ports must lie within the switchbox capacity for their bundle. All
    arbiter selections attached to a masterset must use the same arbiter. A
    packet rules source may not reuse a source already claimed earlier in the
    body. Only connect, masterset, packet rules, amsel and end entries are
    allowed.

    Args:
        switchbox: Switchbox to audit.
        capacities: Optional capacity table; built-in table when omitted.
        fail_fast: Stop at the first violation in body order when True,
            otherwise report every violation found.

    Returns:
        Diagnostics attached to the switchbox; empty when the body is valid.
    """
    issues: list[Diagnostic] = []
    used_sources: dict[Port, str] = {}
    used_dests: dict[Port, str] = {}
    amsels = _amsel_index(switchbox.body)

    def _report(rule: str, message: str, related: tuple[str, ...] = ()) -> bool:
        issues.append(Diagnostic(switchbox.name, rule, message, related=related))
        return fail_fast

    for label, entry in _labelled(switchbox.body):
        if isinstance(entry, (Connect, MasterSet)):
            dest = entry.dest
            peer = used_dests.get(dest)
            if peer is not None:
                if _report(
                    DUPLICATE_DESTINATION,
                    f"{label} targets same destination {dest} as {peer}",
                    (label, peer),
                ):
                    return issues
            else:
                used_dests[dest] = label

            if isinstance(entry, Connect):
                used_sources.setdefault(entry.source, label)
                bound = switchbox.num_source_connections(
                    entry.source.bundle, capacities
                )
                problem = _index_problem(label, entry.source, "source", bound)
                if problem and _report(SOURCE_INDEX_RANGE, problem, (label,)):
                    return issues

            bound = switchbox.num_dest_connections(dest.bundle, capacities)
            problem = _index_problem(label, dest, "dest", bound)
            if problem and _report(DEST_INDEX_RANGE, problem, (label,)):
                return issues

            if isinstance(entry, MasterSet):
                arbiters: list[int] = []
                for ref in entry.amsels:
                    amsel = amsels.get(ref)
                    if amsel is None:
                        if _report(
                            UNKNOWN_AMSEL,
                            f"{label} references unknown amsel '{ref}'",
                            (label, ref),
                        ):
                            return issues
                        continue
                    if amsel.arbiter not in arbiters:
                        arbiters.append(amsel.arbiter)
                if len(arbiters) > 1:
                    used = ", ".join(str(a) for a in arbiters)
                    if _report(
                        ARBITER_CONFLICT,
                        f"{label}: a master port can only be tied to one arbiter "
                        f"(dest {dest} uses arbiters {used})",
                        (label,) + tuple(entry.amsels),
                    ):
                        return issues

        elif isinstance(entry, PacketRules):
            source = entry.source
            peer = used_sources.get(source)
            if peer is not None:
                if _report(
                    PACKET_SOURCE_COLLISION,
                    f"{label} packet switched source {source} cannot match "
                    f"another connect or masterset operation ({peer})",
                    (label, peer),
                ):
                    return issues
            else:
                used_sources[source] = label

        elif isinstance(entry, (AMSel, End)):
            continue

        else:
            if _report(
                ILLEGAL_BODY_CONTENT,
                f"{label} ({entry.op_name}) cannot be contained in a switchbox",
                (label,),
            ):
                return issues

    logger.debug(
        "switchbox %s: %d entries audited, %d issue(s)",
        switchbox.name,
        len(switchbox.body),
        len(issues),
    )
    return issues
