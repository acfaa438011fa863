"""Audit pipeline orchestrator."""

from __future__ import annotations

import concurrent.futures
from typing import Callable

from aiefabric.config import ValidatorConfig
from aiefabric.design import Design
from aiefabric.log_config import get_logger, log_diagnostic

from ..diagnostics import AUDIT_FAILURE, Diagnostic, ValidationReport
from ..helpers import _tile_diagnostics
from .core_mem import check_core, check_mem
from .lock import check_lock, check_use_lock
from .packet_flow import check_packet_flow
from .shim_switchbox import check_shim_switchbox
from .switchbox import check_switchbox
from .tile import check_tile

logger = get_logger(__name__)

AuditTask = tuple[str, str, Callable[[], list[Diagnostic]]]


def _audit_tasks(design: Design, config: ValidatorConfig) -> list[AuditTask]:
    """Return ``(entity name, kind, audit)`` triples in a stable order."""
    fail_fast = config.audit.fail_fast
    capacities = config.capacity_table()
    tasks: list[AuditTask] = []

    for tile in design.tiles.values():
        tasks.append((tile.name, tile.kind, lambda t=tile: check_tile(design, t)))

    for sb in design.switchboxes.values():

        def _switchbox(sb=sb) -> list[Diagnostic]:
            issues = _tile_diagnostics(design, sb)
            if issues and fail_fast:
                return issues
            return issues + check_switchbox(
                sb, capacities=capacities, fail_fast=fail_fast
            )

        tasks.append((sb.name, sb.kind, _switchbox))

    for shim in design.shim_switchboxes.values():

        def _shim(shim=shim) -> list[Diagnostic]:
            issues = _tile_diagnostics(design, shim)
            if issues and fail_fast:
                return issues
            return issues + check_shim_switchbox(shim, fail_fast=fail_fast)

        tasks.append((shim.name, shim.kind, _shim))

    for flow in design.packet_flows.values():
        tasks.append(
            (
                flow.name,
                flow.kind,
                lambda f=flow: check_packet_flow(f, fail_fast=fail_fast),
            )
        )
    for core in design.cores.values():
        tasks.append((core.name, core.kind, lambda c=core: check_core(design, c)))
    for mem in design.mems.values():
        tasks.append((mem.name, mem.kind, lambda m=mem: check_mem(design, m)))
    for lock in design.locks.values():
        tasks.append((lock.name, lock.kind, lambda lk=lock: check_lock(design, lk)))
    for use in design.use_locks.values():
        tasks.append(
            (
                use.name,
                use.kind,
                lambda u=use: check_use_lock(
                    design, u, strict=config.audit.strict_locks
                ),
            )
        )
    return tasks


def _run_task(task: AuditTask) -> list[Diagnostic]:
    name, kind, audit = task
    try:
        return audit()
    except Exception as e:
        return [Diagnostic(name, AUDIT_FAILURE, f"{kind} audit failed: {e}")]


def run_design_audits(
    design: Design, config: ValidatorConfig | None = None
) -> ValidationReport:
    """Audit every entity of ``design`` and collect the diagnostics.

    Stages, one task per entity:
      1) Tiles: at most one switchbox each
      2) Switchboxes: tile reference, destinations, port ranges, arbiters,
         packet source collisions, body content
      3) Shim switchboxes: tile reference, destinations, body content
      4) Packet flows: body content
      5) Cores: tile reference
      6) Mems: tile reference, allocation ids
      7) Locks: tile reference
      8) Lock uses: lock reference

    Entity audits are independent. With ``audit.max_workers > 1`` they run on
    a thread pool; results are always gathered in task order so the report is
    deterministic.
    """
    config = config or ValidatorConfig()
    tasks = _audit_tasks(design, config)
    report = ValidationReport(checked=len(tasks))

    workers = max(1, config.audit.max_workers)
    if workers == 1 or len(tasks) < 2:
        for task in tasks:
            report.extend(_run_task(task))
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
            futures = [ex.submit(_run_task, task) for task in tasks]
            for fut in futures:
                report.extend(fut.result())

    for diag in report.diagnostics:
        log_diagnostic(logger, diag)

    logger.info(
        "design %s: %d entities audited, %d error(s), %d warning(s)",
        design.name,
        report.checked,
        len(report.errors),
        len(report.warnings),
    )
    return report
