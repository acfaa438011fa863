"""Composable per-entity design audits."""

from __future__ import annotations

from .core_mem import check_core, check_mem
from .lock import check_lock, check_use_lock
from .packet_flow import check_packet_flow
from .pipeline import run_design_audits
from .shim_switchbox import check_shim_switchbox
from .switchbox import check_switchbox
from .tile import check_tile

__all__ = [
    "check_core",
    "check_lock",
    "check_mem",
    "check_packet_flow",
    "check_shim_switchbox",
    "check_switchbox",
    "check_tile",
    "check_use_lock",
    "run_design_audits",
]
