"""Design validation package.

This package provides audits that decide whether a design is realizable on the
fabric:

- Switchbox bodies: unique destinations, port ranges per bundle, one arbiter
  per master port, packet sources that do not collide with circuit sources
- Shim switchbox bodies: unique destinations, connections only
- Packet flows: only packet source/dest entries
- Tiles: at most one switchbox each
- Cores, mems, locks: tile references resolve; mem allocations carry an ``id``
- Lock uses: referenced lock resolves

Public API:
    - run_design_audits
    - validate_design_yaml
    - Diagnostic, ValidationReport, Severity
"""

from __future__ import annotations

from .audits import run_design_audits
from .diagnostics import Diagnostic, Severity, ValidationReport
from .yaml_validation import validate_design_yaml

__all__ = [
    "Diagnostic",
    "Severity",
    "ValidationReport",
    "run_design_audits",
    "validate_design_yaml",
]
