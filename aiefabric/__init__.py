"""Interconnect and resource validator for tile array accelerators.

Models tiles, switchboxes, packet flows, cores, memories and locks of a 2-D
accelerator array and checks that a configuration is realizable on the fabric.
"""

__version__ = "0.1.0"

# Core classes and utilities
from .config import ValidatorConfig
from .design import Design, DesignError, UnresolvedReferenceError
from .loader import load_design, load_design_file, load_design_yaml
from .ports import Port, WireBundle
from .validation import run_design_audits, validate_design_yaml

__all__ = [
    "Design",
    "DesignError",
    "Port",
    "UnresolvedReferenceError",
    "ValidatorConfig",
    "WireBundle",
    "load_design",
    "load_design_file",
    "load_design_yaml",
    "run_design_audits",
    "validate_design_yaml",
]
