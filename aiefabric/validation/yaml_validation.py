"""Top-level YAML validation entry point."""

from __future__ import annotations

import json
from importlib import resources as res
from typing import Any

import jsonschema
import yaml

from aiefabric.config import ValidatorConfig
from aiefabric.design import DesignError
from aiefabric.loader import load_design
from aiefabric.log_config import get_logger, log_diagnostic

from .audits import run_design_audits as _run_design_audits
from .diagnostics import DESIGN_LOAD, SCHEMA, YAML_PARSE, Diagnostic, ValidationReport

logger = get_logger(__name__)


def load_design_schema() -> dict[str, Any]:
    """Return the packaged JSON schema for design documents."""
    with (
        res.files("aiefabric.schemas")
        .joinpath("design.json")
        .open("r", encoding="utf-8") as f
    ):
        return json.load(f)


def _schema_issues(data: Any) -> list[Diagnostic]:
    validator = jsonschema.Draft7Validator(load_design_schema())
    issues: list[Diagnostic] = []
    for err in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        location = "/".join(str(p) for p in err.path) or "<root>"
        issues.append(Diagnostic("design", SCHEMA, f"{location}: {err.message}"))
    return issues


def validate_design_yaml(
    design_yaml: str,
    config: ValidatorConfig | None = None,
    *,
    check_schema: bool = True,
) -> ValidationReport:
    """Validate a design YAML document and return the report.

    Args:
        design_yaml: Complete design YAML string.
        config: Validator configuration; defaults apply when omitted.
        check_schema: If True, check the document against the packaged JSON
            schema before building the design.

    Returns:
        Validation report. Parse, schema and load problems are reported as
        diagnostics against the ``design`` entity and stop validation early.
    """
    config = config or ValidatorConfig()

    try:
        data = yaml.safe_load(design_yaml) or {}
    except yaml.YAMLError as e:
        return _failed(Diagnostic("design", YAML_PARSE, f"YAML parse error: {e}"))

    if check_schema:
        issues = _schema_issues(data)
        if issues:
            report = ValidationReport(diagnostics=issues)
            for diag in issues:
                log_diagnostic(logger, diag)
            return report

    try:
        design = load_design(
            data, enforce_single_switchbox=config.audit.enforce_single_switchbox
        )
    except DesignError as e:
        return _failed(Diagnostic("design", DESIGN_LOAD, str(e)))

    return _run_design_audits(design, config)


def _failed(diag: Diagnostic) -> ValidationReport:
    log_diagnostic(logger, diag)
    return ValidationReport(diagnostics=[diag])
