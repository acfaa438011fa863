"""Diagnostic records produced by the design audits."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


# Rule identifiers. Each audited rule reports under exactly one of these.
DUPLICATE_DESTINATION = "duplicate-destination"
SOURCE_INDEX_RANGE = "source-index-range"
DEST_INDEX_RANGE = "dest-index-range"
ARBITER_CONFLICT = "arbiter-conflict"
UNKNOWN_AMSEL = "unknown-amsel"
PACKET_SOURCE_COLLISION = "packet-source-collision"
ILLEGAL_BODY_CONTENT = "illegal-body-content"
MULTIPLE_SWITCHBOXES = "multiple-switchboxes"
UNRESOLVED_TILE = "unresolved-tile"
MISSING_ALLOC_ID = "missing-alloc-id"
UNRESOLVED_LOCK = "unresolved-lock"
AUDIT_FAILURE = "audit-failure"
YAML_PARSE = "yaml-parse"
SCHEMA = "schema"
DESIGN_LOAD = "design-load"


@dataclass(frozen=True)
class Diagnostic:
    """One entity-scoped finding.

    Attributes:
        entity: Name of the entity the finding is attached to.
        rule: Rule identifier (see module constants).
        message: Human-readable description naming the offending construct.
        severity: ``error`` fails validation, ``warning`` does not.
        related: Names of peer entries or entities involved in the finding.
    """

    entity: str
    rule: str
    message: str
    severity: Severity = Severity.ERROR
    related: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.entity}: {self.message}"

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


@dataclass
class ValidationReport:
    """Aggregate outcome of auditing a design."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    checked: int = 0

    @property
    def ok(self) -> bool:
        """True when no error-severity diagnostic was reported."""
        return not self.errors

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    def for_entity(self, name: str) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.entity == name]

    def rules(self) -> list[str]:
        return [d.rule for d in self.diagnostics]

    def as_strings(self) -> list[str]:
        return [str(d) for d in self.diagnostics]

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics.extend(diagnostics)
