"""Configuration management for the fabric validator."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from aiefabric.capacity_lib import (
    CapacityTable,
    get_builtin_capacities,
    merge_capacities,
)
from aiefabric.log_config import get_logger

logger = get_logger(__name__)


@dataclass
class AuditConfig:
    """Audit behaviour settings.

    Controls how far a single entity audit proceeds after a violation, how
    dangling lock references are graded, and how many entities are audited
    concurrently.
    """

    fail_fast: bool = True  # Report only the first violation per entity
    strict_locks: bool = False  # Unresolved lock references fail validation
    max_workers: int = 1  # Concurrent entity audits (1 = sequential)
    # Loader construction mode: reject a second switchbox on a tile while
    # building instead of reporting it from the tile audit.
    enforce_single_switchbox: bool = False


@dataclass
class ValidatorConfig:
    """Top-level validator configuration.

    Aggregates audit settings and optional port capacity overrides applied on
    top of the built-in capacity library.
    """

    audit: AuditConfig = field(default_factory=AuditConfig)
    # kind -> role -> bundle -> port count
    capacities: dict[str, dict[str, dict[str, int]]] = field(default_factory=dict)

    _source_path: Path | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_yaml(cls, config_path: Path) -> ValidatorConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Parsed configuration object.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            yaml.YAMLError: If YAML is invalid.
            ValueError: If configuration is invalid.
        """
        logger.info(f"Loading configuration from: {config_path}")

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                raw_config = yaml.safe_load(f)

        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in configuration: {e}")
            raise

        cfg = cls._from_dict(raw_config or {})
        cfg._source_path = Path(config_path)
        return cfg

    @classmethod
    def _from_dict(cls, config_dict: dict[str, Any]) -> ValidatorConfig:
        """Build configuration from a parsed mapping and validate it.

        Raises:
            ValueError: If a section has the wrong shape or an invalid value.
        """
        if not isinstance(config_dict, dict):
            raise ValueError("Configuration must be a mapping")

        known = {"audit", "capacities"}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ValueError(f"Unknown configuration section(s): {', '.join(unknown)}")

        audit_dict = config_dict.get("audit") or {}
        if not isinstance(audit_dict, dict):
            raise ValueError("'audit' configuration section must be a dictionary")
        audit_fields = set(AuditConfig.__dataclass_fields__)
        bad_keys = sorted(set(audit_dict) - audit_fields)
        if bad_keys:
            raise ValueError(f"Unknown audit option(s): {', '.join(bad_keys)}")

        capacities = config_dict.get("capacities") or {}
        if not isinstance(capacities, dict):
            raise ValueError("'capacities' configuration section must be a dictionary")

        cfg = cls(audit=AuditConfig(**audit_dict), capacities=capacities)
        cfg.validate()
        return cfg

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If configuration is invalid.
        """
        logger.debug("Validating configuration")

        for name in ("fail_fast", "strict_locks", "enforce_single_switchbox"):
            if not isinstance(getattr(self.audit, name), bool):
                raise ValueError(f"audit.{name} must be a boolean")

        if not isinstance(self.audit.max_workers, int) or self.audit.max_workers < 1:
            raise ValueError("audit.max_workers must be a positive integer")

        # Raises ValueError on unknown kinds, roles, bundles or bad counts
        merge_capacities({}, self.capacities)

        logger.debug("Configuration validation passed")

    def capacity_table(self) -> CapacityTable:
        """Return the built-in capacity library merged with config overrides."""
        return merge_capacities(get_builtin_capacities(), self.capacities)

    def summary(self) -> str:
        """Generate configuration summary string.

        Returns:
            Human-readable configuration summary.
        """
        lines = [
            "FABRIC VALIDATOR CONFIGURATION",
            "=" * 60,
            "",
            "AUDIT",
            "-" * 30,
            f"   Fail Fast: {self.audit.fail_fast}",
            f"   Strict Locks: {self.audit.strict_locks}",
            f"   Max Workers: {self.audit.max_workers}",
            f"   Enforce Single Switchbox: {self.audit.enforce_single_switchbox}",
            "",
            "PORT CAPACITIES",
            "-" * 30,
        ]
        table = self.capacity_table()
        for kind in sorted(table):
            for role in sorted(table[kind]):
                counts = ", ".join(
                    f"{bundle}={count}" for bundle, count in table[kind][role].items()
                )
                lines.append(f"   {kind}.{role}: {counts}")
        if self.capacities:
            lines.append("   (includes configuration overrides)")
        lines.extend(["", "=" * 60])
        return "\n".join(lines)
