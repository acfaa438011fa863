"""Command line interface for fabric design validation."""

from __future__ import annotations

import argparse
import sys
import time
from contextlib import contextmanager
from pathlib import Path

from aiefabric.config import ValidatorConfig
from aiefabric.log_config import get_logger

logger = get_logger(__name__)


@contextmanager
def Timer(description: str):
    """Context manager for timing operations with both print and log output.

    Args:
        description: Operation description for timing messages.

    Yields:
        None: Context manager yields nothing.
    """
    print(f"🔄 {description}...")
    logger.info(f"Starting {description}")
    start = time.time()
    try:
        yield
        elapsed = time.time() - start
        print(f"✅ {description} (completed in {elapsed:.1f}s)")
        logger.info(f"Completed {description} in {elapsed:.1f}s")
    except Exception as e:
        elapsed = time.time() - start
        print(f"❌ {description} (failed after {elapsed:.1f}s)")
        logger.error(f"Failed {description} after {elapsed:.1f}s: {e}")
        raise


def _load_config(config_path: Path | None) -> ValidatorConfig:
    """Load and validate configuration.

    Args:
        config_path: Path to YAML configuration file, or None for defaults.

    Returns:
        Loaded and validated configuration object.

    Raises:
        SystemExit: If configuration loading or validation fails.
    """
    if config_path is None:
        return ValidatorConfig()
    try:
        config = ValidatorConfig.from_yaml(config_path)
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except FileNotFoundError:
        print(f"❌ Configuration file not found: {config_path}")
        logger.error(f"Configuration file not found: {config_path}")
        sys.exit(2)  # Config problem
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"❌ Configuration error: {e}")
        print(f"💡 Check YAML syntax in: {config_path}")
        sys.exit(2)  # Config problem


def _apply_overrides(config: ValidatorConfig, args: argparse.Namespace) -> None:
    """Apply command line flags on top of the loaded configuration."""
    if getattr(args, "collect_all", False):
        config.audit.fail_fast = False
    if getattr(args, "strict_locks", False):
        config.audit.strict_locks = True
    jobs = getattr(args, "jobs", None)
    if jobs is not None:
        config.audit.max_workers = jobs
    config.validate()


def validate_command(args: argparse.Namespace) -> None:
    """Validate a design file and report diagnostics.

    Args:
        args: Parsed command line arguments containing design and config paths.
    """
    from aiefabric.validation import validate_design_yaml

    design_path = Path(args.design)
    config_obj = _load_config(Path(args.config) if args.config else None)
    try:
        _apply_overrides(config_obj, args)
    except ValueError as e:
        logger.error(f"Invalid option: {e}")
        print(f"❌ Configuration error: {e}")
        sys.exit(2)  # Config problem

    try:
        design_yaml = design_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.error(f"Design file not found: {design_path}")
        print(f"❌ Design file not found: {design_path}")
        sys.exit(1)

    try:
        with Timer(f"Validate {design_path.name}"):
            report = validate_design_yaml(
                design_yaml, config_obj, check_schema=not args.no_schema
            )
    except Exception as e:
        logger.error(f"Validation failed to run: {e}")
        print("💡 Use -v for detailed error information")
        sys.exit(1)  # Runtime error

    for diag in report.diagnostics:
        marker = "❌" if diag.is_error else "⚠️ "
        print(f"   {marker} [{diag.rule}] {diag}")

    if not report.ok:
        print(
            f"❌ Design validation found {len(report.errors)} error(s) "
            f"in {report.checked} entities"
        )
        sys.exit(3)  # Validation failure

    print(
        f"🎉 Design is valid: {report.checked} entities checked, "
        f"{len(report.warnings)} warning(s)"
    )


def info_command(args: argparse.Namespace) -> None:
    """Show configuration and capacity table information.

    Args:
        args: Parsed command line arguments containing the config file path.
    """
    config_obj = _load_config(Path(args.config) if args.config else None)
    try:
        print(config_obj.summary())
    except Exception as e:
        print(f"❌ Error loading capacity tables: {e}")
        sys.exit(1)


def main() -> None:
    """Parse command line arguments and execute the appropriate subcommand.

    Configures logging, parses CLI arguments, and dispatches to the correct
    command function (validate or info).
    """
    parser = argparse.ArgumentParser(
        prog="aiefabric",
        description="Validate tile array interconnect and resource configurations.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global options
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress console output (logs only)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Validate command
    validate_parser = subparsers.add_parser(
        "validate", help="Validate a design YAML file"
    )
    validate_parser.add_argument("design", help="Design YAML file path")
    validate_parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Validator configuration file (default: built-in settings)",
    )
    validate_parser.add_argument(
        "--collect-all",
        action="store_true",
        help="Report every violation per entity instead of the first one",
    )
    validate_parser.add_argument(
        "--strict-locks",
        action="store_true",
        help="Treat unresolved lock references as errors",
    )
    validate_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Number of entities audited concurrently",
    )
    validate_parser.add_argument(
        "--no-schema",
        action="store_true",
        help="Skip JSON schema validation of the design file",
    )
    validate_parser.set_defaults(func=validate_command)

    # Info command
    info_parser = subparsers.add_parser(
        "info", help="Show configuration and port capacity tables"
    )
    info_parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Validator configuration file (default: built-in settings)",
    )
    info_parser.set_defaults(func=info_command)

    # Parse arguments and dispatch
    args = parser.parse_args()

    # Configure logging based on arguments
    import logging

    from aiefabric.log_config import set_global_log_level

    # Determine log level from flags
    if args.verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    set_global_log_level(log_level)

    # Suppress print output if --quiet is set
    if args.quiet:
        import builtins

        builtins.print = lambda *args, **kwargs: None

    if not hasattr(args, "func") or args.func is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
