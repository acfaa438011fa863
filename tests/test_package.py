"""Test package structure and imports."""

import sys
from pathlib import Path


def test_package_import():
    """Test that the aiefabric package can be imported."""
    import aiefabric

    assert hasattr(aiefabric, "__version__")
    assert aiefabric.__version__ == "0.1.0"


def test_public_api():
    """Test that the package re-exports its entry points."""
    import aiefabric

    for name in (
        "Design",
        "DesignError",
        "Port",
        "WireBundle",
        "ValidatorConfig",
        "load_design",
        "load_design_file",
        "run_design_audits",
        "validate_design_yaml",
    ):
        assert hasattr(aiefabric, name), name


def test_cli_module_import():
    """Test that aiefabric.cli can be imported."""
    import aiefabric.cli

    assert hasattr(aiefabric.cli, "main")
    assert callable(aiefabric.cli.main)


def test_logging_module_import():
    """Test that aiefabric.log_config can be imported."""
    import aiefabric.log_config

    assert callable(aiefabric.log_config.get_logger)
    assert callable(aiefabric.log_config.set_global_log_level)


def test_main_module_calls_cli():
    """Test that __main__ module calls cli.main()."""
    import aiefabric.__main__

    content = Path(aiefabric.__main__.__file__).read_text()

    assert "from aiefabric.cli import main" in content
    assert "main()" in content


def test_schema_is_packaged():
    """Test that the design schema ships with the package."""
    from importlib import resources as res

    assert res.files("aiefabric.schemas").joinpath("design.json").is_file()


def test_python_version_compatibility():
    """Test that package works with supported Python versions."""
    assert sys.version_info >= (3, 11), "Package requires Python 3.11+"
