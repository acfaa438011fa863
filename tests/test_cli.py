"""CLI tests focused on argument parsing, dispatch and exit codes."""

from __future__ import annotations

import builtins as py_builtins
import importlib
import logging
from argparse import Namespace
from io import StringIO
from pathlib import Path
from types import SimpleNamespace  # for narrow use in _invoke_main helper
from unittest.mock import patch

import yaml


def _invoke_main(argv: list[str], *, stub_subcommand: bool = False):
    """Invoke aiefabric.cli.main with patches applied.

    Args:
        argv: Arguments excluding program name.
        stub_subcommand: If True, replaces subcommands (validate/info) with a
            function that records it was called.

    Returns:
        Namespace with: code (int), stdout (str), called (str|None), level (int|None).
    """
    import aiefabric.cli as cli

    importlib.reload(cli)

    called: dict[str, bool] = {"validate": False, "info": False}
    level_holder: dict[str, int | None] = {"level": None}

    patchers = [
        patch(
            "aiefabric.log_config.set_global_log_level",
            side_effect=lambda lvl: level_holder.__setitem__("level", lvl),
        )
    ]

    if stub_subcommand:
        patchers.extend(
            [
                patch.object(
                    cli,
                    "validate_command",
                    side_effect=lambda a: called.__setitem__("validate", True),
                ),
                patch.object(
                    cli,
                    "info_command",
                    side_effect=lambda a: called.__setitem__("info", True),
                ),
            ]
        )

    for p in patchers:
        p.start()

    out = SimpleNamespace(code=0, stdout="", called=None, level=None)
    saved_print = py_builtins.print
    try:
        with (
            patch("sys.stdout", new_callable=StringIO) as buf,
            patch("sys.argv", ["aiefabric"] + argv),
        ):
            try:
                cli.main()
            except SystemExit as e:
                out.code = int(getattr(e, "code", 0) or 0)
            out.stdout = buf.getvalue()
            out.level = level_holder["level"]
            for name, was_called in called.items():
                if was_called:
                    out.called = name
                    break
    finally:
        # Restore global print in case --quiet modified it
        py_builtins.print = saved_print
        for p in reversed(patchers):
            p.stop()

    return out


def _write(tmp_path: Path, name: str, data) -> Path:
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


def test_no_args_shows_help_and_exits_nonzero():
    res = _invoke_main([])
    assert res.code == 1
    assert "Available commands" in res.stdout


def test_verbose_flag_sets_debug_level_and_dispatches_info():
    res = _invoke_main(["-v", "info"], stub_subcommand=True)
    assert res.called == "info"
    assert res.level == logging.DEBUG


def test_default_log_level_is_info():
    res = _invoke_main(["info", "-c", "config.yml"], stub_subcommand=True)
    assert res.level == logging.INFO


def test_quiet_suppresses_print_output(design_file):
    res = _invoke_main(["--quiet", "validate", str(design_file)])
    assert res.code == 0
    assert res.stdout == ""


def test_subcommand_dispatch():
    res = _invoke_main(["validate", "design.yml"], stub_subcommand=True)
    assert res.called == "validate"
    res = _invoke_main(["info"], stub_subcommand=True)
    assert res.called == "info"


def test_timer_context_manager_success_and_error():
    from aiefabric.cli import Timer

    with patch("sys.stdout", new_callable=StringIO) as buf:
        with Timer("Unit test op"):
            pass
        assert "Unit test op" in buf.getvalue()

    with patch("sys.stdout", new_callable=StringIO) as buf:
        try:
            with Timer("Failing op"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert "failed after" in buf.getvalue()


def test_validate_valid_design(design_file):
    res = _invoke_main(["validate", str(design_file)])
    assert res.code == 0
    assert "Design is valid: 11 entities checked" in res.stdout


def test_validate_invalid_design_exits_3(tmp_path, sample_design_dict):
    body = sample_design_dict["switchboxes"][0]["body"]
    body.insert(1, {"connect": {"source": ["DMA", 1], "dest": ["North", 0]}})
    path = _write(tmp_path, "bad.yml", sample_design_dict)

    res = _invoke_main(["validate", str(path)])
    assert res.code == 3
    expected = "[duplicate-destination] sb11: connect#1 targets same destination"
    assert expected in res.stdout
    assert "found 1 error(s)" in res.stdout


def test_validate_collect_all_flag(tmp_path, sample_design_dict):
    body = sample_design_dict["switchboxes"][0]["body"]
    body.insert(1, {"connect": {"source": ["DMA", 1], "dest": ["North", 0]}})
    body.insert(1, {"connect": {"source": ["DMA", 5], "dest": ["North", 1]}})
    path = _write(tmp_path, "bad.yml", sample_design_dict)

    assert "found 1 error(s)" in _invoke_main(["validate", str(path)]).stdout
    res = _invoke_main(["validate", "--collect-all", str(path)])
    assert res.code == 3
    assert "found 2 error(s)" in res.stdout


def test_validate_dangling_lock_warns_or_fails(tmp_path, sample_design_dict):
    sample_design_dict["use_locks"][0]["lock"] = "nolock"
    path = _write(tmp_path, "lock.yml", sample_design_dict)

    res = _invoke_main(["validate", str(path)])
    assert res.code == 0
    assert "[unresolved-lock]" in res.stdout
    assert "1 warning(s)" in res.stdout

    assert _invoke_main(["validate", "--strict-locks", str(path)]).code == 3


def test_validate_missing_design_exits_1(tmp_path):
    res = _invoke_main(["validate", str(tmp_path / "missing.yml")])
    assert res.code == 1
    assert "Design file not found" in res.stdout


def test_validate_missing_config_exits_2(design_file, tmp_path):
    res = _invoke_main(
        ["validate", str(design_file), "-c", str(tmp_path / "missing.yml")]
    )
    assert res.code == 2
    assert "Configuration file not found" in res.stdout


def test_validate_bad_jobs_exits_2(design_file):
    res = _invoke_main(["validate", str(design_file), "-j", "0"])
    assert res.code == 2
    assert "Configuration error" in res.stdout


def test_validate_uses_config_capacities(tmp_path, sample_design_dict):
    body = sample_design_dict["switchboxes"][0]["body"]
    body[1] = {"connect": {"source": ["South", 7], "dest": ["ME", 1]}}
    design_path = _write(tmp_path, "design.yml", sample_design_dict)
    config_path = _write(
        tmp_path, "config.yml", {"capacities": {"switchbox": {"source": {"South": 8}}}}
    )

    assert _invoke_main(["validate", str(design_path)]).code == 3
    res = _invoke_main(["validate", str(design_path), "-c", str(config_path)])
    assert res.code == 0


def test__load_config_generic_error_exits_with_code_2():
    import aiefabric.cli as cli

    importlib.reload(cli)

    with (
        patch.object(cli.ValidatorConfig, "from_yaml", side_effect=ValueError("bad")),
        patch("sys.stdout", new_callable=StringIO) as buf,
    ):
        try:
            cli._load_config(Path("config.yml"))
        except SystemExit as e:
            assert int(e.code or 0) == 2
        assert "Configuration error: bad" in buf.getvalue()


def test_validate_runtime_error_exits_1(design_file):
    import aiefabric.cli as cli
    import aiefabric.validation as validation

    importlib.reload(cli)

    with (
        patch.object(validation, "validate_design_yaml", side_effect=RuntimeError("x")),
        patch("sys.stdout", new_callable=StringIO),
    ):
        args = Namespace(
            design=str(design_file),
            config=None,
            collect_all=False,
            strict_locks=False,
            jobs=None,
            no_schema=False,
        )
        try:
            cli.validate_command(args)
        except SystemExit as e:
            assert int(e.code or 0) == 1
        else:
            raise AssertionError("expected SystemExit")


def test_info_command_prints_summary():
    res = _invoke_main(["info"])
    assert res.code == 0
    assert "FABRIC VALIDATOR CONFIGURATION" in res.stdout
    expected = "switchbox.source: ME=2, DMA=2, North=4, South=6, East=4, West=4"
    assert expected in res.stdout
