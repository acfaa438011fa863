"""Pytest configuration and shared fixtures for fabric validator tests."""

import pytest

from aiefabric.design import AMSel, Alloc, Connect, Design, End, MasterSet, PacketRules
from aiefabric.ports import Port, WireBundle


def port(bundle: str, index: int) -> Port:
    return Port(WireBundle.parse(bundle), index)


@pytest.fixture
def sample_design_dict():
    """Valid design document covering every entity kind."""
    return {
        "design": "sample",
        "tiles": [
            {"name": "t11", "col": 1, "row": 1},
            {"name": "t12", "col": 1, "row": 2},
            {"name": "t10", "col": 1, "row": 0},
        ],
        "switchboxes": [
            {
                "name": "sb11",
                "tile": "t11",
                "body": [
                    {"connect": {"source": ["DMA", 0], "dest": ["North", 0]}},
                    {"connect": {"source": "South:3", "dest": "ME:1"}},
                    {"amsel": {"name": "a0", "arbiter": 0, "select": 1}},
                    {"amsel": {"name": "a1", "arbiter": 0, "select": 2}},
                    {"masterset": {"dest": ["East", 2], "amsels": ["a0", "a1"]}},
                    {"packet_rules": {"source": ["West", 1]}},
                    "end",
                ],
            }
        ],
        "shim_switchboxes": [
            {
                "name": "shim10",
                "tile": "t10",
                "body": [{"connect": {"source": ["South", 3], "dest": ["North", 0]}}],
            }
        ],
        "packet_flows": [
            {
                "name": "pf0",
                "id": 0,
                "body": [
                    {"packet_source": {"tile": "t11", "port": ["DMA", 0]}},
                    {"packet_dest": {"tile": "t12", "port": ["ME", 0]}},
                ],
            }
        ],
        "cores": [{"name": "core11", "tile": "t11", "body": [{"call": {}}]}],
        "mems": [
            {
                "name": "mem11",
                "tile": "t11",
                "result_types": ["index"],
                "body": [{"alloc": {"name": "buf", "id": 3}}],
            }
        ],
        "locks": [{"name": "lk0", "tile": "t11", "id": 0}],
        "use_locks": [
            {"name": "acq0", "lock": "lk0", "action": "acquire", "value": 1},
            {"name": "rel0", "lock": "lk0", "action": "release", "value": 0},
        ],
    }


@pytest.fixture
def sample_design_yaml(sample_design_dict):
    """Sample design serialized to YAML text."""
    import yaml

    return yaml.safe_dump(sample_design_dict, sort_keys=False)


@pytest.fixture
def design_file(tmp_path, sample_design_yaml):
    """Write the sample design to a temporary file."""
    path = tmp_path / "design.yml"
    path.write_text(sample_design_yaml)
    return path


@pytest.fixture
def invalid_yaml_file(tmp_path):
    """Create an invalid YAML file for testing."""
    path = tmp_path / "invalid.yml"
    path.write_text("invalid: yaml: content: [unclosed")
    return path


@pytest.fixture
def design():
    """Small valid design built through the API."""
    d = Design("api")
    t11 = d.add_tile(1, 1)
    d.add_switchbox(
        t11,
        [
            Connect(port("DMA", 0), port("North", 0)),
            AMSel("a0", arbiter=1, select=0),
            MasterSet(port("West", 3), ("a0",)),
            PacketRules(port("East", 0)),
            End(),
        ],
        name="sb11",
    )
    d.add_core(t11, [End()], name="core11")
    d.add_mem(t11, [Alloc("buf", {"id": 1}), End()], ("i32",), name="mem11")
    lock = d.add_lock(t11, 0, name="lk0")
    d.add_use_lock(lock, "acquire", 1, name="acq0")
    return d
