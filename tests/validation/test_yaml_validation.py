from __future__ import annotations

import yaml

from aiefabric.config import AuditConfig, ValidatorConfig
from aiefabric.validation import validate_design_yaml
from aiefabric.validation.yaml_validation import load_design_schema


def _dump(data) -> str:
    return yaml.safe_dump(data, sort_keys=False)


def test_valid_document(sample_design_yaml):
    report = validate_design_yaml(sample_design_yaml)
    assert report.ok
    assert report.diagnostics == []
    assert report.checked == 11


def test_yaml_parse_error():
    report = validate_design_yaml("tiles: [unclosed")
    assert not report.ok
    assert report.rules() == ["yaml-parse"]
    assert report.diagnostics[0].message.startswith("YAML parse error")


def test_schema_rejects_unknown_section(sample_design_dict):
    sample_design_dict["routers"] = []
    report = validate_design_yaml(_dump(sample_design_dict))
    assert report.rules() == ["schema"]
    assert "routers" in report.diagnostics[0].message


def test_schema_rejects_bad_tile(sample_design_dict):
    sample_design_dict["tiles"][0]["col"] = "one"
    report = validate_design_yaml(_dump(sample_design_dict))
    assert report.rules() == ["schema"]
    assert report.diagnostics[0].message.startswith("tiles/0/col")


def test_schema_can_be_skipped(sample_design_dict):
    sample_design_dict["tiles"][0]["col"] = "one"
    report = validate_design_yaml(_dump(sample_design_dict), check_schema=False)
    assert report.rules() == ["design-load"]
    assert "tiles[0].col" in report.diagnostics[0].message


def test_design_load_error(sample_design_dict):
    sample_design_dict["switchboxes"][0]["body"][0] = {
        "connect": {"source": ["Up", 0], "dest": ["North", 0]}
    }
    report = validate_design_yaml(_dump(sample_design_dict))
    assert report.rules() == ["design-load"]
    assert "switchboxes[0].body[0].connect.source" in report.diagnostics[0].message


def test_audit_findings_reported(sample_design_dict):
    body = sample_design_dict["switchboxes"][0]["body"]
    body.insert(1, {"connect": {"source": ["DMA", 1], "dest": ["North", 0]}})
    report = validate_design_yaml(_dump(sample_design_dict))
    assert report.rules() == ["duplicate-destination"]
    assert str(report.diagnostics[0]).startswith("sb11: connect#1 targets same")


def test_second_switchbox_reported_not_raised(sample_design_dict):
    sample_design_dict["switchboxes"].append({"name": "sb11b", "tile": "t11"})
    report = validate_design_yaml(_dump(sample_design_dict))
    assert report.rules() == ["multiple-switchboxes"]


def test_second_switchbox_rejected_when_enforced(sample_design_dict):
    sample_design_dict["switchboxes"].append({"name": "sb11b", "tile": "t11"})
    config = ValidatorConfig(audit=AuditConfig(enforce_single_switchbox=True))
    report = validate_design_yaml(_dump(sample_design_dict), config)
    assert report.rules() == ["design-load"]
    assert "can only have one switchbox" in report.diagnostics[0].message


def test_mem_missing_id_then_fixed(sample_design_dict):
    mem_body = sample_design_dict["mems"][0]["body"]
    mem_body[0] = {"alloc": {"name": "buf"}}
    report = validate_design_yaml(_dump(sample_design_dict))
    assert report.rules() == ["missing-alloc-id"]

    mem_body[0] = {"alloc": {"name": "buf", "id": 7}}
    assert validate_design_yaml(_dump(sample_design_dict)).ok


def test_packaged_schema_loads():
    schema = load_design_schema()
    assert schema["type"] == "object"
    assert "switchboxes" in schema["properties"]


def test_fractional_port_index_rejected(sample_design_dict):
    body = sample_design_dict["switchboxes"][0]["body"]
    body[0] = {"connect": {"source": ["North", 3.9], "dest": ["ME", 0]}}
    text = _dump(sample_design_dict)

    report = validate_design_yaml(text)
    assert not report.ok
    assert report.rules() == ["schema"]
    assert report.diagnostics[0].message.startswith("switchboxes/0/body/0")

    report = validate_design_yaml(text, check_schema=False)
    assert report.rules() == ["design-load"]
    assert "port index must be an integer" in report.diagnostics[0].message


def test_non_slug_names_resolve(sample_design_dict):
    sample_design_dict["tiles"][0]["name"] = "tile 1"
    for section in ("switchboxes", "cores", "mems", "locks"):
        sample_design_dict[section][0]["tile"] = "tile 1"
    sample_design_dict["packet_flows"][0]["body"][0]["packet_source"]["tile"] = "tile 1"
    body = sample_design_dict["switchboxes"][0]["body"]
    body[2]["amsel"]["name"] = "a:0"
    body[4]["masterset"]["amsels"] = ["a:0", "a1"]

    report = validate_design_yaml(_dump(sample_design_dict))
    assert report.ok, report.as_strings()
    assert report.diagnostics == []


def test_schema_rejects_misspelled_entity_key(sample_design_dict):
    sample_design_dict["cores"][0]["bdy"] = sample_design_dict["cores"][0].pop("body")
    report = validate_design_yaml(_dump(sample_design_dict))
    assert report.rules() == ["schema"]
    assert report.diagnostics[0].message.startswith("cores/0")
    assert "bdy" in report.diagnostics[0].message


def test_schema_rejects_unknown_mem_key(sample_design_dict):
    sample_design_dict["mems"][0]["results"] = ["index"]
    report = validate_design_yaml(_dump(sample_design_dict))
    assert report.rules() == ["schema"]
    assert "results" in report.diagnostics[0].message
