import json

import pytest

from context.params import ParameterLoader, ParameterSet


def test_load_reads_assignments(parameters_file):
    params = ParameterLoader.load(parameters_file)
    assert params["tenant_id"] == "tenant-1"
    assert params["customer_object_id"] == "obj-9"
    assert params["outpost_client_id"] == "client-42"
    assert params["resource_suffix"] == "ab12"
    assert params["upload_output_url"] == "https://upload.example.com/out?sig=abc"


def test_json_fields_round_trip(parameters_file):
    params = ParameterLoader.load(parameters_file)
    assert params.json("tags") == '{"env": "prod", "owner": "secops"}'
    assert json.loads(params.json("tags")) == {"env": "prod", "owner": "secops"}
    assert json.loads(params.json("template_version"))["AUDIT_LOGS-arm_organization_audit"] == "1.0.0"


def test_single_quoted_json_becomes_valid_json():
    params = ParameterSet({"tags": "{'a': 'b'}"})
    assert params.json("tags") == '{"a": "b"}'
    assert json.loads(params.json("tags")) == {"a": "b"}


def test_missing_file_yields_empty_defaults(tmp_path):
    params = ParameterLoader.load(tmp_path / "nope.sh")
    assert len(params) == 0
    assert params.get("tenant_id") == ""
    assert params.json("tags") == ""


def test_parse_skips_noise_and_broken_lines():
    text = (
        "# comment\n"
        "\n"
        "echo hello\n"
        "broken=\"unterminated\n"
        "good=value\n"
        "spaced=\"a b\"\n"
    )
    assert ParameterLoader.parse(text) == {"good": "value", "spaced": "a b"}


def test_later_assignment_wins():
    assert ParameterLoader.parse("a=1\na=2\n") == {"a": "2"}


def test_parameter_set_is_immutable():
    params = ParameterSet({"tenant_id": "t"})
    with pytest.raises(TypeError):
        params.values["tenant_id"] = "other"


def test_normalized_only_touches_json_fields():
    params = ParameterSet({"tags": "{'k': 'v'}", "audience": "it's"}, json_fields=("tags",))
    normalized = params.normalized()
    assert normalized["tags"] == '{"k": "v"}'
    assert normalized["audience"] == "it's"


@pytest.mark.parametrize("line, expected", [
    ("resource_suffix=ab12  # deployment suffix", "ab12"),
    ("resource_suffix=\"ab12\" # quoted", "ab12"),
    ("note=\"keep # inside quotes\"", "keep # inside quotes"),
    ("note='single # quoted' # trailing", "single # quoted"),
    ("url=https://example.com/page#section", "https://example.com/page#section"),
    ("hash=#not-a-comment", "#not-a-comment"),
    ("escaped=a\\ #b", "a #b"),
    ("empty=   # nothing set", ""),
])
def test_inline_comments_are_dropped(line, expected):
    key = line.split("=", 1)[0]
    assert ParameterLoader.parse(line + "\n") == {key: expected}
