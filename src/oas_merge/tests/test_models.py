"""Tests for the merge configuration model and loader."""

import json

import pytest

from oas_merge.errors import ConfigError
from oas_merge.models import MATCH_ALL_GLOB, InputSource, load_config, parse_config

CONFIG = {
    "output": "out/merged.yaml",
    "inputs": [
        {
            "url": "https://example.com/service-a/openapi.json",
            "prefix": "/service-a",
            "include": {"paths": [{"glob": "/users/**", "methods": ["get", "POST"]}, {"glob": "/health"}]},
        },
        {"url": "./specs/b.yaml"},
    ],
}


def test_parse_config():
    config = parse_config(CONFIG)

    assert config.output == "out/merged.yaml"
    first, second = config.inputs
    assert first.prefix == "/service-a"
    assert first.include.paths[0].normalized_methods == ["get", "post"]
    assert first.include.paths[1].methods == ()
    assert second.prefix == ""
    assert second.include is None and second.exclude is None


def test_include_paths_default_to_match_all():
    source = InputSource(url="spec.json")

    assert [p.glob for p in source.include_paths()] == [MATCH_ALL_GLOB]


def test_include_with_tags_only_still_matches_all_paths():
    source = InputSource.model_validate({"url": "spec.json", "include": {"tags": ["users"]}})

    assert [p.glob for p in source.include_paths()] == [MATCH_ALL_GLOB]


def test_config_is_immutable():
    config = parse_config(CONFIG)

    with pytest.raises(Exception):
        config.inputs[0].url = "elsewhere"


def test_config_collections_are_tuples():
    """Nested rule lists are stored as tuples so a frozen config cannot be changed in place."""
    config = parse_config(CONFIG)
    first = config.inputs[0]

    assert isinstance(config.inputs, tuple)
    assert isinstance(first.include.paths, tuple)
    assert first.include.paths[0].methods == ("get", "POST")
    assert first.include.tags == ()
    with pytest.raises(AttributeError):
        first.include.paths[0].methods.append("put")


@pytest.mark.parametrize(
    "data",
    (
        {"inputs": []},
        {"output": "x.yaml"},
        {"inputs": [{"prefix": "/a"}]},
        {"inputs": [{"url": "a.json", "include": {"paths": [{"glob": "/a", "methods": ["fetch"]}]}}]},
        ["not", "a", "mapping"],
    ),
)
def test_invalid_config_raises(data):
    with pytest.raises(ConfigError):
        parse_config(data)


def test_load_json_and_yaml(tmp_path):
    json_file = tmp_path / "api-config.json"
    json_file.write_text(json.dumps(CONFIG), encoding="utf-8")
    yaml_file = tmp_path / "api-config.yaml"
    yaml_file.write_text(
        "inputs:\n  - url: https://example.com/openapi.json\n    prefix: /a\n",
        encoding="utf-8",
    )

    assert load_config(json_file) == parse_config(CONFIG)
    assert load_config(yaml_file).inputs[0].prefix == "/a"


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read config file"):
        load_config(tmp_path / "missing.json")


def test_load_unparsable_file_raises(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError, match="Cannot parse config file"):
        load_config(broken)
