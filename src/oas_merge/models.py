"""Merge configuration model and loader.

The configuration is a JSON or YAML file describing which upstream OpenAPI
documents to merge and how to narrow each one down:

    {
      "output": "gateway/openapi.yaml",
      "inputs": [
        {
          "url": "https://example.com/service-a/openapi.json",
          "prefix": "/service-a",
          "include": {"paths": [{"glob": "/users/**", "methods": ["get", "post"]}]}
        }
      ]
    }
"""

from __future__ import annotations

import json
from logging import getLogger
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from oas_merge.errors import ConfigError

logger = getLogger("MergeConfig")

# Operation slots of an OpenAPI 3 path item, in document order
HTTP_METHODS = ("get", "post", "put", "delete", "patch", "options", "head")

MATCH_ALL_GLOB = "**"


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class PathConfig(_FrozenModel):
    """A single path rule: a glob plus an optional method allow-list.

    An empty or missing method list admits the entire path item.
    """

    glob: str
    methods: Tuple[str, ...] = ()

    @field_validator("methods")
    @classmethod
    def _check_methods(cls, methods: Tuple[str, ...]) -> Tuple[str, ...]:
        unknown = [m for m in methods if m.lower() not in HTTP_METHODS]
        if unknown:
            raise ValueError(f"unsupported HTTP method(s) {unknown}; expected one of {list(HTTP_METHODS)}")
        return methods

    @property
    def normalized_methods(self) -> List[str]:
        return [m.lower() for m in self.methods]


class Selection(_FrozenModel):
    """Path rules and operation tags selecting part of a document."""

    paths: Optional[Tuple[PathConfig, ...]] = None
    tags: Tuple[str, ...] = ()


class InputSource(_FrozenModel):
    """One upstream document together with its selection rules and path prefix."""

    url: str = Field(min_length=1)
    prefix: str = ""
    include: Optional[Selection] = None
    exclude: Optional[Selection] = None

    def include_paths(self) -> List[PathConfig]:
        """Inclusion rules, defaulting to a single rule matching every path."""
        if self.include is None or self.include.paths is None:
            return [PathConfig(glob=MATCH_ALL_GLOB)]
        return list(self.include.paths)


class MergeConfig(_FrozenModel):
    """Top-level merge instruction set."""

    output: Optional[str] = None
    inputs: Tuple[InputSource, ...] = Field(min_length=1)


def parse_config(data: object) -> MergeConfig:
    """Validate an already-decoded configuration mapping."""
    try:
        return MergeConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid merge configuration: {e}") from e


def load_config(path: str | Path) -> MergeConfig:
    """Load a merge configuration from a JSON or YAML file.

    Files ending in ``.json`` are decoded as JSON, anything else as YAML.

    Raises:
        ConfigError: if the file cannot be read, decoded or validated
    """
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file '{config_path}': {e}") from e

    try:
        if config_path.suffix.lower() == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse config file '{config_path}': {e}") from e

    config = parse_config(data)
    logger.debug("Loaded %d input source(s) from %s", len(config.inputs), config_path)
    return config
