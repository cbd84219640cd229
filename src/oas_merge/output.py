"""Serialization of the merged document to YAML or JSON."""

from __future__ import annotations

import json
from logging import getLogger
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = getLogger("OutputWriter")

FORMATS = ("yaml", "json")


def format_for_path(path: str | Path) -> str:
    """JSON for ``.json`` outputs, YAML for everything else."""
    return "json" if str(path).lower().endswith(".json") else "yaml"


def dump_document(document: Dict[str, Any], fmt: str = "yaml") -> str:
    """Serialize ``document`` keeping its key order."""
    if fmt == "json":
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
    raise ValueError(f"Unsupported output format '{fmt}', expected one of {FORMATS}")


def write_document(document: Dict[str, Any], path: str | Path, fmt: Optional[str] = None) -> Path:
    """Write ``document`` to ``path``, creating parent directories as needed."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dump_document(document, fmt or format_for_path(output_path)), encoding="utf-8")
    logger.info("Wrote merged document to %s", output_path)
    return output_path
