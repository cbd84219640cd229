"""Prune tags and security definitions that no surviving operation references."""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, Iterator, List, Set

from oas_merge.models import HTTP_METHODS

logger = getLogger("ComponentPruner")


def iter_operations(paths: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Yield the operation objects in the standard method slots of every path item."""
    for path_item in paths.values():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if isinstance(operation, dict):
                yield operation


def _is_reference(value: Any) -> bool:
    return isinstance(value, dict) and "$ref" in value


def prune_components(document: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce ``tags``, ``security`` and ``components.securitySchemes`` in place.

    Tags are kept when a surviving operation uses them, in their original order.
    Security requirements are collected from operations in first-seen order,
    keyed by scheme name: the first requirement naming a scheme is kept whole and
    the scheme definition is carried over unless it is a ``$ref``.
    """
    tag_names: Set[str] = set()
    seen_schemes: Set[str] = set()
    active_security: List[Dict[str, Any]] = []
    active_schemes: Dict[str, Any] = {}

    components = document.get("components")
    declared_schemes = (components or {}).get("securitySchemes") or {}

    for operation in iter_operations(document.get("paths") or {}):
        tag_names.update(operation.get("tags") or [])

        for requirement in operation.get("security") or []:
            for scheme_name in requirement:
                if scheme_name in seen_schemes:
                    continue
                seen_schemes.add(scheme_name)
                active_security.append(requirement)
                scheme = declared_schemes.get(scheme_name)
                if scheme and not _is_reference(scheme):
                    active_schemes[scheme_name] = scheme

    if "tags" in document and document["tags"] is not None:
        document["tags"] = [t for t in document["tags"] if t.get("name") in tag_names]
    document["security"] = active_security
    if components is not None:
        components["securitySchemes"] = active_schemes

    logger.debug(
        "Kept %d tag(s), %d security requirement(s), %d security scheme(s)",
        len(document.get("tags") or []),
        len(active_security),
        len(active_schemes),
    )
    return document
