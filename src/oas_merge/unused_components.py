"""Strip component definitions that nothing in the document references.

A component is in use when a ``$ref`` reaches it from outside ``components``
(paths, webhooks, top-level fields) either directly or through other used
components. Only the buckets listed in ``DEFAULT_COMPONENT_TYPES`` are pruned;
empty buckets are preserved as ``{}``.
"""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass
from logging import getLogger
from typing import Any, Dict, Iterable, Optional, Set, Tuple

logger = getLogger("UnusedComponentFilter")

DEFAULT_COMPONENT_TYPES = (
    "schemas",
    "parameters",
    "examples",
    "headers",
    "requestBodies",
    "responses",
)

ComponentKey = Tuple[str, str]

# Only the first token after the component type names the component; the rest
# points inside it (e.g. #/components/schemas/User/properties/id)
_COMPONENT_REF = re.compile(r"^#/components/([^/]+)/([^/]+)(/.*)?$")


@dataclass
class FilterResult:
    """Outcome of filtering: the filtered document and what was removed."""

    data: Dict[str, Any]
    removed: Set[ComponentKey]


def unescape_pointer_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def escape_pointer_token(name: str) -> str:
    return name.replace("~", "~0").replace("/", "~1")


def parse_component_ref(ref: str) -> Optional[Tuple[str, str, str]]:
    """Split a local component ref into (component_type, name, remainder).

    Returns None for refs that do not point into ``#/components``.
    """
    m = _COMPONENT_REF.match(ref)
    if not m:
        return None
    return m.group(1), unescape_pointer_token(m.group(2)), m.group(3) or ""


def format_component_ref(comp_type: str, name: str, remainder: str = "") -> str:
    return f"#/components/{comp_type}/{escape_pointer_token(name)}{remainder}"


def collect_component_refs(node: Any) -> Set[ComponentKey]:
    """Walk a node and collect the ``(component_type, name)`` pairs its ``$ref``s point at."""
    refs: Set[ComponentKey] = set()

    def visit(n: Any) -> None:
        if isinstance(n, dict):
            ref = n.get("$ref")
            if isinstance(ref, str):
                parsed = parse_component_ref(ref)
                if parsed:
                    refs.add(parsed[:2])
            for v in n.values():
                visit(v)
        elif isinstance(n, list):
            for v in n:
                visit(v)

    visit(node)
    return refs


def _collect_security_scheme_refs(document: Dict[str, Any]) -> Set[ComponentKey]:
    components = document.get("components") or {}
    schemes = components.get("securitySchemes") or {}
    return {("securitySchemes", name) for name in schemes}


def resolve_used_components(components: Dict[str, Any], initial_refs: Iterable[ComponentKey]) -> Set[ComponentKey]:
    """Expand refs transitively within components to include everything needed."""
    visited: Set[ComponentKey] = set()
    queue: deque[ComponentKey] = deque(initial_refs)

    while queue:
        key = queue.popleft()
        if key in visited:
            continue
        visited.add(key)
        comp_type, name = key
        bucket = components.get(comp_type)
        if not isinstance(bucket, dict) or name not in bucket:
            continue
        queue.extend(collect_component_refs(bucket[name]) - visited)

    return visited


def filter_unused_components(
    document: Dict[str, Any], component_types: Iterable[str] = DEFAULT_COMPONENT_TYPES
) -> FilterResult:
    """Remove unreferenced entries of ``component_types`` from ``document`` in place."""
    components = document.get("components")
    if not isinstance(components, dict):
        return FilterResult(data=document, removed=set())

    roots = collect_component_refs({k: v for k, v in document.items() if k != "components"})
    roots |= _collect_security_scheme_refs(document)
    used = resolve_used_components(components, roots)

    removed: Set[ComponentKey] = set()
    for comp_type in component_types:
        bucket = components.get(comp_type)
        if not isinstance(bucket, dict):
            continue
        kept = {name: value for name, value in bucket.items() if (comp_type, name) in used}
        removed |= {(comp_type, name) for name in bucket if name not in kept}
        components[comp_type] = kept

    if removed:
        logger.debug("Removed %d unused component(s): %s", len(removed), sorted(removed))
    return FilterResult(data=document, removed=removed)
