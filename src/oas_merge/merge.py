"""Combine several prepared OpenAPI documents into one.

``merge`` never raises: it returns either a ``SuccessfulMergeResult`` holding
the combined document or an ``ErrorMergeResult`` describing the first conflict
it could not reconcile.

Merge rules:
- ``openapi``, ``info`` and ``externalDocs`` come from the first input
- every path gets its input's ``prepend`` prefix; a resulting path that another
  input already produced is a ``duplicate-paths`` error
- an ``operationId`` used by two inputs is an ``operation-id-conflict`` error
- servers are de-duplicated by URL, tags by name, security requirements by value
- identical components are stored once; a different definition under a name that
  is already taken is renamed ``<Name><n>`` and the input's ``$ref``s follow it;
  a renamed security scheme is also renamed in that input's security requirements
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Dict, List, Sequence, Union

from oas_merge.pruner import iter_operations
from oas_merge.unused_components import format_component_ref, parse_component_ref

logger = getLogger("MergeEngine")

ComponentRenames = Dict[tuple, str]


@dataclass(frozen=True)
class PathModification:
    """How the paths of one input are rewritten before merging."""

    prepend: str = ""


@dataclass
class MergeInput:
    """A prepared document and its path modification."""

    oas: Dict[str, Any]
    path_modification: PathModification = field(default_factory=PathModification)


@dataclass
class SuccessfulMergeResult:
    output: Dict[str, Any]


@dataclass
class ErrorMergeResult:
    type: str
    message: str


MergeResult = Union[SuccessfulMergeResult, ErrorMergeResult]


def is_error_result(result: MergeResult) -> bool:
    return isinstance(result, ErrorMergeResult)


def _rewrite_refs(node: Any, renames: ComponentRenames) -> Any:
    """Return a copy of ``node`` with component refs pointing at renamed components."""
    if isinstance(node, dict):
        rewritten = {k: _rewrite_refs(v, renames) for k, v in node.items()}
        ref = node.get("$ref")
        parsed = parse_component_ref(ref) if isinstance(ref, str) else None
        if parsed:
            comp_type, name, remainder = parsed
            if (comp_type, name) in renames:
                rewritten["$ref"] = format_component_ref(comp_type, renames[(comp_type, name)], remainder)
        return rewritten
    if isinstance(node, list):
        return [_rewrite_refs(v, renames) for v in node]
    return node


def _rename_requirements(requirements: Any, schemes: Dict[str, str]) -> Any:
    if not isinstance(requirements, list):
        return requirements
    return [
        {schemes.get(name, name): scopes for name, scopes in req.items()} if isinstance(req, dict) else req
        for req in requirements
    ]


def _rewrite_security_requirements(document: Dict[str, Any], renames: ComponentRenames) -> None:
    """Point security requirements in ``document`` at renamed security schemes.

    Requirements name their scheme by key rather than by ``$ref``, so they are
    not covered by ``_rewrite_refs``.
    """
    schemes = {name: new_name for (comp_type, name), new_name in renames.items() if comp_type == "securitySchemes"}
    if not schemes:
        return
    if "security" in document:
        document["security"] = _rename_requirements(document["security"], schemes)
    for operation in iter_operations(document.get("paths") or {}):
        if "security" in operation:
            operation["security"] = _rename_requirements(operation["security"], schemes)


def _plan_component_renames(merged: Dict[str, Any], incoming: Dict[str, Any]) -> ComponentRenames:
    """Work out which incoming components clash with already merged ones.

    Renaming a component changes the refs of components that point at it, which
    can create new clashes, so this iterates until the plan is stable.
    """
    renames: ComponentRenames = {}
    for _ in range(sum(len(b) for b in incoming.values() if isinstance(b, dict)) + 1):
        rewritten = _rewrite_refs(incoming, renames)
        planned: ComponentRenames = {}
        for comp_type, bucket in rewritten.items():
            if not isinstance(bucket, dict):
                continue
            existing = merged.get(comp_type) or {}
            taken = set(existing) | set(bucket)
            for name, value in bucket.items():
                if name not in existing or existing[name] == value:
                    continue
                suffix = 1
                while f"{name}{suffix}" in taken:
                    suffix += 1
                planned[(comp_type, name)] = f"{name}{suffix}"
                taken.add(f"{name}{suffix}")
        if planned == renames:
            break
        renames = planned
    return renames


def _merge_components(merged: Dict[str, Any], incoming: Dict[str, Any], renames: ComponentRenames) -> None:
    for comp_type, bucket in incoming.items():
        if not isinstance(bucket, dict):
            merged.setdefault(comp_type, bucket)
            continue
        target = merged.setdefault(comp_type, {})
        for name, value in bucket.items():
            target.setdefault(renames.get((comp_type, name), name), value)


def _merge_unique(target: List[Any], items: Sequence[Any], key) -> None:
    seen = {key(item) for item in target}
    for item in items:
        item_key = key(item)
        if item_key not in seen:
            seen.add(item_key)
            target.append(item)


def merge(inputs: Sequence[MergeInput]) -> MergeResult:
    """Merge ``inputs`` in order; earlier inputs take precedence."""
    if not inputs:
        return ErrorMergeResult(type="no-inputs", message="You must provide at least one OAS file as an input.")

    first = inputs[0].oas
    output: Dict[str, Any] = {"openapi": first.get("openapi", "3.0.3"), "info": copy.deepcopy(first.get("info", {}))}
    if "externalDocs" in first:
        output["externalDocs"] = copy.deepcopy(first["externalDocs"])

    servers: List[Dict[str, Any]] = []
    tags: List[Dict[str, Any]] = []
    security: List[Dict[str, Any]] = []
    paths: Dict[str, Any] = {}
    components: Dict[str, Any] = {}
    path_origins: Dict[str, int] = {}
    operation_ids: Dict[str, int] = {}

    for index, merge_input in enumerate(inputs):
        incoming_components = merge_input.oas.get("components") or {}
        renames = _plan_component_renames(components, incoming_components)
        if renames:
            logger.debug("Input %d: renaming conflicting components %s", index, renames)
        document = _rewrite_refs(merge_input.oas, renames)
        _rewrite_security_requirements(document, renames)

        prefix = merge_input.path_modification.prepend
        for path, path_item in (document.get("paths") or {}).items():
            new_path = f"{prefix}{path}"
            if new_path in paths:
                return ErrorMergeResult(
                    type="duplicate-paths",
                    message=(
                        f"Input {index}: The path '{path}' maps to '{new_path}' and this has already been "
                        f"added by input {path_origins[new_path]}."
                    ),
                )
            paths[new_path] = path_item
            path_origins[new_path] = index

        for operation in iter_operations(document.get("paths") or {}):
            operation_id = operation.get("operationId")
            if operation_id is None:
                continue
            if operation_id in operation_ids:
                return ErrorMergeResult(
                    type="operation-id-conflict",
                    message=(
                        f"Input {index}: The operationId '{operation_id}' has already been used by "
                        f"input {operation_ids[operation_id]}."
                    ),
                )
            operation_ids[operation_id] = index

        _merge_unique(servers, document.get("servers") or [], key=lambda s: s.get("url"))
        _merge_unique(tags, document.get("tags") or [], key=lambda t: t.get("name"))
        _merge_unique(security, document.get("security") or [], key=repr)
        _merge_components(components, document.get("components") or {}, renames)

        for key, value in document.items():
            if key.startswith("x-"):
                output.setdefault(key, value)

    if servers:
        output["servers"] = servers
    if tags:
        output["tags"] = tags
    if security:
        output["security"] = security
    output["paths"] = paths
    if components:
        output["components"] = components

    logger.debug("Merged %d input(s) into %d path(s)", len(inputs), len(paths))
    return SuccessfulMergeResult(output=output)
