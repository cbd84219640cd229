"""Narrow a resolved OpenAPI document down to the paths and methods a source selects.

Inclusion rules are evaluated in declared order and the first rule whose glob
matches a path decides which methods survive. Exclusion rules and tag selections
are applied afterwards, operation by operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Any, Dict, Iterable, List, Optional, Sequence

from oas_merge.matcher import PathPredicate, compile_glob
from oas_merge.models import HTTP_METHODS, InputSource, PathConfig

logger = getLogger("SourceFilter")

INSECURE_SCHEME = "http://"


@dataclass(frozen=True)
class PathMatcher:
    """A compiled path glob with its lower-cased method allow-list (empty = all methods)."""

    glob: str
    is_match: PathPredicate
    methods: tuple[str, ...]

    @classmethod
    def from_config(cls, path_config: PathConfig) -> "PathMatcher":
        return cls(
            glob=path_config.glob,
            is_match=compile_glob(path_config.glob),
            methods=tuple(path_config.normalized_methods),
        )


def build_matchers(path_configs: Iterable[PathConfig]) -> List[PathMatcher]:
    """Compile path rules in declared order."""
    return [PathMatcher.from_config(p) for p in path_configs]


def find_matcher(matchers: Sequence[PathMatcher], path: str) -> Optional[PathMatcher]:
    """Return the first matcher whose glob matches ``path``."""
    for matcher in matchers:
        if matcher.is_match(path):
            return matcher
    return None


def _has_operations(path_item: Dict[str, Any]) -> bool:
    return any(method in path_item for method in HTTP_METHODS)


def include_paths(paths: Dict[str, Any], matchers: Sequence[PathMatcher]) -> Dict[str, Any]:
    """Keep only the paths matched by a rule, restricted to that rule's methods.

    A rule without methods keeps the path item untouched (parameters and
    extensions included); a rule with methods keeps only those keys and drops the
    path altogether when none of them are present.
    """
    filtered: Dict[str, Any] = {}
    for path_name, path_item in paths.items():
        if path_item is None:
            continue

        matcher = find_matcher(matchers, path_name)
        if matcher is None:
            continue

        if not matcher.methods:
            filtered[path_name] = path_item
            continue

        picked = {key: value for key, value in path_item.items() if key.lower() in matcher.methods}
        if picked:
            filtered[path_name] = picked
    return filtered


def exclude_paths(paths: Dict[str, Any], matchers: Sequence[PathMatcher]) -> Dict[str, Any]:
    """Remove paths (or just the listed methods) matched by an exclusion rule."""
    remaining: Dict[str, Any] = {}
    for path_name, path_item in paths.items():
        matcher = find_matcher(matchers, path_name)
        if matcher is None:
            remaining[path_name] = path_item
            continue
        if not matcher.methods:
            continue

        kept = {key: value for key, value in path_item.items() if key.lower() not in matcher.methods}
        if _has_operations(kept):
            remaining[path_name] = kept
    return remaining


def select_tagged_operations(
    paths: Dict[str, Any], *, include_tags: Sequence[str] = (), exclude_tags: Sequence[str] = ()
) -> Dict[str, Any]:
    """Keep operations carrying one of ``include_tags`` and none of ``exclude_tags``."""
    if not include_tags and not exclude_tags:
        return paths

    wanted = set(include_tags)
    unwanted = set(exclude_tags)
    remaining: Dict[str, Any] = {}
    for path_name, path_item in paths.items():
        kept: Dict[str, Any] = {}
        for key, value in path_item.items():
            if key not in HTTP_METHODS:
                kept[key] = value
                continue
            op_tags = set(value.get("tags") or []) if isinstance(value, dict) else set()
            if wanted and not op_tags & wanted:
                continue
            if op_tags & unwanted:
                continue
            kept[key] = value
        if _has_operations(kept):
            remaining[path_name] = kept
    return remaining


def drop_insecure_servers(document: Dict[str, Any]) -> None:
    """Drop servers whose URL uses plain HTTP."""
    servers = document.get("servers")
    if servers is None:
        return
    document["servers"] = [s for s in servers if not str(s.get("url", "")).startswith(INSECURE_SCHEME)]


def filter_document(document: Dict[str, Any], source: InputSource) -> Dict[str, Any]:
    """Narrow ``document`` in place to what ``source`` selects and return it.

    Raises:
        GlobPatternError: if any rule carries a malformed glob
    """
    original_paths = document.get("paths") or {}

    paths = include_paths(original_paths, build_matchers(source.include_paths()))

    if source.exclude is not None and source.exclude.paths:
        paths = exclude_paths(paths, build_matchers(source.exclude.paths))

    paths = select_tagged_operations(
        paths,
        include_tags=source.include.tags if source.include else (),
        exclude_tags=source.exclude.tags if source.exclude else (),
    )

    logger.debug("Kept %d of %d path(s) from %s", len(paths), len(original_paths), source.url)

    document["paths"] = paths
    drop_insecure_servers(document)
    return document
