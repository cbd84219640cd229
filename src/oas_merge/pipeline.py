"""Selective merge of several OpenAPI documents.

For every input source the pipeline resolves the document, narrows it to the
selected paths and methods, prunes tags, security definitions and components
that are no longer referenced, and pairs it with the source's path prefix.
Sources are processed concurrently; the prepared documents are merged in
declaration order and the merged document is sorted canonically.

Any failure aborts the whole run: there is no partial output.
"""

from __future__ import annotations

import asyncio
import contextlib
from logging import getLogger
from typing import Any, Dict, List, Optional

from oas_merge.config import OAS_MERGE_MAX_CONCURRENCY, OAS_MERGE_RESOLVE_TIMEOUT_SECONDS
from oas_merge.errors import MergeError, ResolutionError
from oas_merge.merge import MergeInput, PathModification, is_error_result, merge
from oas_merge.models import InputSource, MergeConfig
from oas_merge.pruner import prune_components
from oas_merge.resolver import DocumentResolver, ResolutionCache
from oas_merge.sort import sort_document
from oas_merge.source_filter import filter_document
from oas_merge.unused_components import filter_unused_components

logger = getLogger("SelectiveMerge")


class SelectiveMergePipeline:
    """Runs the per-source preparation steps and the final merge for one configuration.

    Args:
        config: The merge configuration
        cache: Resolution cache for this run; created around ``resolver`` when omitted
        resolver: Document resolver used when no cache is given
        max_concurrency: Maximum number of sources prepared at once, 0 for no limit
        resolve_timeout: Seconds allowed per resolution, 0 for no limit
    """

    def __init__(
        self,
        config: MergeConfig,
        *,
        cache: Optional[ResolutionCache] = None,
        resolver: Optional[DocumentResolver] = None,
        max_concurrency: int = OAS_MERGE_MAX_CONCURRENCY,
        resolve_timeout: float = OAS_MERGE_RESOLVE_TIMEOUT_SECONDS,
    ):
        self.config = config
        self.resolver = resolver if resolver is not None else DocumentResolver()
        self.cache = cache if cache is not None else ResolutionCache(self.resolver)
        self.resolve_timeout = resolve_timeout
        self._limiter = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None

    async def _resolve(self, url: str) -> Dict[str, Any]:
        if not self.resolve_timeout:
            return await self.cache.get(url)
        try:
            return await asyncio.wait_for(self.cache.get(url), timeout=self.resolve_timeout)
        except asyncio.TimeoutError as e:
            raise ResolutionError(url, f"timed out after {self.resolve_timeout}s") from e

    async def prepare_source(self, source: InputSource) -> MergeInput:
        """Resolve, filter and prune one source and attach its path prefix."""
        async with self._limiter or contextlib.nullcontext():
            document = await self._resolve(source.url)

        path_count = len(document.get("paths") or {})
        filter_document(document, source)
        prune_components(document)
        document = filter_unused_components(document).data

        logger.info(
            "Prepared %s: kept %d of %d path(s), prefix '%s'",
            source.url,
            len(document["paths"]),
            path_count,
            source.prefix,
        )
        return MergeInput(oas=document, path_modification=PathModification(prepend=source.prefix or ""))

    async def prepare_all(self) -> List[MergeInput]:
        """Prepare every source concurrently, returning results in declaration order."""
        tasks = [asyncio.ensure_future(self.prepare_source(source)) for source in self.config.inputs]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def run(self) -> Dict[str, Any]:
        """Prepare, merge and sort.

        Raises:
            ResolutionError: if a source cannot be resolved
            GlobPatternError: if a path rule carries a malformed glob
            MergeError: if the merge engine rejects the prepared documents
        """
        logger.info("Starting selective merge of %d source(s)", len(self.config.inputs))
        inputs = await self.prepare_all()

        result = merge(inputs)
        if is_error_result(result):
            raise MergeError(result.message, result.type)

        logger.info("Merged %d path(s), sorting output", len(result.output.get("paths") or {}))
        return sort_document(result.output)


async def perform_selective_merge(
    config: MergeConfig,
    *,
    resolver: Optional[DocumentResolver] = None,
    cache: Optional[ResolutionCache] = None,
    max_concurrency: int = OAS_MERGE_MAX_CONCURRENCY,
    resolve_timeout: float = OAS_MERGE_RESOLVE_TIMEOUT_SECONDS,
) -> Dict[str, Any]:
    """Run the selective merge for ``config`` and return the sorted merged document.

    A resolver created here is closed before returning; a caller-supplied one is
    left open.
    """
    owns_resolver = resolver is None and cache is None
    pipeline = SelectiveMergePipeline(
        config,
        cache=cache,
        resolver=resolver,
        max_concurrency=max_concurrency,
        resolve_timeout=resolve_timeout,
    )
    try:
        return await pipeline.run()
    finally:
        if owns_resolver:
            await pipeline.resolver.aclose()
