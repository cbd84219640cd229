"""Fetching and caching of upstream OpenAPI documents.

Classes:
    OpenAPIHttpClient: HTTP client used to download remote documents
    DocumentResolver: Loads a document from an http(s) URL, a file:// URL or a path
    ResolutionCache: Run-scoped cache handing out independent copies of resolved documents
"""

from __future__ import annotations

import asyncio
import copy
import json
from logging import getLogger
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

import httpx
import yaml

from oas_merge import __version__
from oas_merge.config import OAS_MERGE_HTTP_TIMEOUT_SECONDS, OAS_MERGE_PROXY_URL
from oas_merge.errors import ResolutionError

USER_AGENT = f"oas-merge/{__version__}"

OpenAPIDocument = Dict[str, Any]


class OpenAPIHttpClient(httpx.AsyncClient):
    """HTTP client for downloading OpenAPI documents.

    Args:
        proxy_url: Optional proxy URL for requests
        timeout: Request timeout in seconds
        **kwargs: Passed through to httpx.AsyncClient (e.g. a mock transport in tests)
    """

    def __init__(
        self,
        proxy_url: str | None = OAS_MERGE_PROXY_URL,
        timeout: float = OAS_MERGE_HTTP_TIMEOUT_SECONDS,
        **kwargs: Any,
    ):
        super().__init__(
            headers={"User-Agent": USER_AGENT, "Accept": "application/json, application/yaml, */*"},
            proxy=proxy_url,
            timeout=timeout,
            follow_redirects=True,
            **kwargs,
        )
        self.logger = getLogger("OpenAPIHttpClient")

    async def fetch_text(self, url: str) -> str:
        """Download ``url`` and return the decoded body.

        Raises:
            ResolutionError: on transport errors and non-2xx responses
        """
        self.logger.debug("Fetching %s", url)
        try:
            response = await self.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ResolutionError(url, f"unexpected HTTP status code {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ResolutionError(url, f"request failed: {e}") from e
        return response.text


def parse_document(url: str, text: str) -> OpenAPIDocument:
    """Decode a JSON or YAML document and check that it is OpenAPI 3.

    Raises:
        ResolutionError: if the text cannot be decoded or is not an OpenAPI 3 document
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ResolutionError(url, f"document is neither valid JSON nor YAML: {e}") from e

    if not isinstance(data, dict):
        raise ResolutionError(url, "document root must be an object")

    version = str(data.get("openapi", ""))
    if not version.startswith("3."):
        raise ResolutionError(url, f"unsupported OpenAPI version '{version or 'missing'}', expected 3.x")

    paths = data.get("paths")
    if paths is None:
        data["paths"] = {}
    elif not isinstance(paths, dict):
        raise ResolutionError(url, "paths must be an object")

    return data


class DocumentResolver:
    """Resolve a source URL or filesystem path into an OpenAPI 3 document.

    Local ``$ref`` pointers are left in place so that components stay shared
    and can be pruned later on.

    Args:
        http_client: Client used for http(s) URLs; created lazily when omitted
    """

    def __init__(self, http_client: Optional[OpenAPIHttpClient] = None):
        self._http_client = http_client
        self._owns_client = http_client is None
        self.logger = getLogger("DocumentResolver")

    async def __aenter__(self) -> "DocumentResolver":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _client(self) -> OpenAPIHttpClient:
        if self._http_client is None:
            self._http_client = OpenAPIHttpClient()
        return self._http_client

    async def _read_text(self, url: str) -> str:
        parsed = urlparse(url)
        if parsed.scheme in ("http", "https"):
            return await self._client().fetch_text(url)

        path = Path(unquote(parsed.path)) if parsed.scheme == "file" else Path(url)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ResolutionError(url, f"cannot read file: {e}") from e

    async def resolve(self, url: str) -> OpenAPIDocument:
        """Fetch and decode ``url``.

        Raises:
            ResolutionError: if the document cannot be loaded
        """
        text = await self._read_text(url)
        document = parse_document(url, text)
        self.logger.debug("Resolved %s (%d paths)", url, len(document["paths"]))
        return document


class ResolutionCache:
    """Cache of resolved documents for the duration of one merge run.

    The first resolution of a URL is stored as a private snapshot and every
    lookup returns a fresh deep copy, so filtering one source never affects
    another source (or a later lookup) reading the same URL. Concurrent
    lookups of a URL that is still being resolved wait for that resolution.
    """

    def __init__(self, resolver: DocumentResolver):
        self._resolver = resolver
        self._snapshots: Dict[str, OpenAPIDocument] = {}
        self._pending: Dict[str, asyncio.Future] = {}
        self.logger = getLogger("ResolutionCache")

    def __contains__(self, url: str) -> bool:
        return url in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    async def get(self, url: str) -> OpenAPIDocument:
        """Return an independent copy of the document at ``url``, resolving it once."""
        if url in self._snapshots:
            self.logger.debug("Cache HIT for %s", url)
            return copy.deepcopy(self._snapshots[url])

        pending = self._pending.get(url)
        if pending is not None:
            self.logger.debug("Waiting for in-flight resolution of %s", url)
            await asyncio.shield(pending)
            return copy.deepcopy(self._snapshots[url])

        self.logger.debug("Cache MISS for %s", url)
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[url] = future
        try:
            document = await self._resolver.resolve(url)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Consume the exception so an unawaited future does not log a warning
            future.exception()
            raise
        else:
            self._snapshots[url] = copy.deepcopy(document)
            future.set_result(None)
        finally:
            del self._pending[url]

        return document
