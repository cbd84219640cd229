"""
Conftest for oas_merge unit tests - re-exports fixtures from top-level tests.
"""

import asyncio
import copy

import pytest

from oas_merge.errors import ResolutionError
from oas_merge.resolver import DocumentResolver

# Import directly from tests since pytest now knows where to find packages
from tests.conftest import (
    make_document,
    make_operation,
    verbose_logger,
)

# Make the fixtures available for import
__all__ = [
    "verbose_logger",
    "make_document",
    "make_operation",
    "StaticResolver",
]


class StaticResolver(DocumentResolver):
    """Resolver serving in-memory documents, counting calls per URL.

    ``delays`` maps URLs to seconds to sleep before answering, which lets tests
    control the order in which concurrent resolutions complete.
    """

    def __init__(self, documents, delays=None):
        super().__init__()
        self.documents = documents
        self.delays = delays or {}
        self.calls = {}

    async def resolve(self, url):
        self.calls[url] = self.calls.get(url, 0) + 1
        await asyncio.sleep(self.delays.get(url, 0))
        if url not in self.documents:
            raise ResolutionError(url, "not found")
        return copy.deepcopy(self.documents[url])


@pytest.fixture
def users_document():
    """A small users service with tags, security and components."""
    return make_document(
        paths={
            "/users": {
                "parameters": [{"name": "tenant", "in": "header", "schema": {"type": "string"}}],
                "get": make_operation("listUsers", tags=["users"], security=[{"oauth": ["read"]}], schema_ref="User"),
                "post": make_operation("createUser", tags=["users", "admin"], security=[{"oauth": ["write"]}]),
                "delete": make_operation("deleteUsers", tags=["admin"], security=[{"apiKey": []}]),
            },
            "/users/{id}": {
                "get": make_operation("getUser", tags=["users"], schema_ref="User"),
                "x-internal": True,
            },
            "/health": {"get": make_operation("health", tags=["ops"])},
        },
        servers=[{"url": "http://insecure.example.com"}, {"url": "https://api.example.com"}],
        tags=[{"name": "ops"}, {"name": "admin"}, {"name": "users"}],
        security=[{"basic": []}],
        components={
            "schemas": {
                "User": {"type": "object", "properties": {"address": {"$ref": "#/components/schemas/Address"}}},
                "Address": {"type": "object", "properties": {"street": {"type": "string"}}},
                "Orphan": {"type": "string"},
            },
            "securitySchemes": {
                "oauth": {"type": "oauth2", "flows": {}},
                "apiKey": {"type": "apiKey", "name": "X-Key", "in": "header"},
                "basic": {"type": "http", "scheme": "basic"},
            },
        },
    )
