"""Pytest configuration and common fixtures."""

import logging

import pytest


@pytest.fixture
def verbose_logger(request):
    """Get a logger that respects pytest verbosity."""
    logger = logging.getLogger(__name__)

    verbosity = request.config.getoption("verbose", default=0)

    if verbosity >= 3:
        logger.setLevel(logging.DEBUG)
    elif verbosity == 2:
        logger.setLevel(logging.INFO)
    else:
        logger.setLevel(logging.WARNING)

    return logger


def make_document(paths=None, **extra):
    """Build a minimal OpenAPI 3 document."""
    document = {
        "openapi": "3.0.3",
        "info": {"title": extra.pop("title", "Test API"), "version": "1.0.0"},
        "paths": paths or {},
    }
    document.update(extra)
    return document


def make_operation(operation_id, tags=None, security=None, schema_ref=None):
    """Build an operation object with a single 200 response."""
    response = {"description": "OK"}
    if schema_ref:
        response["content"] = {"application/json": {"schema": {"$ref": f"#/components/schemas/{schema_ref}"}}}
    operation = {"operationId": operation_id, "responses": {"200": response}}
    if tags is not None:
        operation["tags"] = tags
    if security is not None:
        operation["security"] = security
    return operation
