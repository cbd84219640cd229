"""Canonical key ordering for OpenAPI documents.

Sorting only changes the order of mapping keys so that repeated runs produce
stable diffs; list order and values are left alone. Known keys come first in
the order below, anything else (extensions included) follows alphabetically.
Paths, responses and component names are sorted alphabetically.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Sequence

ROOT_ORDER = ("openapi", "info", "servers", "security", "tags", "paths", "components", "externalDocs")
INFO_ORDER = ("title", "summary", "description", "termsOfService", "contact", "license", "version")
PATH_ITEM_ORDER = (
    "$ref",
    "summary",
    "description",
    "servers",
    "parameters",
    "get",
    "put",
    "post",
    "delete",
    "options",
    "head",
    "patch",
    "trace",
)
OPERATION_ORDER = (
    "operationId",
    "summary",
    "description",
    "tags",
    "deprecated",
    "parameters",
    "requestBody",
    "responses",
    "callbacks",
    "security",
    "servers",
)
PARAMETER_ORDER = ("name", "in", "description", "required", "deprecated", "style", "explode", "schema", "example")
REQUEST_BODY_ORDER = ("description", "required", "content")
RESPONSE_ORDER = ("description", "headers", "content", "links")
MEDIA_TYPE_ORDER = ("schema", "example", "examples", "encoding")
SCHEMA_ORDER = (
    "$ref",
    "title",
    "description",
    "type",
    "format",
    "nullable",
    "enum",
    "default",
    "required",
    "properties",
    "additionalProperties",
    "items",
    "allOf",
    "oneOf",
    "anyOf",
    "not",
    "discriminator",
    "example",
)
COMPONENTS_ORDER = (
    "schemas",
    "responses",
    "parameters",
    "examples",
    "requestBodies",
    "headers",
    "securitySchemes",
    "links",
    "callbacks",
)
OPERATION_KEYS = frozenset(("get", "put", "post", "delete", "options", "head", "patch", "trace"))


def order_keys(obj: Dict[str, Any], order: Sequence[str]) -> Dict[str, Any]:
    """Return ``obj`` with keys from ``order`` first, then the remaining keys alphabetically."""
    known = [k for k in order if k in obj]
    rest = sorted((k for k in obj if k not in order), key=str)
    return {k: obj[k] for k in known + rest}


def _sort_by_name(obj: Dict[str, Any], sort_value) -> Dict[str, Any]:
    return {k: sort_value(obj[k]) for k in sorted(obj, key=str)}


def sort_schema(schema: Any) -> Any:
    if not isinstance(schema, dict):
        return schema
    result = order_keys(schema, SCHEMA_ORDER)
    if isinstance(result.get("properties"), dict):
        result["properties"] = {k: sort_schema(v) for k, v in result["properties"].items()}
    for key in ("items", "additionalProperties", "not"):
        if isinstance(result.get(key), dict):
            result[key] = sort_schema(result[key])
    for key in ("allOf", "oneOf", "anyOf"):
        if isinstance(result.get(key), list):
            result[key] = [sort_schema(s) for s in result[key]]
    return result


def _sort_content(content: Any) -> Any:
    if not isinstance(content, dict):
        return content
    sorted_content = {}
    for media_type, media in content.items():
        if isinstance(media, dict):
            media = order_keys(media, MEDIA_TYPE_ORDER)
            if "schema" in media:
                media["schema"] = sort_schema(media["schema"])
        sorted_content[media_type] = media
    return sorted_content


def sort_parameter(parameter: Any) -> Any:
    if not isinstance(parameter, dict):
        return parameter
    result = order_keys(parameter, PARAMETER_ORDER)
    if "schema" in result:
        result["schema"] = sort_schema(result["schema"])
    if "content" in result:
        result["content"] = _sort_content(result["content"])
    return result


def sort_request_body(body: Any) -> Any:
    if not isinstance(body, dict):
        return body
    result = order_keys(body, REQUEST_BODY_ORDER)
    if "content" in result:
        result["content"] = _sort_content(result["content"])
    return result


def sort_response(response: Any) -> Any:
    if not isinstance(response, dict):
        return response
    result = order_keys(response, RESPONSE_ORDER)
    if isinstance(result.get("headers"), dict):
        result["headers"] = _sort_by_name(result["headers"], sort_parameter)
    if "content" in result:
        result["content"] = _sort_content(result["content"])
    return result


def sort_operation(operation: Any) -> Any:
    if not isinstance(operation, dict):
        return operation
    result = order_keys(operation, OPERATION_ORDER)
    if isinstance(result.get("parameters"), list):
        result["parameters"] = [sort_parameter(p) for p in result["parameters"]]
    if "requestBody" in result:
        result["requestBody"] = sort_request_body(result["requestBody"])
    if isinstance(result.get("responses"), dict):
        result["responses"] = _sort_by_name(result["responses"], sort_response)
    return result


def sort_path_item(path_item: Any) -> Any:
    if not isinstance(path_item, dict):
        return path_item
    result = order_keys(path_item, PATH_ITEM_ORDER)
    if isinstance(result.get("parameters"), list):
        result["parameters"] = [sort_parameter(p) for p in result["parameters"]]
    for key in result:
        if key in OPERATION_KEYS:
            result[key] = sort_operation(result[key])
    return result


_COMPONENT_SORTERS = {
    "schemas": sort_schema,
    "responses": sort_response,
    "parameters": sort_parameter,
    "requestBodies": sort_request_body,
    "headers": sort_parameter,
}


def sort_components(components: Any) -> Any:
    if not isinstance(components, dict):
        return components
    result = order_keys(components, COMPONENTS_ORDER)
    for comp_type, bucket in result.items():
        if isinstance(bucket, dict):
            result[comp_type] = _sort_by_name(bucket, _COMPONENT_SORTERS.get(comp_type, lambda v: v))
    return result


def sort_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Return a canonically ordered copy of ``document``; the input is not modified."""
    result = order_keys(copy.deepcopy(document), ROOT_ORDER)
    if isinstance(result.get("info"), dict):
        result["info"] = order_keys(result["info"], INFO_ORDER)
    if isinstance(result.get("paths"), dict):
        result["paths"] = _sort_by_name(result["paths"], sort_path_item)
    if "components" in result:
        result["components"] = sort_components(result["components"])
    return result
