"""Tests for canonical ordering of the merged document."""

import copy

from oas_merge.sort import order_keys, sort_document


def _document():
    return {
        "x-generated": True,
        "components": {
            "securitySchemes": {"b": {}, "a": {}},
            "schemas": {
                "Zed": {"properties": {"b": {"type": "string"}, "a": {"type": "string"}}, "type": "object"},
                "Alpha": {"type": "string"},
            },
        },
        "paths": {
            "/zebra": {"get": {"responses": {"200": {"description": "ok"}}}},
            "/apple": {
                "post": {
                    "responses": {"default": {"description": "err"}, "201": {"description": "made"}},
                    "summary": "Create",
                    "operationId": "create",
                },
                "parameters": [{"schema": {"type": "string"}, "in": "path", "name": "id"}],
                "get": {"operationId": "read", "responses": {}},
            },
        },
        "tags": [{"name": "b"}, {"name": "a"}],
        "info": {"version": "1", "title": "T"},
        "openapi": "3.0.3",
    }


def test_root_keys_follow_canonical_order():
    result = sort_document(_document())

    assert list(result) == ["openapi", "info", "tags", "paths", "components", "x-generated"]
    assert list(result["info"]) == ["title", "version"]


def test_paths_and_component_names_are_sorted():
    result = sort_document(_document())

    assert list(result["paths"]) == ["/apple", "/zebra"]
    assert list(result["components"]) == ["schemas", "securitySchemes"]
    assert list(result["components"]["schemas"]) == ["Alpha", "Zed"]
    assert list(result["components"]["securitySchemes"]) == ["a", "b"]


def test_path_items_and_operations_are_ordered():
    result = sort_document(_document())

    apple = result["paths"]["/apple"]
    assert list(apple) == ["parameters", "get", "post"]
    assert list(apple["post"]) == ["operationId", "summary", "responses"]
    assert list(apple["post"]["responses"]) == ["201", "default"]
    assert list(apple["parameters"][0]) == ["name", "in", "schema"]


def test_lists_and_schema_properties_keep_their_order():
    result = sort_document(_document())

    assert result["tags"] == [{"name": "b"}, {"name": "a"}]
    zed = result["components"]["schemas"]["Zed"]
    assert list(zed) == ["type", "properties"]
    assert list(zed["properties"]) == ["b", "a"]


def test_input_is_not_modified():
    document = _document()
    snapshot = copy.deepcopy(document)

    sort_document(document)

    assert document == snapshot
    assert list(document) == list(snapshot)


def test_sorting_is_stable():
    once = sort_document(_document())

    assert sort_document(once) == once


def test_order_keys_puts_unknown_keys_last_alphabetically():
    assert list(order_keys({"z": 1, "b": 2, "a": 3}, ("b",))) == ["b", "a", "z"]
