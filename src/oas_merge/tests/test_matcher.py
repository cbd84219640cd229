"""Unit tests for glob matching of path templates."""

import pytest

from oas_merge.errors import GlobPatternError
from oas_merge.matcher import compile_glob, translate


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    (
        ("/users", "/users", True),
        ("/users", "/users/1", False),
        ("/users", "/api/users", False),
        ("/users/*", "/users/{id}", True),
        ("/users/*", "/users/{id}/roles", False),
        ("/users/*", "/users", False),
        ("/users/**", "/users", True),
        ("/users/**", "/users/{id}/roles", True),
        ("/users/**", "/usersx", False),
        ("**", "/anything/at/all", True),
        ("/**/health", "/health", True),
        ("/**/health", "/a/b/health", True),
        ("/**/health", "/ahealth", False),
        ("/v?/ping", "/v1/ping", True),
        ("/v?/ping", "/v10/ping", False),
        ("/{users,groups}/*", "/users/1", True),
        ("/{users,groups}/*", "/groups/2", True),
        ("/{users,groups}/*", "/roles/3", False),
        ("/items/[0-9]*", "/items/1abc", True),
        ("/items/[0-9]*", "/items/abc", False),
        ("/items/[!0-9]*", "/items/abc", True),
        ("/users/{id}", "/users/{id}", True),
        ("/users/{id}/roles", "/users/{id}/roles", True),
        ("/users/{id}", "/users/42", False),
        ("/{users,groups}/{id}", "/groups/{id}", True),
        ("/{a,{b}}", "/{b}", True),
        ("/a\\*b", "/a*b", True),
        ("/a\\*b", "/axb", False),
    ),
)
def test_compile_glob(pattern, path, expected):
    """Segment-aware, anchored matching."""
    assert compile_glob(pattern)(path) is expected


def test_single_star_does_not_cross_segments():
    """'*' stays inside one segment while '**' spans several."""
    assert not compile_glob("/*")("/a/b")
    assert compile_glob("/**")("/a/b")


def test_translate_is_anchored():
    regex = translate("/users")
    assert regex.startswith("^") and regex.endswith("$")


@pytest.mark.parametrize("pattern", ["/users/[abc", "/{a,b", "", "/foo\\", "/[z-a]"])
def test_invalid_pattern_raises(pattern):
    """Malformed globs are reported rather than matching nothing."""
    with pytest.raises(GlobPatternError) as exc_info:
        compile_glob(pattern)
    assert exc_info.value.pattern == pattern


def test_path_template_rule_selects_its_path():
    """A rule written as the document's path template selects that path."""
    is_match = compile_glob("/users/{id}")

    assert is_match("/users/{id}")
    assert not is_match("/users/id")
