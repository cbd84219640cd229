"""Glob matching for OpenAPI path templates.

Patterns are matched against the whole path string:

- ``*`` matches any run of characters inside one path segment
- ``**`` as a whole segment matches any number of segments (including none),
  so ``/users/**`` matches ``/users``, ``/users/{id}`` and ``/users/{id}/roles``
- ``?`` matches a single character other than ``/``
- ``[abc]`` / ``[!abc]`` are character classes
- ``{a,b}`` is an alternation and may be nested; a brace group without a
  comma, such as ``{id}``, matches literally so path templates can be
  written as they appear in the document
- ``\\`` escapes the next character
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Callable, List

from oas_merge.errors import GlobPatternError

PathPredicate = Callable[[str], bool]


def _translate_class(pattern: str, start: int) -> tuple[str, int]:
    """Translate the character class starting at ``pattern[start] == '['``.

    Returns the regex fragment and the index just past the closing bracket.
    """
    i = start + 1
    negate = False
    if i < len(pattern) and pattern[i] in "!^":
        negate = True
        i += 1
    body_start = i
    # A leading ']' is a literal member of the class
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    while i < len(pattern) and pattern[i] != "]":
        i += 1
    if i >= len(pattern):
        raise GlobPatternError(pattern, f"unclosed character class at position {start}")
    body = pattern[body_start:i].replace("\\", "\\\\")
    return f"[{'^' if negate else ''}{body}]", i + 1


def _brace_has_alternatives(pattern: str, start: int) -> bool:
    """Tell whether the brace group opened at ``pattern[start] == '{'`` has a top-level comma.

    Groups without one (``{id}`` in ``/users/{id}``) are path template
    parameters and match literally.
    """
    depth = 0
    i = start + 1
    has_comma = False
    while i < len(pattern):
        c = pattern[i]
        if c == "\\":
            i += 2
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            if depth == 0:
                return has_comma
            depth -= 1
        elif c == "," and depth == 0:
            has_comma = True
        i += 1
    raise GlobPatternError(pattern, f"unclosed '{{' at position {start}")


def translate(pattern: str) -> str:
    """Translate a glob pattern into an anchored regular expression."""
    if not pattern:
        raise GlobPatternError(pattern, "pattern is empty")

    out: List[str] = []
    # One entry per open brace: True for an alternation, False for literal text
    braces: List[bool] = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**", i):
                at_segment_start = i == 0 or pattern[i - 1] == "/"
                after = i + 2
                if at_segment_start and after < n and pattern[after] == "/":
                    out.append("(?:.*/)?")
                    i = after + 1
                    continue
                if at_segment_start and after == n:
                    if out and out[-1] == "/":
                        out.pop()
                        out.append("(?:/.*)?")
                    else:
                        out.append(".*")
                    i = after
                    continue
                # '**' inside a segment behaves like '*'
                out.append("[^/]*")
                i = after
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            fragment, i = _translate_class(pattern, i)
            out.append(fragment)
            continue
        elif c == "{":
            is_alternation = _brace_has_alternatives(pattern, i)
            braces.append(is_alternation)
            out.append("(?:" if is_alternation else re.escape(c))
        elif c == "," and braces and braces[-1]:
            out.append("|")
        elif c == "}" and braces:
            out.append(")" if braces.pop() else re.escape(c))
        elif c == "\\":
            if i + 1 >= n:
                raise GlobPatternError(pattern, "dangling escape at end of pattern")
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        else:
            out.append(re.escape(c))
        i += 1

    return "^" + "".join(out) + "$"


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(translate(pattern))
    except re.error as e:
        raise GlobPatternError(pattern, str(e)) from e


def compile_glob(pattern: str) -> PathPredicate:
    """Compile ``pattern`` into a predicate over path strings.

    Raises:
        GlobPatternError: if the pattern is malformed
    """
    regex = _compile(pattern)

    def is_match(path: str) -> bool:
        return regex.match(path) is not None

    return is_match
