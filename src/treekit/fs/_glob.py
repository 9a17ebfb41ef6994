"""Shell-glob compilation for include/exclude rules.

Patterns use the familiar ``*``, ``?``, ``[...]`` and ``[!...]`` syntax with
three deliberate properties: ``*`` and ``?`` also match path separators, a
leading ``.`` needs no special pattern, and a ``**`` path component matches
zero or more directories. Matching is case-insensitive only on Windows.
"""

import os
import re
from collections.abc import Iterable
from pathlib import PurePath

IF_CASE_SENSITIVE = os.name != "nt"

_RE_FLAGS = 0 if IF_CASE_SENSITIVE else re.IGNORECASE

# Characters that need escaping inside a regex character class.
_CLASS_SPECIALS = frozenset("\\[]&~|^")


def is_absolute_pattern(pattern: str) -> bool:
    # Windows-style anchors count too, so "C:\\x" is inert on every platform.
    return PurePath(pattern).is_absolute() or bool(re.match(r"^[A-Za-z]:[\\/]", pattern))


def _find_class_end(pattern: str, n_start: int) -> int:
    """Index of the ``]`` closing the class opened at ``n_start``, or -1."""
    n_end = n_start + 1
    if n_end < len(pattern) and pattern[n_end] == "!":
        n_end += 1
    if n_end < len(pattern) and pattern[n_end] == "]":
        n_end += 1
    return pattern.find("]", n_end)


def _is_parsable(pattern: str) -> bool:
    n_idx = 0
    while n_idx < len(pattern):
        if pattern[n_idx] == "[":
            n_idx = _find_class_end(pattern, n_idx)
            if n_idx < 0:
                return False
        n_idx += 1

    # "**" is only valid as a whole path component
    for _segment in re.split(r"[\\/]", pattern):
        if "**" in _segment and _segment != "**":
            return False
    return True


def _translate_segment(segment: str) -> str:
    l_out: list[str] = []
    n_idx = 0
    while n_idx < len(segment):
        c_char = segment[n_idx]
        if c_char == "*":
            l_out.append(".*")
        elif c_char == "?":
            l_out.append(".")
        elif c_char == "[":
            n_end = _find_class_end(segment, n_idx)
            if n_end < 0:
                # class split by a "/" component boundary, e.g. "[/]"
                l_out.append(re.escape(c_char))
                n_idx += 1
                continue
            c_body = segment[n_idx + 1 : n_end]
            c_negate = ""
            if c_body.startswith("!"):
                c_negate, c_body = "^", c_body[1:]
            c_body = "".join("\\" + c if c in _CLASS_SPECIALS else c for c in c_body)
            l_out.append(f"[{c_negate}{c_body}]")
            n_idx = n_end
        else:
            l_out.append(re.escape(c_char))
        n_idx += 1
    return "".join(l_out)


def translate_glob(pattern: str) -> str:
    """Translate a parsable glob into an anchored regex string.

    ``**/`` becomes "any number of leading directories" and a trailing
    ``/**`` becomes "anything below", so ``**/*.txt`` matches ``a.txt`` and
    ``sub/**/c.txt`` matches ``sub/c.txt``.
    """
    l_segments = pattern.split("/")
    c_regex = ""
    for n_idx, _segment in enumerate(l_segments):
        b_is_last = n_idx == len(l_segments) - 1
        if _segment == "**":
            if not b_is_last:
                c_regex += "(?:.*/)?"
            elif c_regex.endswith("/"):
                c_regex = c_regex[:-1] + "(?:/.*)?"
            else:
                c_regex += ".*"
            continue
        c_regex += _translate_segment(_segment) + ("" if b_is_last else "/")
    return f"(?s:{c_regex})\\Z"


def compile_glob_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a glob into a regex.

    Args:
        pattern: Shell-glob string.

    Returns:
        The compiled pattern, or ``None`` when ``pattern`` is absolute or
        cannot be parsed. Callers treat ``None`` as "never matches".
    """
    if is_absolute_pattern(pattern) or not _is_parsable(pattern):
        return None
    try:
        return re.compile(translate_glob(pattern), _RE_FLAGS)
    except re.error:
        return None


def compile_glob_patterns(patterns: Iterable[str]) -> tuple[re.Pattern[str], ...]:
    return tuple(
        _compiled
        for _pattern in patterns
        if (_compiled := compile_glob_pattern(_pattern)) is not None
    )
