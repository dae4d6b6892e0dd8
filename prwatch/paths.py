"""Path selection for the `paths` / `ignore_paths` filters.

A changed file is selected by a pattern when it matches the pattern as a shell
glob (`*` and `?` stop at `/`, bracket classes, backslash escapes), or when the
pattern names a directory the file lives in.
"""

import re
from functools import lru_cache

from prwatch.errors import ConfigError

SEPARATOR = "/"


def _translate_class(pattern: str, start: int) -> tuple[str, int]:
    """Translate the bracket class opening at pattern[start] into a regex class.

    Returns the regex fragment and the index just past the closing bracket.
    """
    i = start + 1
    negate = False
    if i < len(pattern) and pattern[i] in "^!":
        negate = True
        i += 1

    def read_char(i: int) -> tuple[str, int]:
        if i >= len(pattern):
            raise ConfigError(f"syntax error in pattern '{pattern}': unterminated character class")
        char = pattern[i]
        if char == "\\":
            i += 1
            if i >= len(pattern):
                raise ConfigError(f"syntax error in pattern '{pattern}': trailing backslash")
            return pattern[i], i + 1
        if char in "-]":
            raise ConfigError(f"syntax error in pattern '{pattern}': unexpected '{char}' in character class")
        return char, i + 1

    parts: list[str] = []
    while True:
        if i >= len(pattern):
            raise ConfigError(f"syntax error in pattern '{pattern}': unterminated character class")
        if pattern[i] == "]" and parts:
            break
        low, i = read_char(i)
        if i < len(pattern) and pattern[i] == "-":
            high, i = read_char(i + 1)
            if high < low:
                raise ConfigError(f"syntax error in pattern '{pattern}': invalid range {low}-{high}")
            parts.append(f"{re.escape(low)}-{re.escape(high)}")
        else:
            parts.append(re.escape(low))

    body = "".join(parts)
    # Unlike * and ?, a class may match the separator.
    if negate:
        return f"[^{body}]", i + 1
    return f"[{body}]", i + 1


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a glob pattern into an anchored regex, raising ConfigError if malformed."""
    out: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "*":
            out.append(f"[^{SEPARATOR}]*")
            i += 1
        elif char == "?":
            out.append(f"[^{SEPARATOR}]")
            i += 1
        elif char == "[":
            fragment, i = _translate_class(pattern, i)
            out.append(fragment)
        elif char == "\\":
            if i + 1 >= len(pattern):
                raise ConfigError(f"syntax error in pattern '{pattern}': trailing backslash")
            out.append(re.escape(pattern[i + 1]))
            i += 2
        else:
            out.append(re.escape(char))
            i += 1
    return re.compile("".join(out) + r"\Z", re.DOTALL)


def glob_match(path: str, pattern: str) -> bool:
    return compile_pattern(pattern).match(path) is not None


def is_inside_path(parent: str, child: str) -> bool:
    """Return True when child is parent itself or lives below it.

    foo/bar is inside foo, but foobar is not inside foo.
    foo is inside foo, but foo is not inside foo/.
    """
    if parent == child:
        return True
    # Only prefix-match on a separator boundary.
    prefix = parent if parent.endswith(SEPARATOR) else parent + SEPARATOR
    return child.startswith(prefix)


def matches(path: str, pattern: str) -> bool:
    return glob_match(path, pattern) or is_inside_path(pattern, path)


def filter_path(files: list[str], pattern: str) -> list[str]:
    """Return the files selected by pattern, preserving order."""
    compile_pattern(pattern)
    return [f for f in files if matches(f, pattern)]


def filter_ignore_path(files: list[str], pattern: str) -> list[str]:
    """Return the files not selected by pattern, preserving order."""
    compile_pattern(pattern)
    return [f for f in files if not matches(f, pattern)]
