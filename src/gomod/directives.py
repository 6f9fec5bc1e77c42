"""Directive rules shared between the go.mod and go.work grammars."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from constants import Constants
from errors import ParseError
from versioning.models import ReplaceEntry
from versioning.semver import canonicalize_raw_version

_GO_VERSION_RE = re.compile(r"^(\d+)\.(\d+)")


def validate_go_directive(path: str, line_no: int, tokens: List[str], current: Optional[str]) -> str:
    """Check a `go` line and return its version token."""
    if len(tokens) == 1:
        raise ParseError(path, line_no, "expected another token after 'go'")
    if current is not None:
        raise ParseError(path, line_no, "unexpected second 'go' directive")
    if tokens[1] == "(":
        raise ParseError(path, line_no, "the 'go' directive has no block form")
    if len(tokens) > 2:
        raise ParseError(path, line_no, f"unexpected token '{tokens[2]}' after '{tokens[1]}'")
    go_version_tuple(tokens[1], path, line_no)
    return tokens[1]


def go_version_tuple(raw: Optional[str], path: str, line_no: int = 0) -> Tuple[int, int]:
    """Reduce a go directive value to (major, minor).

    The directive may carry patch and pre-release parts (1.21.0, 1.21rc1);
    both are ignored.
    """
    value = raw or Constants.DEFAULT_GO_VERSION
    m = _GO_VERSION_RE.match(value)
    if not m:
        raise ParseError(path, line_no, f"invalid go version '{value}'")
    return int(m.group(1)), int(m.group(2))


def parse_replace_directive(
    replace_map: Dict[str, ReplaceEntry],
    tokens: List[str],
    path: str,
    line_no: int,
) -> None:
    """Parse the tokens following `replace` and store the entry.

    Replacements key off of the from path; a later entry for the same path
    overwrites an earlier one.
    """
    arrow = Constants.REPLACE_ARROW
    from_path = tokens[0] if tokens else ""

    # replace from_path => to_path to_version
    if len(tokens) == 4 and tokens[1] == arrow:
        entry = ReplaceEntry(
            from_path=from_path,
            to_path=tokens[2],
            version=canonicalize_raw_version(tokens[3]),
        )
    # replace from_path from_version => to_path to_version
    elif len(tokens) == 5 and tokens[2] == arrow:
        entry = ReplaceEntry(
            from_path=from_path,
            from_version=canonicalize_raw_version(tokens[1]),
            to_path=tokens[3],
            version=canonicalize_raw_version(tokens[4]),
        )
    # replace from_path from_version => ../local/dir
    elif len(tokens) == 4 and tokens[2] == arrow:
        entry = ReplaceEntry(
            from_path=from_path,
            from_version=canonicalize_raw_version(tokens[1]),
            to_path=from_path,
            local_path=tokens[3],
        )
    # replace from_path => ./local/dir
    elif len(tokens) == 3 and tokens[1] == arrow:
        entry = ReplaceEntry(
            from_path=from_path,
            to_path=from_path,
            local_path=tokens[2],
        )
    else:
        raise ParseError(
            path,
            line_no,
            "expected 'from => to version', 'from version => to version', 'from => dir' or 'from version => dir' in 'replace' directive",
        )
    replace_map[from_path] = entry
