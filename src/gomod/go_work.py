"""Parser for go.work workspace files.

See https://go.dev/ref/mod#go-work-file.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional

from constants import Constants
from errors import ConfigurationError, ParseError
from versioning.models import ReplaceEntry
from .directives import go_version_tuple, parse_replace_directive, validate_go_directive
from .models import ParsedWorkspace
from .tokenizer import iter_lines, read_source

logger = logging.getLogger(__name__)


def use_path_to_go_mod(workspace_dir: str, use_directive: str, path: str = "", line_no: int = 0) -> str:
    """Resolve a `use` path to the go.mod it names, relative to workspace_dir.

    Raises:
        ParseError: the path climbs out of the workspace or is absolute.
    """
    if ".." in use_directive.replace("\\", "/").split("/"):
        raise ParseError(path, line_no, f"use directive '{use_directive}' contains '..', which is not supported")
    if use_directive.startswith("/") or os.path.isabs(use_directive):
        raise ParseError(path, line_no, f"use directive '{use_directive}' is an absolute path, which is not supported")

    if use_directive.startswith("./"):
        use_directive = use_directive[2:]
    elif use_directive.startswith("."):
        use_directive = use_directive[1:]
    if use_directive.endswith("/"):
        use_directive = use_directive[:-1]

    if not use_directive:
        return os.path.join(workspace_dir, Constants.GO_MOD_FILE)
    return os.path.join(workspace_dir, use_directive, Constants.GO_MOD_FILE)


def parse_go_work(content: str, path: str) -> ParsedWorkspace:
    """Parse the text of a go.work file.

    Args:
        content: Whole file content.
        path: File path; `use` entries resolve relative to its directory.

    Returns:
        ParsedWorkspace with use paths, resolved go.mod locations and replace map.
    """
    go: Optional[str] = None
    use: List[tuple] = []
    replace: Dict[str, ReplaceEntry] = {}
    toolchain: Optional[str] = None

    current_directive: Optional[str] = None
    block_line = 0
    for line_no, tokens, _ in iter_lines(content, path):
        if current_directive:
            if tokens[0] == ")":
                if len(tokens) > 1:
                    raise ParseError(path, line_no, f"unexpected token '{tokens[1]}' after ')'")
                current_directive = None
            elif current_directive == "use":
                if len(tokens) != 1:
                    raise ParseError(path, line_no, "expected a single path in 'use' block")
                use.append((tokens[0], line_no))
            else:
                parse_replace_directive(replace, tokens, path, line_no)
            continue

        directive = tokens[0]
        if directive not in Constants.GO_WORK_DIRECTIVES:
            raise ParseError(path, line_no, f"unexpected directive '{directive}'")
        if len(tokens) == 1:
            raise ParseError(path, line_no, f"expected another token after '{directive}'")

        if directive == "go":
            go = validate_go_directive(path, line_no, tokens, go)
        elif directive == "toolchain":
            if len(tokens) != 2:
                raise ParseError(path, line_no, "expected a single toolchain name in 'toolchain' directive")
            toolchain = tokens[1]
        elif tokens[1] == "(":
            if len(tokens) > 2:
                raise ParseError(path, line_no, f"unexpected token '{tokens[2]}' after '('")
            current_directive = directive
            block_line = line_no
        elif directive == "use":
            if len(tokens) != 2:
                raise ParseError(path, line_no, "expected path or block in 'use' directive")
            use.append((tokens[1], line_no))
        else:
            parse_replace_directive(replace, tokens[1:], path, line_no)

    if current_directive is not None:
        raise ParseError(path, block_line, f"'{current_directive}' block is missing its closing ')'")

    workspace_dir = os.path.dirname(path)
    return ParsedWorkspace(
        path=path,
        go=go_version_tuple(go, path),
        use=[u for u, _ in use],
        go_mods=[use_path_to_go_mod(workspace_dir, u, path, n) for u, n in use],
        replace_map=replace,
        toolchain=toolchain,
    )


def check_go_work_name(file_path: str) -> None:
    name = os.path.basename(file_path)
    if name != Constants.GO_WORK_FILE:
        raise ConfigurationError(
            f"from_file requires a '{Constants.GO_WORK_FILE}' file, not '{name}'",
            location=file_path,
        )


def load_go_work(file_path: str) -> ParsedWorkspace:
    """Read and parse a go.work file."""
    check_go_work_name(file_path)
    workspace = parse_go_work(read_source(file_path, "workspace"), file_path)
    logger.debug("Parsed %s: %d use entries, %d replacements",
                 file_path, len(workspace.use), len(workspace.replace_map))
    return workspace
