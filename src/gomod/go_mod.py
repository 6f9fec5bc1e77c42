"""Parser for go.mod manifest files.

See https://go.dev/ref/mod#go-mod-file for the grammar.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional

from constants import Constants
from errors import ConfigurationError, ParseError
from versioning.models import ReplaceEntry
from .directives import go_version_tuple, parse_replace_directive, validate_go_directive
from .models import ExcludeDirective, ParsedManifest, RequireDirective
from .tokenizer import iter_lines, read_source

logger = logging.getLogger(__name__)


class _ManifestState:
    """Mutable accumulator used while walking the lines of one go.mod."""

    def __init__(self):
        self.module: Optional[str] = None
        self.go: Optional[str] = None
        self.require: List[RequireDirective] = []
        self.replace: Dict[str, ReplaceEntry] = {}
        self.exclude: List[ExcludeDirective] = []
        self.retract: List[str] = []
        self.toolchain: Optional[str] = None


def _is_indirect(comment: Optional[str]) -> bool:
    if not comment:
        return False
    return comment == Constants.INDIRECT_COMMENT or comment.startswith(Constants.INDIRECT_COMMENT + ";")


def _parse_directive(state: _ManifestState, directive: str, tokens: List[str],
                     comment: Optional[str], path: str, line_no: int) -> None:
    """Apply a single-entry rule for directive to tokens (directive keyword excluded)."""
    if directive == "module":
        if state.module is not None:
            raise ParseError(path, line_no, "unexpected second 'module' directive")
        if len(tokens) != 1:
            raise ParseError(path, line_no, f"unexpected token '{tokens[1]}' after '{tokens[0]}'")
        state.module = tokens[0]
    elif directive == "require":
        if len(tokens) != 2:
            raise ParseError(path, line_no, "expected module path and version in 'require' directive")
        state.require.append(RequireDirective(
            path=tokens[0],
            version=tokens[1],
            indirect=_is_indirect(comment),
        ))
    elif directive == "replace":
        parse_replace_directive(state.replace, tokens, path, line_no)
    elif directive == "exclude":
        if len(tokens) != 2:
            raise ParseError(path, line_no, "expected module path and version in 'exclude' directive")
        state.exclude.append(ExcludeDirective(path=tokens[0], version=tokens[1]))
    elif directive == "retract":
        state.retract.append(" ".join(tokens))
    elif directive == "toolchain":
        if len(tokens) != 1:
            raise ParseError(path, line_no, "expected a single toolchain name in 'toolchain' directive")
        state.toolchain = tokens[0]
    else:
        raise ParseError(path, line_no, f"unexpected directive '{directive}'")


def parse_go_mod(content: str, path: str) -> ParsedManifest:
    """Parse the text of a go.mod file.

    Args:
        content: Whole file content.
        path: File path, used for error locations.

    Returns:
        ParsedManifest with module path, (major, minor) go version, requirements
        and replace map.
    """
    state = _ManifestState()
    current_directive: Optional[str] = None
    block_line = 0

    for line_no, tokens, comment in iter_lines(content, path):
        if current_directive is None:
            if tokens[0] not in Constants.GO_MOD_DIRECTIVES:
                raise ParseError(path, line_no, f"unexpected token '{tokens[0]}' at start of line")
            if len(tokens) == 1:
                raise ParseError(path, line_no, f"expected another token after '{tokens[0]}'")

            # 'go' only has a single-line form, so it never reaches _parse_directive.
            if tokens[0] == "go":
                state.go = validate_go_directive(path, line_no, tokens, state.go)
                continue

            if tokens[1] == "(":
                if len(tokens) > 2:
                    raise ParseError(path, line_no, f"unexpected token '{tokens[2]}' after '('")
                current_directive = tokens[0]
                block_line = line_no
                continue

            _parse_directive(state, tokens[0], tokens[1:], comment, path, line_no)

        elif tokens[0] == ")":
            if len(tokens) > 1:
                raise ParseError(path, line_no, f"unexpected token '{tokens[1]}' after ')'")
            current_directive = None

        else:
            _parse_directive(state, current_directive, tokens, comment, path, line_no)

    if current_directive is not None:
        raise ParseError(path, block_line, f"'{current_directive}' block is missing its closing ')'")

    if not state.module:
        raise ParseError(path, 1, "expected a module directive in go.mod file")

    return ParsedManifest(
        path=path,
        module=state.module,
        go=go_version_tuple(state.go, path),
        require=tuple(state.require),
        replace_map=state.replace,
        exclude=tuple(state.exclude),
        retract=tuple(state.retract),
        toolchain=state.toolchain,
    )


def check_go_mod_name(file_path: str) -> None:
    name = os.path.basename(file_path)
    if name != Constants.GO_MOD_FILE:
        raise ConfigurationError(
            f"from_file requires a '{Constants.GO_MOD_FILE}' file, not '{name}'",
            location=file_path,
        )


def load_go_mod(file_path: str) -> ParsedManifest:
    """Read and parse a go.mod, requiring a complete requirement list.

    Raises:
        ConfigurationError: the file is misnamed, unreadable or predates Go 1.17.
        ParseError: the file is malformed or not valid UTF-8.
    """
    check_go_mod_name(file_path)
    manifest = parse_go_mod(read_source(file_path, "manifest"), file_path)
    if manifest.go[0] != 1 or manifest.go < Constants.MIN_GO_VERSION:
        raise ConfigurationError(
            "from_file requires a go.mod file generated by Go 1.17 or later",
            location=file_path,
            remediation="Fix it with 'go mod tidy -go=1.17'.",
        )
    logger.debug(
        "Parsed %s: module %s, go %d.%d, %d requirements",
        file_path, manifest.module, manifest.go[0], manifest.go[1], len(manifest.require),
    )
    return manifest
