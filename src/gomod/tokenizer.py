"""Line tokenizer shared by the go.mod and go.work parsers.

See https://go.dev/ref/mod#go-mod-file-lexical for the lexical rules this
follows: raw (backtick) strings, interpreted (double-quoted) strings with
backslash escapes, bare identifiers and `//` line comments.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from errors import ConfigurationError, ParseError


def read_source(file_path: str, description: str) -> str:
    """Read a whole file as UTF-8.

    Raises:
        ConfigurationError: the file cannot be read.
        ParseError: the content is not valid UTF-8; the location names the
            line holding the first bad byte.
    """
    try:
        with open(file_path, "rb") as fh:
            raw = fh.read()
    except OSError as e:
        raise ConfigurationError(f"cannot read {description}: {e}", location=file_path) from e
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        line_no = raw[:e.start].count(b"\n") + 1
        raise ParseError(file_path, line_no, f"invalid UTF-8 byte 0x{raw[e.start]:02x} in {description}") from e


def normalize_whitespace(content: str) -> str:
    """Replace tabs and carriage returns with spaces.

    Valid directive values never contain either, so the tokenizer only has to
    deal with single spaces as separators.
    """
    return content.replace("\t", " ").replace("\r", " ")


def _read_interpreted_string(rest: str, path: str, line_no: int) -> Tuple[str, str]:
    """Consume a double-quoted string at the start of rest; return (value, remainder)."""
    value = []
    escaped = False
    for pos in range(1, len(rest)):
        c = rest[pos]
        if escaped:
            value.append(c)
            escaped = False
        elif c == "\\":
            escaped = True
        elif c == '"':
            return "".join(value), rest[pos + 1:]
        else:
            value.append(c)
    raise ParseError(path, line_no, "unterminated interpreted string")


def tokenize_line(line: str, path: str, line_no: int) -> Tuple[List[str], Optional[str]]:
    """Split a single line into tokens and an optional trailing comment.

    Args:
        line: One line of whitespace-normalized file content.
        path: File name used in error locations.
        line_no: 1-based line number used in error locations.

    Returns:
        (tokens, comment) where comment is the stripped text after `//`, or None.
    """
    tokens: List[str] = []
    rest = line
    while True:
        rest = rest.strip(" ")
        if not rest:
            return tokens, None

        if rest[0] == "`":
            end = rest.find("`", 1)
            if end == -1:
                raise ParseError(path, line_no, "unterminated raw string")
            tokens.append(rest[1:end])
            rest = rest[end + 1:]
        elif rest[0] == '"':
            value, rest = _read_interpreted_string(rest, path, line_no)
            tokens.append(value)
        elif rest.startswith("//"):
            # A comment always ends the current line
            return tokens, rest[len("//"):].strip()
        else:
            token, _, rest = rest.partition(" ")
            tokens.append(token)


def iter_lines(content: str, path: str):
    """Yield (line_no, tokens, comment) for every non-empty line of content."""
    for line_no, line in enumerate(normalize_whitespace(content).splitlines(), 1):
        tokens, comment = tokenize_line(line, path, line_no)
        if tokens:
            yield line_no, tokens, comment
