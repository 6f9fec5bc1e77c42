"""Diagnostics and the error taxonomy shared by parsing and resolution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DiagnosticKind(Enum):
    """Category of a reported problem."""

    PARSE = "parse"
    INTEGRITY = "integrity"
    CONFIGURATION = "configuration"
    CONFLICT = "conflict"
    STALENESS = "staleness"


@dataclass(frozen=True)
class Diagnostic:
    """A single reportable problem.

    location is "file:line" for parse problems and a module path otherwise.
    """

    kind: DiagnosticKind
    message: str
    location: Optional[str] = None
    remediation: Optional[str] = None

    def __str__(self) -> str:
        text = f"{self.location}: {self.message}" if self.location else self.message
        if self.remediation:
            text = f"{text}\n{self.remediation}"
        return text


class ModpinError(Exception):
    """Base class for every fatal condition; wraps a Diagnostic."""

    kind = DiagnosticKind.CONFIGURATION

    def __init__(self, message: str, location: Optional[str] = None, remediation: Optional[str] = None):
        self.diagnostic = Diagnostic(self.kind, message, location, remediation)
        super().__init__(str(self.diagnostic))


class ParseError(ModpinError):
    """Malformed manifest, workspace or checksum file."""

    kind = DiagnosticKind.PARSE

    def __init__(self, path: str, line_no: int, message: str):
        self.path = path
        self.line_no = line_no
        super().__init__(message, location=f"{path}:{line_no}")


class IntegrityError(ModpinError):
    """Mismatching or missing checksum data."""

    kind = DiagnosticKind.INTEGRITY


class ConfigurationError(ModpinError):
    """Invalid declarations: overrides, from_file usage, config file shape."""

    kind = DiagnosticKind.CONFIGURATION


class ConflictError(ModpinError):
    """Irreconcilable differing versions of one path within a unit."""

    kind = DiagnosticKind.CONFLICT
    conflict_kind = None


class StalenessWarning(ModpinError):
    """Resolved version exceeds what the root unit requested.

    Only raised when the configured strictness escalates it to an error.
    """

    kind = DiagnosticKind.STALENESS
