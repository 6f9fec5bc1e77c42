"""Structured results of parsing go.mod and go.work files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from versioning.models import ReplaceEntry


@dataclass(frozen=True)
class RequireDirective:
    """A `require path version` line; version keeps its leading 'v'."""
    path: str
    version: str
    indirect: bool = False


@dataclass(frozen=True)
class ExcludeDirective:
    path: str
    version: str


@dataclass
class ParsedManifest:
    """Contents of a go.mod file."""
    path: str
    module: str
    go: Tuple[int, int]
    require: Tuple[RequireDirective, ...] = ()
    replace_map: Dict[str, ReplaceEntry] = field(default_factory=dict)
    exclude: Tuple[ExcludeDirective, ...] = ()
    retract: Tuple[str, ...] = ()
    toolchain: Optional[str] = None


@dataclass
class ParsedWorkspace:
    """Contents of a go.work file.

    use holds the raw `use` paths in declaration order; go_mods holds the
    manifest locations they resolve to.
    """
    path: str
    go: Tuple[int, int]
    use: List[str] = field(default_factory=list)
    go_mods: List[str] = field(default_factory=list)
    replace_map: Dict[str, ReplaceEntry] = field(default_factory=dict)
    toolchain: Optional[str] = None
