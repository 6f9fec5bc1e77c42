"""Data models for declared requirements and resolved modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from constants import Constants
from .semver import Version, canonicalize_raw_version


class ModuleSource(Enum):
    """Where the selected version of a module comes from."""
    FETCHED = "fetched"
    REPLACED = "replaced"
    EXTERNAL = "external"


@dataclass(frozen=True)
class Provenance:
    """Origin of a requirement: declaring unit and file.

    workspace is set when the file was reached through a go.work `use`.
    """
    unit: str
    file: str
    workspace: Optional[str] = None

    @property
    def traces_to_workspace(self) -> bool:
        return self.workspace is not None or self.file.endswith(Constants.GO_WORK_FILE)

    def __str__(self) -> str:
        return self.file


@dataclass(frozen=True)
class Requirement:
    """A (path, version) requirement declared by one configuration unit."""
    path: str
    version: str  # as declared; may carry a leading 'v', empty for the sentinel
    provenance: Provenance
    sum: Optional[str] = None
    indirect: bool = False
    dev_dependency: bool = False
    local_path: Optional[str] = None

    @property
    def raw_version(self) -> str:
        return canonicalize_raw_version(self.version)

    @property
    def comparable(self) -> Version:
        if not self.version:
            return Version.sentinel()
        return Version.parse(self.version)


@dataclass(frozen=True)
class ReplaceEntry:
    """A replace directive keyed by from_path.

    version is None for a local replacement, which points at local_path
    instead of a fetchable module version.
    """
    from_path: str
    to_path: str
    from_version: Optional[str] = None
    version: Optional[str] = None
    local_path: Optional[str] = None

    @property
    def is_local(self) -> bool:
        return self.local_path is not None


class OverrideKind(Enum):
    """The three kinds of path-keyed overrides."""
    ARCHIVE = "archive_override"
    BUILD_DIRECTIVE = "build_override"
    PATCH = "patch_override"


@dataclass(frozen=True)
class ArchiveOverride:
    """Fetch the module from an archive instead of the module proxy."""
    path: str
    urls: List[str] = field(default_factory=list)
    sha256: str = ""
    strip_prefix: str = ""
    patches: List[str] = field(default_factory=list)
    patch_strip: int = 0

    kind = OverrideKind.ARCHIVE


@dataclass(frozen=True)
class BuildDirectiveOverride:
    """Adjust build file generation for the module's repository."""
    path: str
    directives: List[str] = field(default_factory=list)
    build_file_generation: str = "auto"
    build_extra_args: List[str] = field(default_factory=list)

    kind = OverrideKind.BUILD_DIRECTIVE


@dataclass(frozen=True)
class PatchOverride:
    """Apply patches to the fetched module."""
    path: str
    patches: List[str] = field(default_factory=list)
    patch_strip: int = 0

    kind = OverrideKind.PATCH


Override = Union[ArchiveOverride, BuildDirectiveOverride, PatchOverride]


@dataclass
class ExternalProvider:
    """A configuration unit that itself provides a Go module path."""
    unit: str
    repo_name: str
    version: Version
    raw_version: str


@dataclass
class ResolvedModule:
    """One entry of the final module table."""
    path: str
    version: Version
    raw_version: str
    source: ModuleSource
    repo_name: str
    replace: Optional[str] = None
    local_path: Optional[str] = None
    sum: Optional[str] = None
    provider: Optional[str] = None
    archive: Optional[ArchiveOverride] = None
    build: Optional[BuildDirectiveOverride] = None
    patches: List[str] = field(default_factory=list)
    patch_strip: int = 0

    @property
    def display_version(self) -> str:
        return str(self.version)


@dataclass
class ResolutionResult:
    """Final output: module table plus root direct dependency name sets."""
    modules: Dict[str, ResolvedModule]
    root_direct_deps: List[str]
    root_direct_dev_deps: List[str]
