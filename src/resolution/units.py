"""Input declarations for one evaluation: configuration units and settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from constants import Constants, Strictness
from versioning.models import (
    ArchiveOverride,
    BuildDirectiveOverride,
    Override,
    OverrideKind,
    PatchOverride,
)


@dataclass(frozen=True)
class FromFile:
    """Declaration pointing at exactly one go.mod or go.work file."""
    go_mod: Optional[str] = None
    go_work: Optional[str] = None
    dev_dependency: bool = False


@dataclass(frozen=True)
class ModuleDeclaration:
    """A manually pinned module."""
    path: str
    version: str
    sum: str = ""
    indirect: bool = False
    dev_dependency: bool = False


@dataclass
class ConfigurationUnit:
    """One independently-declared source of requirements.

    The root unit is the privileged one: only it may declare overrides (unless
    the evaluation is isolated) and its direct requirements are checked for
    silent upgrades.
    """
    name: str
    version: str = ""
    is_root: bool = False
    from_file: List[FromFile] = field(default_factory=list)
    module: List[ModuleDeclaration] = field(default_factory=list)
    archive_override: List[ArchiveOverride] = field(default_factory=list)
    build_override: List[BuildDirectiveOverride] = field(default_factory=list)
    patch_override: List[PatchOverride] = field(default_factory=list)
    declared_in: str = Constants.ROOT_DECLARATION_FILE

    def overrides_of(self, kind: OverrideKind) -> List[Override]:
        if kind is OverrideKind.ARCHIVE:
            return list(self.archive_override)
        if kind is OverrideKind.BUILD_DIRECTIVE:
            return list(self.build_override)
        if kind is OverrideKind.PATCH:
            return list(self.patch_override)
        raise ValueError(f"unknown override kind: {kind}")


@dataclass
class EvaluationConfig:
    """Everything one evaluation needs; units are processed in list order."""
    units: List[ConfigurationUnit] = field(default_factory=list)
    check_direct_dependencies: Strictness = Constants.DEFAULT_CHECK_DIRECT_DEPENDENCIES
    version_conflicts: Strictness = Constants.DEFAULT_VERSION_CONFLICTS
    isolated: bool = False
