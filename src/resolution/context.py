"""Per-evaluation accumulation tables.

A ResolutionContext is created for a single evaluation and discarded
afterwards; nothing in it survives across evaluations.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from constants import Strictness
from errors import ConfigurationError, Diagnostic, ModpinError
from versioning.models import ExternalProvider, ReplaceEntry, Requirement, ResolvedModule
from versioning.semver import InvalidVersionError, Version
from .conflicts import check_version_conflict
from .output import repo_name
from .overrides import OverrideRegistry
from .sum_store import SumStore
from .units import ConfigurationUnit, EvaluationConfig

logger = logging.getLogger(__name__)


class ResolutionContext:
    """Shared requirement, checksum, override and replace tables for one evaluation."""

    def __init__(self, config: EvaluationConfig):
        self.config = config
        self.sums = SumStore()
        self.overrides = OverrideRegistry()
        self.replace_map: Dict[str, ReplaceEntry] = {}
        self.unit_requirements: List[Tuple[ConfigurationUnit, Dict[str, Requirement]]] = []
        self.external: Dict[str, ExternalProvider] = {}
        self.resolutions: Dict[str, ResolvedModule] = {}

        # Root unit bookkeeping: requested raw version per direct path, and
        # repository names of direct (dev) dependencies in insertion order.
        self.root_versions: Dict[str, str] = {}
        self.root_direct_deps: Dict[str, None] = {}
        self.root_direct_dev_deps: Dict[str, None] = {}

        self.errors: List[ModpinError] = []
        self.warnings: List[Diagnostic] = []

    def defer(self, error: ModpinError) -> None:
        """Record a fatal problem that is reported once traversal completes."""
        self.errors.append(error)

    def report(self, error: ModpinError, strictness: Strictness) -> None:
        """Report a problem whose severity depends on a strictness setting."""
        if strictness is Strictness.ERROR:
            self.defer(error)
            return
        self.warnings.append(error.diagnostic)
        if strictness is Strictness.WARNING:
            logger.warning("%s", error.diagnostic)
        else:
            logger.info("%s", error.diagnostic)

    def merge_replacements(self, replace_map: Dict[str, ReplaceEntry], source_file: str) -> None:
        """Merge replace entries; a later entry for the same from_path wins."""
        for from_path, entry in replace_map.items():
            for raw in (entry.from_version, entry.version):
                if raw is None:
                    continue
                try:
                    Version.parse(raw)
                except InvalidVersionError as e:
                    raise ConfigurationError(f"replace of {from_path}: {e}", location=source_file) from e
            self.replace_map[from_path] = entry

    def accumulate_requirement(self, unit: ConfigurationUnit, unit_map: Dict[str, Requirement],
                               requirement: Requirement) -> None:
        """Add a requirement to a unit's map; the first one for a path is kept
        unless a conflicting later one is higher.

        Differing versions for one path are reported through the conflict
        policy at the configured version_conflicts strictness.
        """
        path = requirement.path
        try:
            version = requirement.comparable
        except InvalidVersionError as e:
            raise ConfigurationError(f"requirement {path}: {e}", location=requirement.provenance.file) from e

        if unit.is_root and not requirement.indirect:
            if requirement.version:
                self.root_versions[path] = requirement.raw_version
            name = repo_name(path)
            if requirement.dev_dependency:
                self.root_direct_dev_deps[name] = None
            else:
                self.root_direct_deps[name] = None

        previous = unit_map.get(path)
        conflict = check_version_conflict(previous, requirement)
        if conflict is not None:
            self.report(conflict, self.config.version_conflicts)
        if previous is None or version > previous.comparable:
            unit_map[path] = requirement

    def register_external(self, module_path: str, unit: ConfigurationUnit) -> None:
        """Record unit as a provider of module_path; the highest version wins."""
        raw_version = unit.version[1:] if unit.version.startswith("v") else unit.version
        try:
            version = Version.parse(raw_version, relaxed=True) if raw_version else Version.sentinel()
        except InvalidVersionError as e:
            raise ConfigurationError(f"unit {unit.name}: {e}") from e

        existing = self.external.get(module_path)
        if existing is None or version > existing.version:
            self.external[module_path] = ExternalProvider(
                unit=unit.name,
                repo_name="@" + unit.name,
                version=version,
                raw_version=raw_version,
            )
