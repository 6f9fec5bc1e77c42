"""Multi-source Go module version resolution.

The engine applies Minimal Version Selection over the flat set of
requirements declared by every configuration unit, which is not what
`go mod` does. Since only versions explicitly declared somewhere are ever
selected, everything those versions transitively require has been declared
somewhere as well; it may resolve to a higher, but compatible, version.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from constants import Constants
from errors import ConfigurationError, Diagnostic, IntegrityError, ModpinError, StalenessWarning
from gomod.go_mod import load_go_mod
from gomod.go_sum import load_sumfile
from gomod.go_work import load_go_work
from versioning.models import (
    ModuleSource,
    OverrideKind,
    Provenance,
    Requirement,
    ResolutionResult,
    ResolvedModule,
)
from versioning.semver import Version, humanize_version
from common.logging_utils import extra_context, is_debug_enabled
from .context import ResolutionContext
from .output import assemble_result, repo_name
from .units import ConfigurationUnit, EvaluationConfig, FromFile

logger = logging.getLogger(__name__)


@dataclass
class Evaluation:
    """Outcome of one evaluation: either a result or the first fatal diagnostic."""
    result: Optional[ResolutionResult] = None
    diagnostic: Optional[Diagnostic] = None
    errors: List[Diagnostic] = field(default_factory=list)
    warnings: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.diagnostic is None


class ResolutionEngine:
    """Resolve the module table for an EvaluationConfig."""

    def __init__(self, config: EvaluationConfig):
        self.config = config

    def evaluate(self) -> Evaluation:
        """Run one evaluation.

        Parse and declaration errors stop immediately. Conflicts, checksum
        problems and unmatched overrides are collected over the whole
        traversal; the first one is returned as the diagnostic.
        """
        ctx = ResolutionContext(self.config)
        try:
            self._check_units()
            for unit in self.config.units:
                self._collect_unit(ctx, unit)
            self._select(ctx)
            self._apply_replacements(ctx)
            self._apply_external_providers(ctx)
            self._check_root_staleness(ctx)
            self._layer_overrides(ctx)
            self._check_overrides(ctx)
            self._resolve_checksums(ctx)
        except ModpinError as e:
            logger.debug("Evaluation aborted: %s", e.diagnostic.message)
            return Evaluation(diagnostic=e.diagnostic, errors=[e.diagnostic], warnings=ctx.warnings)

        if ctx.errors:
            diagnostics = [e.diagnostic for e in ctx.errors]
            for extra in diagnostics[1:]:
                logger.debug("Additional problem: %s", extra)
            return Evaluation(diagnostic=diagnostics[0], errors=diagnostics, warnings=ctx.warnings)

        result = assemble_result(ctx)
        if is_debug_enabled(logger):
            logger.debug(
                "Resolved module table",
                extra=extra_context(event="function_exit", component="engine", action="evaluate",
                                    outcome="success", count=len(result.modules)),
            )
        return Evaluation(result=result, warnings=ctx.warnings)

    def _check_units(self) -> None:
        roots = [unit.name for unit in self.config.units if unit.is_root]
        if len(roots) > 1:
            raise ConfigurationError(f"Only one root configuration unit is allowed, found: {', '.join(roots)}")

    # Collection

    def _collect_unit(self, ctx: ResolutionContext, unit: ConfigurationUnit) -> None:
        """Gather one unit's overrides, checksums, replacements and requirements."""
        ctx.overrides.register_unit(unit, self.config.isolated)

        if len(unit.from_file) > 1:
            raise ConfigurationError(
                f'Multiple "from_file" declarations in unit "{unit.name}": '
                + ", ".join(str(f.go_mod or f.go_work) for f in unit.from_file)
            )

        from_files: List[Requirement] = []
        for from_file in unit.from_file:
            from_files.extend(self._load_from_file(ctx, unit, from_file))

        declared: List[Requirement] = []
        for decl in unit.module:
            requirement = Requirement(
                path=decl.path,
                version=decl.version,
                provenance=Provenance(unit=unit.name, file=unit.declared_in),
                sum=decl.sum or None,
                indirect=decl.indirect,
                dev_dependency=decl.dev_dependency,
            )
            if decl.sum:
                self._insert_sums(ctx, [((decl.path, requirement.raw_version), decl.sum)])
            declared.append(requirement)

        unit_map = {}
        for requirement in declared + from_files:
            ctx.accumulate_requirement(unit, unit_map, requirement)
        ctx.unit_requirements.append((unit, unit_map))
        logger.debug("Unit %s contributes %d module paths", unit.name, len(unit_map))

    def _load_from_file(self, ctx: ResolutionContext, unit: ConfigurationUnit,
                        from_file: FromFile) -> List[Requirement]:
        if bool(from_file.go_mod) == bool(from_file.go_work):
            raise ConfigurationError(
                f'"from_file" in unit "{unit.name}" must have either go_mod or go_work, but not both.'
            )

        requirements: List[Requirement] = []
        manifests: List[Tuple[str, bool, Optional[str]]] = []
        if from_file.go_mod:
            manifests.append((from_file.go_mod, from_file.dev_dependency, None))
        else:
            if not unit.is_root:
                raise ConfigurationError(
                    f"from_file(go_work = '{from_file.go_work}') can only be used from the root unit, "
                    f"but '{unit.name}' is not the root unit."
                )
            workspace = load_go_work(from_file.go_work)
            # Workspace replacements also take part in resolution as requirements.
            for entry in workspace.replace_map.values():
                requirements.append(Requirement(
                    path=entry.to_path,
                    version=entry.version or "",
                    provenance=Provenance(unit=unit.name, file=workspace.path),
                    local_path=entry.local_path,
                ))
            self._insert_sums(ctx, load_sumfile(os.path.dirname(workspace.path),
                                                Constants.GO_WORK_SUM_FILE).items())
            ctx.merge_replacements(workspace.replace_map, workspace.path)
            manifests.extend((go_mod, False, workspace.path) for go_mod in workspace.go_mods)

        for go_mod_path, dev_dependency, workspace_path in manifests:
            manifest = load_go_mod(go_mod_path)
            provenance = Provenance(unit=unit.name, file=manifest.path, workspace=workspace_path)
            from_manifest = [
                Requirement(
                    path=require.path,
                    version=require.version,
                    provenance=provenance,
                    indirect=require.indirect,
                    dev_dependency=dev_dependency,
                )
                for require in manifest.require
            ]
            requirements.extend(from_manifest)

            if unit.is_root or self.config.isolated:
                ctx.merge_replacements(manifest.replace_map, manifest.path)
            else:
                # The unit itself provides this Go module, at its own version.
                ctx.register_external(manifest.module, unit)

            if from_manifest:
                self._insert_sums(ctx, load_sumfile(os.path.dirname(manifest.path),
                                                    Constants.GO_SUM_FILE).items())
        return requirements

    @staticmethod
    def _insert_sums(ctx: ResolutionContext, entries: Iterable) -> None:
        for key, checksum in entries:
            try:
                ctx.sums.insert(key, checksum)
            except IntegrityError as e:
                ctx.defer(e)

    # Selection

    def _select(self, ctx: ResolutionContext) -> None:
        """Pick the highest version of every path across all units."""
        for _, unit_map in ctx.unit_requirements:
            for path, requirement in unit_map.items():
                version = requirement.comparable
                current = ctx.resolutions.get(path)
                if current is None or version > current.version:
                    ctx.resolutions[path] = ResolvedModule(
                        path=path,
                        version=version,
                        raw_version=requirement.raw_version,
                        source=ModuleSource.FETCHED,
                        repo_name=repo_name(path),
                    )

    def _apply_replacements(self, ctx: ResolutionContext) -> None:
        """Swap in replace targets for resolved paths.

        A replace with a from_version only applies when it equals the
        resolved version.
        """
        for path, replace in ctx.replace_map.items():
            module = ctx.resolutions.get(path)
            if module is None:
                continue
            if replace.from_version is not None and module.version != Version.parse(replace.from_version):
                logger.debug("Ignoring replace of %s@%s: resolved %s",
                             path, replace.from_version, module.display_version)
                continue

            if replace.is_local:
                new_version, raw_version = Version.sentinel(), ""
            else:
                new_version, raw_version = Version.parse(replace.version), replace.version
            ctx.resolutions[path] = dataclasses.replace(
                module,
                version=new_version,
                raw_version=raw_version,
                source=ModuleSource.REPLACED,
                replace=None if replace.is_local or replace.to_path == path else replace.to_path,
                local_path=replace.local_path,
            )

            if path in ctx.root_versions:
                if replace.is_local or replace.to_path != path:
                    # Comparing against the original request is meaningless now.
                    ctx.root_versions.pop(path)
                else:
                    ctx.root_versions[path] = raw_version

    def _apply_external_providers(self, ctx: ResolutionContext) -> None:
        """Prefer modules provided by other units when they are recent enough."""
        for path, provider in ctx.external.items():
            # Overrides and replacements cannot apply to an externally provided module.
            if ctx.overrides.targets(path) or path in ctx.replace_map:
                continue

            module = ctx.resolutions.get(path)
            if module is not None and provider.version < module.version:
                ctx.report(StalenessWarning(
                    f'Go module "{path}" is provided by unit "{provider.unit}" in version '
                    f"{humanize_version(provider.raw_version)}, but requested at higher version "
                    f"{module.display_version} via Go requirements.",
                    location=path,
                    remediation=f'Consider updating "{provider.unit}" so that it provides the Go module.',
                ), self.config.check_direct_dependencies)
                continue

            ctx.resolutions[path] = ResolvedModule(
                path=path,
                version=provider.version,
                raw_version=provider.raw_version,
                source=ModuleSource.EXTERNAL,
                repo_name=provider.repo_name,
                provider=provider.unit,
            )

    # Checks

    def _check_root_staleness(self, ctx: ResolutionContext) -> None:
        """Report direct root requirements that resolved to a higher version."""
        for path, requested in ctx.root_versions.items():
            module = ctx.resolutions.get(path)
            if module is None or module.version.is_sentinel:
                continue
            if Version.parse(requested) < module.version:
                ctx.report(StalenessWarning(
                    f'For Go module "{path}", the root unit requires module version '
                    f"{humanize_version(requested)}, but got {module.display_version} "
                    "in the resolved dependency graph.",
                    location=path,
                    remediation="Update the root requirement to the resolved version.",
                ), self.config.check_direct_dependencies)

    def _layer_overrides(self, ctx: ResolutionContext) -> None:
        for path, module in ctx.resolutions.items():
            if module.source is ModuleSource.EXTERNAL:
                continue
            module.build = ctx.overrides.get(OverrideKind.BUILD_DIRECTIVE, path)
            patch = ctx.overrides.get(OverrideKind.PATCH, path)
            if patch is not None:
                module.patches = list(patch.patches)
                module.patch_strip = patch.patch_strip
            archive = ctx.overrides.get(OverrideKind.ARCHIVE, path)
            if archive is not None:
                module.archive = archive
                module.patches = list(archive.patches)
                module.patch_strip = archive.patch_strip

    def _check_overrides(self, ctx: ResolutionContext) -> None:
        for error in ctx.overrides.unmatched(ctx.resolutions):
            ctx.defer(error)

    def _resolve_checksums(self, ctx: ResolutionContext) -> None:
        """Attach checksums to every module that will be fetched."""
        for path, module in ctx.resolutions.items():
            if module.source is ModuleSource.EXTERNAL or module.archive is not None or module.local_path:
                continue
            try:
                module.sum = ctx.sums.require(module.replace or path, module.raw_version, path)
            except IntegrityError as e:
                ctx.defer(e)
