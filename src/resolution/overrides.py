"""Registry of archive, build directive and patch overrides keyed by module path."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional

from constants import BuildFileGeneration, Constants
from errors import ConfigurationError
from versioning.models import (
    ArchiveOverride,
    BuildDirectiveOverride,
    Override,
    OverrideKind,
    PatchOverride,
)
from .units import ConfigurationUnit

logger = logging.getLogger(__name__)

_FORBIDDEN_OVERRIDE = (
    'Using the "{kind}" declaration in a non-root configuration unit is forbidden, '
    'but unit "{unit}" requests it.'
)

# Kinds that may not target the same path as each other.
_EXCLUSIVE_WITH = {
    OverrideKind.ARCHIVE: OverrideKind.PATCH,
    OverrideKind.PATCH: OverrideKind.ARCHIVE,
    OverrideKind.BUILD_DIRECTIVE: None,
}

# Registration order: build directives, then patches, then archives.
_REGISTRATION_ORDER = (OverrideKind.BUILD_DIRECTIVE, OverrideKind.PATCH, OverrideKind.ARCHIVE)


def check_directive(directive: str) -> None:
    """Directives must look like 'gazelle:key value'."""
    prefix = Constants.DIRECTIVE_PREFIX
    if directive.startswith(prefix) and " " in directive and not directive[len(prefix):][0].isspace():
        return
    raise ConfigurationError(
        f'Invalid build directive: "{directive}". '
        f'Directives must be of the form "{prefix}key value".'
    )


def _validate_archive(override: ArchiveOverride) -> None:
    if override.patch_strip < 0:
        raise ConfigurationError("patch_strip must not be negative", location=override.path)


def _validate_build_directive(override: BuildDirectiveOverride) -> None:
    for directive in override.directives:
        check_directive(directive)
    allowed = [g.value for g in BuildFileGeneration]
    if override.build_file_generation not in allowed:
        raise ConfigurationError(
            f"build_file_generation must be one of {', '.join(allowed)}, "
            f"not '{override.build_file_generation}'",
            location=override.path,
        )


def _validate_patch(override: PatchOverride) -> None:
    if override.patch_strip < 0:
        raise ConfigurationError("patch_strip must not be negative", location=override.path)


_VALIDATORS: Dict[OverrideKind, Callable] = {
    OverrideKind.ARCHIVE: _validate_archive,
    OverrideKind.BUILD_DIRECTIVE: _validate_build_directive,
    OverrideKind.PATCH: _validate_patch,
}


class OverrideRegistry:
    """Three independently-keyed override maps."""

    def __init__(self):
        self._maps: Dict[OverrideKind, Dict[str, Override]] = {kind: {} for kind in OverrideKind}

    def register_unit(self, unit: ConfigurationUnit, isolated: bool = False) -> None:
        """Validate and add every override a unit declares.

        Raises:
            ConfigurationError: non-root usage, duplicate path, or a path
                claimed by both an archive and a patch override.
        """
        if not unit.is_root and not isolated:
            for kind in OverrideKind:
                if unit.overrides_of(kind):
                    raise ConfigurationError(
                        _FORBIDDEN_OVERRIDE.format(kind=kind.value, unit=unit.name),
                        remediation="Declare the override in the root configuration unit instead.",
                    )
            return

        for kind in _REGISTRATION_ORDER:
            for override in unit.overrides_of(kind):
                self.add(override, unit.name)

    def add(self, override: Override, unit_name: str) -> None:
        kind = override.kind
        self._fail_on_duplicate(override.path, unit_name, self._maps[kind])
        exclusive = _EXCLUSIVE_WITH[kind]
        if exclusive is not None:
            self._fail_on_duplicate(override.path, unit_name, self._maps[exclusive])
        _VALIDATORS[kind](override)
        self._maps[kind][override.path] = override
        logger.debug("Registered %s for %s from unit %s", kind.value, override.path, unit_name)

    @staticmethod
    def _fail_on_duplicate(path: str, unit_name: str, overrides: Dict[str, Override]) -> None:
        if path in overrides:
            raise ConfigurationError(
                f'Multiple overrides defined for Go module path "{path}" in unit "{unit_name}".',
                location=path,
            )

    def get(self, kind: OverrideKind, path: str) -> Optional[Override]:
        return self._maps[kind].get(path)

    def targets(self, path: str) -> bool:
        """True when any kind of override names path."""
        return any(path in overrides for overrides in self._maps.values())

    def keys(self, kind: OverrideKind) -> List[str]:
        return list(self._maps[kind])

    def unmatched(self, resolved_paths: Iterable[str]) -> List[ConfigurationError]:
        """Return one batched error per kind whose keys miss the resolved table."""
        resolved = set(resolved_paths)
        errors = []
        for kind in OverrideKind:
            missing = [path for path in self._maps[kind] if path not in resolved]
            if missing:
                errors.append(ConfigurationError(
                    f"Some {kind.value}s did not target a Go module with a matching path: {', '.join(missing)}",
                    location=", ".join(missing),
                    remediation="Remove the override or add a requirement for the module.",
                ))
        return errors
