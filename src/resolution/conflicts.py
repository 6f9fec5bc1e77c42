"""Classification of differing requirements for one path within a single unit."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from errors import ConflictError
from versioning.models import Requirement


class ConflictKind(Enum):
    """Which remediation applies to a version conflict."""
    MANUAL_FIX = "manual-fix"
    RESYNC_MANIFEST = "resync-manifest"
    RESYNC_WORKSPACE = "resync-workspace"


_REMEDIATION = {
    ConflictKind.MANUAL_FIX: (
        "To correct this:\n"
        " 1. manually update all go.mod files so the versions of '{path}' are the same.\n"
        " 2. in each folder where you made changes, run: go mod tidy\n"
        " 3. run: go work sync"
    ),
    ConflictKind.RESYNC_MANIFEST: (
        "To correct this, resync from the source manifest:\n"
        " 1. update the go.mod that requires '{path}' indirectly.\n"
        " 2. in its folder, run: go mod tidy"
    ),
    ConflictKind.RESYNC_WORKSPACE: (
        "To correct this, resync the workspace:\n"
        " 1. run: go work sync"
    ),
}


def classify_conflict(previous: Requirement, current: Requirement) -> ConflictKind:
    """Pick the remediation for two differing requirements of the same path.

    Workspace provenance or a major version change can only be fixed by hand;
    otherwise an indirect requirement points at a stale manifest, and two
    direct declarations at a stale workspace sync.
    """
    if (
        previous.provenance.traces_to_workspace
        or current.provenance.traces_to_workspace
        or previous.comparable.major != current.comparable.major
    ):
        return ConflictKind.MANUAL_FIX
    if previous.indirect or current.indirect:
        return ConflictKind.RESYNC_MANIFEST
    return ConflictKind.RESYNC_WORKSPACE


def check_version_conflict(previous: Optional[Requirement], current: Requirement) -> Optional[ConflictError]:
    """Return a ConflictError when current disagrees with previous, else None."""
    if previous is None or previous.comparable == current.comparable:
        return None

    kind = classify_conflict(previous, current)
    message = (
        f"Multiple versions of {current.path} found:\n"
        f" - {current.provenance} contains: {current.comparable}\n"
        f" - {previous.provenance} contains: {previous.comparable}."
    )
    error = ConflictError(message, location=current.path, remediation=_REMEDIATION[kind].format(path=current.path))
    error.conflict_kind = kind
    return error
