"""Comparable Go module versions built on semantic_version."""

from __future__ import annotations

import functools
from typing import Optional

import semantic_version


class InvalidVersionError(ValueError):
    """Raised when a raw version string cannot be turned into a Version."""


def canonicalize_raw_version(raw_version: str) -> str:
    """Strip a leading 'v'; the stripped form is used for comparison and checksum keys."""
    if raw_version.startswith("v"):
        return raw_version[1:]
    return raw_version


def humanize_version(raw_version: str) -> str:
    """Return the display form of a canonical raw version ('1.2.3' -> 'v1.2.3')."""
    if not raw_version:
        return "(unversioned)"
    return raw_version if raw_version.startswith("v") else "v" + raw_version


@functools.total_ordering
class Version:
    """A comparable version.

    Strict versions must be valid semver once the leading 'v' is stripped
    (pseudo-versions such as 0.0.0-20220905092116-b49f7bc46da2 and
    +incompatible builds qualify). Relaxed versions are coerced, so registry
    versions like "1.2" or "1.2.3.bcr.1" still compare against strict ones.
    The sentinel compares greater than every real version.
    """

    __slots__ = ("raw", "_semver", "_is_sentinel")

    def __init__(self, raw: str, semver: Optional[semantic_version.Version], is_sentinel: bool = False):
        self.raw = raw
        self._semver = semver
        self._is_sentinel = is_sentinel

    @classmethod
    def parse(cls, raw_version: str, relaxed: bool = False) -> "Version":
        """Parse raw_version (with or without leading 'v')."""
        raw = canonicalize_raw_version(raw_version.strip())
        try:
            parsed = semantic_version.Version(raw)
        except ValueError as e:
            if not relaxed:
                raise InvalidVersionError(f"invalid version '{raw_version}': {e}") from e
            try:
                parsed = semantic_version.Version.coerce(raw)
            except ValueError as coerce_error:
                raise InvalidVersionError(f"invalid version '{raw_version}': {coerce_error}") from coerce_error
        return cls(raw, parsed)

    @classmethod
    def sentinel(cls) -> "Version":
        """Return the version that sorts above every real version."""
        return cls("", None, is_sentinel=True)

    @property
    def is_sentinel(self) -> bool:
        return self._is_sentinel

    @property
    def major(self) -> Optional[int]:
        """Major-version epoch; None for the sentinel."""
        return None if self._semver is None else self._semver.major

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        if self._is_sentinel or other._is_sentinel:
            return self._is_sentinel and other._is_sentinel
        return self._semver == other._semver

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        if self._is_sentinel:
            return False
        if other._is_sentinel:
            return True
        return self._semver < other._semver

    def __hash__(self) -> int:
        if self._semver is None:
            return hash(None)
        sv = self._semver
        return hash((sv.major, sv.minor, sv.patch, tuple(sv.prerelease or ())))

    def __str__(self) -> str:
        return humanize_version(self.raw)

    def __repr__(self) -> str:
        if self._is_sentinel:
            return "Version(<sentinel>)"
        return f"Version({self.raw!r})"
