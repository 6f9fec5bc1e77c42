"""Checksum accumulation across go.sum, go.work.sum and module declarations."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from errors import IntegrityError

SumKey = Tuple[str, str]


class SumStore:
    """Map of (module path, canonical version) to checksum with unique keys."""

    def __init__(self):
        self._sums: Dict[SumKey, str] = {}

    def insert(self, key: SumKey, checksum: str) -> None:
        """Insert a checksum; re-inserting the same value is a no-op.

        Raises:
            IntegrityError: a different checksum is already recorded for key.
        """
        existing = self._sums.get(key)
        if existing is not None and existing != checksum:
            raise IntegrityError(
                f"Multiple mismatching sums for {key[0]}@{key[1]} found. {checksum} vs {existing}",
                location=key[0],
                remediation="The checksum files disagree; regenerate them with 'go mod tidy'.",
            )
        self._sums[key] = checksum

    def get(self, path: str, raw_version: str) -> Optional[str]:
        return self._sums.get((path, raw_version))

    def require(self, path: str, raw_version: str, module_path: Optional[str] = None) -> str:
        """Return the checksum for (path, raw_version) or fail.

        Args:
            path: Effective path (after replace) used as the lookup key.
            raw_version: Canonical version.
            module_path: The requested module path, for the error message.

        Raises:
            IntegrityError: no checksum is recorded.
        """
        checksum = self._sums.get((path, raw_version))
        if checksum is None:
            name = module_path or path
            raise IntegrityError(
                f"No sum for {name}@{raw_version} found",
                location=name,
                remediation="The checksum data is stale; run 'go mod tidy' and retry.",
            )
        return checksum

    def __contains__(self, key: SumKey) -> bool:
        return key in self._sums

    def __len__(self) -> int:
        return len(self._sums)
