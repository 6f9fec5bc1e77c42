"""Parser for go.sum and go.work.sum checksum files."""

from __future__ import annotations

import logging
import os
from typing import Dict, Tuple

from constants import Constants
from errors import ParseError
from versioning.semver import canonicalize_raw_version
from .tokenizer import read_source

logger = logging.getLogger(__name__)

SumKey = Tuple[str, str]


def parse_go_sum(content: str, path: str = Constants.GO_SUM_FILE) -> Dict[SumKey, str]:
    """Parse checksum lines of the form `path version hash`.

    Versions are canonicalized (leading 'v' dropped). Lines whose version
    ends in /go.mod hash only the manifest and are skipped.

    Returns:
        Dict mapping (module path, canonical version) to the checksum.
    """
    hashes: Dict[SumKey, str] = {}
    for line_no, line in enumerate(content.splitlines(), 1):
        fields = line.split()
        if not fields:
            continue
        if len(fields) != 3:
            raise ParseError(path, line_no, f"expected 'path version hash', got {len(fields)} fields")
        mod_path, version, checksum = fields
        version = canonicalize_raw_version(version)
        if version.endswith(Constants.GO_MOD_SUM_SUFFIX):
            continue
        hashes[(mod_path, version)] = checksum
    return hashes


def load_sumfile(directory: str, sumfile: str) -> Dict[SumKey, str]:
    """Read the checksum file named sumfile next to a manifest or workspace.

    A missing file yields no entries; modules that need a checksum are
    reported individually later.

    Raises:
        ConfigurationError: the file exists but cannot be read.
        ParseError: the file is malformed or not valid UTF-8.
    """
    sum_path = os.path.join(directory, sumfile)
    if not os.path.exists(sum_path):
        logger.debug("No %s found at %s", sumfile, sum_path)
        return {}
    return parse_go_sum(read_source(sum_path, "checksum file"), sum_path)
