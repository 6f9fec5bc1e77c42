"""Assembly and export of the resolved module table."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Dict

from versioning.models import ModuleSource, ResolutionResult, ResolvedModule

if TYPE_CHECKING:
    from .context import ResolutionContext

logger = logging.getLogger(__name__)


def repo_name(importpath: str) -> str:
    """Derive a repository identifier: github.com/foo/bar -> com_github_foo_bar."""
    path_segments = importpath.split("/")
    segments = list(reversed(path_segments[0].split("."))) + path_segments[1:]
    candidate_name = "_".join(segments).replace("-", "_")
    return "".join(c.lower() if c.isalnum() else "_" for c in candidate_name)


def assemble_result(ctx: "ResolutionContext") -> ResolutionResult:
    """Build the final table and the root's direct dependency name sets.

    Modules provided by another unit are not fetched here, so their names are
    dropped from both sets. A module that is both a dev and a non-dev direct
    dependency is reported as non-dev only.
    """
    direct = dict(ctx.root_direct_deps)
    direct_dev = dict(ctx.root_direct_dev_deps)
    for module in ctx.resolutions.values():
        if module.source is ModuleSource.EXTERNAL:
            direct.pop(repo_name(module.path), None)
            direct_dev.pop(repo_name(module.path), None)

    return ResolutionResult(
        modules={path: ctx.resolutions[path] for path in sorted(ctx.resolutions)},
        root_direct_deps=sorted(direct),
        root_direct_dev_deps=sorted(name for name in direct_dev if name not in direct),
    )


def module_to_dict(module: ResolvedModule) -> Dict[str, Any]:
    """Serialize one table entry."""
    entry: Dict[str, Any] = {
        "path": module.path,
        "repo_name": module.repo_name,
        "source": module.source.value,
        "version": module.display_version if module.raw_version else None,
    }
    if module.source is ModuleSource.EXTERNAL:
        entry["provider"] = module.provider
        return entry

    if module.archive is not None:
        entry["archive"] = {
            "urls": list(module.archive.urls),
            "sha256": module.archive.sha256,
            "strip_prefix": module.archive.strip_prefix,
        }
    else:
        entry["sum"] = module.sum
        entry["replace"] = module.replace
    if module.local_path:
        entry["local_path"] = module.local_path
    if module.build is not None:
        entry["build_directives"] = list(module.build.directives)
        entry["build_file_generation"] = module.build.build_file_generation
        entry["build_extra_args"] = list(module.build.build_extra_args)
    if module.patches:
        entry["patches"] = list(module.patches)
        entry["patch_args"] = [f"-p{module.patch_strip}"]
    return entry


def result_to_dict(result: ResolutionResult) -> Dict[str, Any]:
    return {
        "modules": [module_to_dict(m) for m in result.modules.values()],
        "root_direct_deps": list(result.root_direct_deps),
        "root_direct_dev_deps": list(result.root_direct_dev_deps),
    }


def export_json(result: ResolutionResult, path: str) -> None:
    """Write the resolved table to a JSON file.

    Raises:
        OSError: the file cannot be written.
    """
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(result_to_dict(result), fh, ensure_ascii=False, indent=4)
    logger.info("JSON file has been successfully exported at: %s", path)
