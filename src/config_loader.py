"""Load an evaluation configuration from a YAML or JSON file.

The file is validated against a Draft-07 JSON Schema before it is turned
into an EvaluationConfig. Relative go_mod/go_work paths resolve against the
directory that holds the configuration file.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

import yaml
from jsonschema import Draft7Validator

from constants import Constants, Strictness
from errors import ConfigurationError
from resolution.units import ConfigurationUnit, EvaluationConfig, FromFile, ModuleDeclaration
from versioning.models import ArchiveOverride, BuildDirectiveOverride, PatchOverride

logger = logging.getLogger(__name__)

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "required": ["units"],
    "properties": {
        "check_direct_dependencies": {"enum": Constants.STRICTNESS_LEVELS},
        "version_conflicts": {"enum": Constants.STRICTNESS_LEVELS},
        "isolated": {"type": "boolean"},
        "units": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": ["name"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "version": {"type": "string"},
                    "root": {"type": "boolean"},
                    "from_file": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "additionalProperties": False,
                            "properties": {
                                "go_mod": {"type": "string"},
                                "go_work": {"type": "string"},
                                "dev_dependency": {"type": "boolean"},
                            },
                        },
                    },
                    "module": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "additionalProperties": False,
                            "required": ["path", "version"],
                            "properties": {
                                "path": {"type": "string", "minLength": 1},
                                "version": {"type": "string", "minLength": 1},
                                "sum": {"type": "string"},
                                "indirect": {"type": "boolean"},
                                "dev_dependency": {"type": "boolean"},
                            },
                        },
                    },
                    "archive_override": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "additionalProperties": False,
                            "required": ["path"],
                            "properties": {
                                "path": {"type": "string", "minLength": 1},
                                "urls": _STRING_LIST,
                                "sha256": {"type": "string"},
                                "strip_prefix": {"type": "string"},
                                "patches": _STRING_LIST,
                                "patch_strip": {"type": "integer", "minimum": 0},
                            },
                        },
                    },
                    "build_override": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "additionalProperties": False,
                            "required": ["path"],
                            "properties": {
                                "path": {"type": "string", "minLength": 1},
                                "directives": _STRING_LIST,
                                "build_file_generation": {"enum": ["auto", "on", "off"]},
                                "build_extra_args": _STRING_LIST,
                            },
                        },
                    },
                    "patch_override": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "additionalProperties": False,
                            "required": ["path"],
                            "properties": {
                                "path": {"type": "string", "minLength": 1},
                                "patches": _STRING_LIST,
                                "patch_strip": {"type": "integer", "minimum": 0},
                            },
                        },
                    },
                },
            },
        },
    },
}


def validate_config(data: Any) -> None:
    """Validate raw configuration data; raise on the first problem.

    Raises:
        ConfigurationError: data does not match CONFIG_SCHEMA.
    """
    validator = Draft7Validator(CONFIG_SCHEMA)
    errs = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errs:
        first = errs[0]
        path = "/".join([str(p) for p in first.path])
        raise ConfigurationError(f"Invalid configuration at '{path}': {first.message}")


def _resolve(base_dir: str, value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value if os.path.isabs(value) else os.path.normpath(os.path.join(base_dir, value))


def _build_unit(raw: Dict[str, Any], base_dir: str, declared_in: str) -> ConfigurationUnit:
    return ConfigurationUnit(
        name=raw["name"],
        version=raw.get("version", ""),
        is_root=bool(raw.get("root", False)),
        from_file=[
            FromFile(
                go_mod=_resolve(base_dir, ff.get("go_mod")),
                go_work=_resolve(base_dir, ff.get("go_work")),
                dev_dependency=bool(ff.get("dev_dependency", False)),
            )
            for ff in raw.get("from_file", [])
        ],
        module=[
            ModuleDeclaration(
                path=m["path"],
                version=m["version"],
                sum=m.get("sum", ""),
                indirect=bool(m.get("indirect", False)),
                dev_dependency=bool(m.get("dev_dependency", False)),
            )
            for m in raw.get("module", [])
        ],
        archive_override=[
            ArchiveOverride(
                path=o["path"],
                urls=list(o.get("urls", [])),
                sha256=o.get("sha256", ""),
                strip_prefix=o.get("strip_prefix", ""),
                patches=list(o.get("patches", [])),
                patch_strip=int(o.get("patch_strip", 0)),
            )
            for o in raw.get("archive_override", [])
        ],
        build_override=[
            BuildDirectiveOverride(
                path=o["path"],
                directives=list(o.get("directives", [])),
                build_file_generation=o.get("build_file_generation", "auto"),
                build_extra_args=list(o.get("build_extra_args", [])),
            )
            for o in raw.get("build_override", [])
        ],
        patch_override=[
            PatchOverride(
                path=o["path"],
                patches=list(o.get("patches", [])),
                patch_strip=int(o.get("patch_strip", 0)),
            )
            for o in raw.get("patch_override", [])
        ],
        declared_in=declared_in,
    )


def config_from_dict(data: Dict[str, Any], base_dir: str = ".", declared_in: str = Constants.ROOT_DECLARATION_FILE) -> EvaluationConfig:
    """Validate data and build an EvaluationConfig from it."""
    validate_config(data)
    return EvaluationConfig(
        units=[_build_unit(u, base_dir, declared_in) for u in data["units"]],
        check_direct_dependencies=Strictness(
            data.get("check_direct_dependencies", Constants.DEFAULT_CHECK_DIRECT_DEPENDENCIES.value)
        ),
        version_conflicts=Strictness(data.get("version_conflicts", Constants.DEFAULT_VERSION_CONFLICTS.value)),
        isolated=bool(data.get("isolated", False)),
    )


def load_config(path: str) -> EvaluationConfig:
    """Load a YAML (.yml/.yaml) or JSON (.json) configuration file.

    Raises:
        ConfigurationError: the file is unreadable, not UTF-8, malformed or invalid.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except OSError as e:
        raise ConfigurationError(f"cannot read configuration: {e}", location=path) from e
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"configuration is not valid UTF-8: {e}", location=path) from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"cannot parse configuration: {e}", location=path) from e

    if data is None:
        data = {}
    logger.debug("Loaded configuration from %s", path)
    return config_from_dict(data, base_dir=os.path.dirname(os.path.abspath(path)), declared_in=path)
