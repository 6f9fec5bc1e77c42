"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    RESOLUTION_ERROR = 2
    EXIT_WARNINGS = 3


class Strictness(Enum):
    """How a non-fatal-by-default diagnostic is reported.

    Args:
        Enum (string): Reporting levels accepted in configuration.
    """

    OFF = "off"
    WARNING = "warning"
    ERROR = "error"


class BuildFileGeneration(Enum):
    """Values accepted by a build directive override."""

    AUTO = "auto"
    ON = "on"
    OFF = "off"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    GO_MOD_FILE = "go.mod"
    GO_SUM_FILE = "go.sum"
    GO_WORK_FILE = "go.work"
    GO_WORK_SUM_FILE = "go.work.sum"

    # "As of the Go 1.17 release, if the go directive is missing, go 1.16 is assumed."
    DEFAULT_GO_VERSION = "1.16"
    # go.mod files only list every transitive dependency as of Go 1.17.
    MIN_GO_VERSION = (1, 17)

    GO_MOD_DIRECTIVES = ["module", "go", "require", "replace", "exclude", "retract", "toolchain"]
    GO_WORK_DIRECTIVES = ["go", "use", "replace", "toolchain"]
    INDIRECT_COMMENT = "indirect"
    GO_MOD_SUM_SUFFIX = "/go.mod"
    REPLACE_ARROW = "=>"

    DIRECTIVE_PREFIX = "gazelle:"
    ROOT_DECLARATION_FILE = "MODULE.bazel"

    STRICTNESS_LEVELS = [level.value for level in Strictness]
    DEFAULT_CHECK_DIRECT_DEPENDENCIES = Strictness.WARNING
    DEFAULT_VERSION_CONFLICTS = Strictness.ERROR

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
