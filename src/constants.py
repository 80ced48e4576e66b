"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    LINK_ERROR = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEPENDENCY_FILENAME = "ry.deps"
    DEPENDENCY_LOCK_FILENAME = "ry.deps.lock"
    DEFAULT_GROUP_ID = "org.reaktivity"
    DEFAULT_REPOSITORY = "https://repo1.maven.org/maven2/"

    PROPERTY_REPOSITORIES = "repositories"
    PROPERTY_IMPORTS = "imports"
    PROPERTY_DEPENDENCIES = "dependencies"

    DEFAULT_CONFIG_DIR = "."
    DEFAULT_OUTPUT_DIR = ".ry"
    DEFAULT_LAUNCHER_DIR = "."
    CACHE_DIRNAME = "cache"
    MODULES_DIRNAME = "modules"
    GENERATED_DIRNAME = "generated"
    IMAGE_DIRNAME = "image"
    LAUNCHER_FILENAME = "ry"
    WRAPPER_FILENAME = "rymw"

    DELEGATE_MODULE_NAME = "__delegate__"
    MODULE_INFO_CLASS = "module-info.class"
    MODULE_INFO_SOURCE = "module-info.java"
    MANIFEST_ENTRY = "META-INF/MANIFEST.MF"
    SERVICES_PREFIX = "META-INF/services/"
    VERSIONS_PREFIX = "META-INF/versions/"
    # 1980-02-01T00:00:00, i.e. 318240000000 ms; zip timestamps start at 1980
    PINNED_ENTRY_TIME = (1980, 2, 1, 0, 0, 0)

    LAUNCHER_MAIN = "org.reaktivity.ry/org.reaktivity.ry.internal.RyMain"
    JLINK_OPTIONS = [
        "--no-header-files",
        "--no-man-pages",
        "--strip-debug",
        "--compress",
        "2",
    ]

    WRAPPER_VERSION = "develop-SNAPSHOT"
    WRAPPER_LOCAL_REPOSITORY = "$HOME/.m2/repository"
    WRAPPER_DIRNAME = "wrapper"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "RYM_LOG_LEVEL"
    ENV_SETTINGS = "RYM_SETTINGS"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
