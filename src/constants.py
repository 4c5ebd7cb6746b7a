"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    DOWNLOAD_ERRORS = 3


class Scopes(Enum):
    """Dependency scopes understood by the resolver."""

    COMPILE = "compile"
    RUNTIME = "runtime"
    PROVIDED = "provided"
    TEST = "test"
    SYSTEM = "system"
    IMPORT = "import"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    CENTRAL_URL = "https://repo.maven.apache.org/maven2"
    CENTRAL_ID = "central"
    DEFAULT_LOCAL_REPOSITORY = "~/.m2/repository"
    ENV_LOCAL_REPOSITORY = "GOOFFLINE_LOCAL_REPOSITORY"
    ENV_LOG_LEVEL = "GOOFFLINE_LOG_LEVEL"

    # Scopes excluded from transitive traversal
    EXCLUDED_TRANSITIVE_SCOPES = (
        Scopes.SYSTEM.value,
        Scopes.TEST.value,
        Scopes.PROVIDED.value,
    )
    DEFAULT_SCOPE = Scopes.COMPILE.value
    DEFAULT_TYPE = "jar"
    PLUGIN_TYPE = "maven-plugin"
    BINARY_ARCHIVE_EXTENSION = "jar"
    SOURCES_CLASSIFIER = "sources"
    JAVADOC_CLASSIFIER = "javadoc"

    DEFAULT_MAX_WORKERS = 8
    DEFAULT_DOWNLOAD_BATCH_SIZE = 50

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    DOWNLOAD_CHUNK_SIZE = 64 * 1024
    USER_AGENT = "gooffline/0.1"
