"""gooffline - fetch every artifact a reactor build needs so it can run offline.

    Returns:
        int: Exit code
"""
import logging
import sys

from args import parse_args
from build_model import StaticBuildModel
from common.exceptions import ConfigurationError
from common.logging_utils import configure_logging, extra_context
from config import OfflineConfig, load_config
from constants import ExitCodes
from repository.local import LocalRepository
from repository.maven_http import MavenHttpRepositoryClient
from resolution.orchestrator import OfflineResolver, RunResult
from resolution.selectors import LegacyCoreWagonSelector
from resolution.session import init_sessions

logger = logging.getLogger(__name__)


def build_resolver(config: OfflineConfig) -> OfflineResolver:
    """Wire the HTTP repository client and both sessions from ``config``."""
    client = MavenHttpRepositoryClient(LocalRepository(config.local_repository))
    sessions = init_sessions(
        client,
        config.repositories,
        config.plugin_repositories,
        plugin_filter=LegacyCoreWagonSelector(),
    )
    return OfflineResolver(
        sessions,
        download_sources=config.download_sources,
        download_javadoc=config.download_javadoc,
        max_workers=config.max_workers,
        download_batch_size=config.download_batch_size,
    )


def report(result: RunResult) -> None:
    """Log every recorded error as a warning, like the build tool would."""
    for error in result.errors:
        logger.warning("%s", error, extra=extra_context(event="report", outcome=error.kind.value))


def _setup_logging(args) -> None:
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    try:
        config = load_config(args.CONFIG)
        build_model = StaticBuildModel.from_data(config.reactor)
        resolver = build_resolver(config)
        result = resolver.run(build_model.modules(), config.dynamic_dependencies, build_model.workspace())
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return ExitCodes.FILE_ERROR.value

    report(result)
    if result.should_fail(config.fail_on_errors, config.strict_optional):
        logger.error("Unable to download dependencies, consult the errors and warnings printed above.")
        return ExitCodes.DOWNLOAD_ERRORS.value
    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
