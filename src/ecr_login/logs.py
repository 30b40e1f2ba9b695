"""structlog setup.

stdout is reserved for the credential-helper protocol, so log output goes
to a file under the cache directory, or to stderr when asked.
"""

import logging
import sys

import structlog
from structlog.typing import Processor

from .config import HelperConfig, LogFormats


def setup_logging(config: HelperConfig) -> logging.Handler:
    """Configure structlog and attach a handler to the root logger.

    Returns:
        The handler that was installed
    """
    log_renderer: Processor
    if config.log_format == LogFormats.CONSOLE:
        log_renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        log_renderer = structlog.processors.JSONRenderer()

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.log_format == LogFormats.JSON:
        processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=processors  # type: ignore
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=processors,  # type: ignore
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            log_renderer,
        ],
    )

    handler: logging.Handler
    if config.log_to_stderr:
        handler = logging.StreamHandler(sys.stderr)
    else:
        try:
            config.log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(config.log_file)
        except OSError:
            # Unwritable log directory
            handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(config.log_level)

    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return handler


def remove_handler(handler: logging.Handler) -> None:
    """Detach and close a handler installed by ``setup_logging``."""
    logging.getLogger().removeHandler(handler)
    handler.close()


__all__ = ["setup_logging", "remove_handler"]
