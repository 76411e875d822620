from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

_LOGGING_CONFIGURED = False


def setup_logging(filename: str | Path | None = None, *, level: int = logging.INFO) -> structlog.BoundLogger:
    """Set up structured logging for the stagen package.

    The first call wins: later calls return the already configured logger,
    except that a non-empty ``filename`` always redirects output to that file.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        level: Minimum level that gets emitted.

    Returns:
        A structlog logger instance configured for the stagen package.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if not _LOGGING_CONFIGURED or filename:
        handler: logging.Handler
        if filename:
            handler = logging.FileHandler(str(filename), encoding="utf-8")
        else:
            handler = logging.StreamHandler(sys.stderr)

        logging.basicConfig(
            level=level,
            handlers=[handler],
            format="%(message)s",
            force=True,
        )
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )
        _LOGGING_CONFIGURED = True

    return structlog.get_logger("stagen")


logger = setup_logging()
