"""structlog configuration shared by the CLI and the API server.

One processor chain (context vars, level, stack info, ISO timestamps)
feeds either a coloured console renderer or a JSON renderer.  JSON is
chosen when ``json_output`` is set or ``APP_ENV`` is ``"production"``.

Standard-library logging (httpx, openai, uvicorn) is routed through the
same chain so every line looks alike.
"""

import logging
import os
import sys

import structlog

# Chatty third-party loggers that log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output regardless of ``APP_ENV``.

    Returns:
        A configured structlog BoundLogger.
    """
    level_name = log_level.upper()
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level_name)),
        context_class=dict,
        # stderr keeps CLI stdout clean for command output
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level_name)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root_logger.level))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
