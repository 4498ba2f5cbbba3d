import logging
import sys

import structlog

LOG_LEVELS: "tuple[str, ...]" = ("debug", "info", "warning", "error")
LOG_FORMATS: "tuple[str, ...]" = ("console", "json")


def _renderer(fmt: "str") -> "structlog.typing.Processor":
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(level: "str", fmt: "str" = "console") -> "None":
    """
    routes structlog through the logging module at the given level.
    Everything goes to stderr so stdout only carries the report,
    rendered for humans ("console") or as one JSON object per line
    ("json").
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        stream=sys.stderr,
        force=True,
    )

    processors: "list[structlog.typing.Processor]" = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if fmt == "json":
        processors.append(structlog.processors.format_exc_info)
    processors.append(_renderer(fmt))

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
