"""Logging configuration for tidydraws.

Library modules log through ``structlog.get_logger()`` and never configure
logging themselves. Events are keyed by what happened to the draws, e.g.
``request_matched`` (one per variable request), ``draws_reshaped``,
``levels_compared`` and the ``degenerate_mode_estimate`` warning.

Applications (and the CLI) call setup_logging() once.
"""

import logging
import sys
from pathlib import Path

import structlog

# Third-party loggers that flood DEBUG output while figures are drawn
NOISY_LOGGERS = ("matplotlib", "PIL", "fontTools")


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        )
    )
    return handler


def _json_file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer())
    )
    return handler


def setup_logging(
    verbose: bool = False,
    log_file: Path | str | None = None,
) -> None:
    """Route structlog events to stderr and, optionally, a JSON file.

    Args:
        verbose: Show DEBUG events on the console (per-request match counts,
            join and group sizes). Otherwise only warnings, such as a mode
            estimate falling back to the median, are shown.
        log_file: Path of a JSON-lines log receiving every DEBUG event.

    Matplotlib, Pillow and fontTools stay at WARNING either way.

    Example:
        >>> setup_logging(verbose=True)
        >>> setup_logging(log_file="logs/tidydraws.log.json")
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)

    structlog.configure(
        processors=_shared_processors(),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root.addHandler(_console_handler(logging.DEBUG if verbose else logging.WARNING))
    if log_file is not None:
        root.addHandler(_json_file_handler(Path(log_file)))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
