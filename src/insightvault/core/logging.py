"""Logging configuration for InsightVault."""

import logging
import logging.handlers
import sys
from typing import List, Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler
from structlog.types import Processor

from insightvault.core.config import Settings, settings as default_settings

NOISY_LOGGERS = ("pymongo", "motor", "httpx", "uvicorn.access")


def _processors(json_output: bool, cli_mode: bool) -> List[Processor]:
    if cli_mode:
        # Terse output for commands: event first, no timestamps
        return [
            structlog.stdlib.filter_by_level,
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ]
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=True)
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _console_handler(app_settings: Settings, production: bool, cli_mode: bool) -> logging.Handler:
    if production:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(app_settings.logging.format))
        return handler
    return RichHandler(
        console=Console(stderr=True),
        show_time=not cli_mode,
        show_path=not cli_mode,
        markup=False,
        rich_tracebacks=True,
    )


def setup_logging(app_settings: Optional[Settings] = None, cli_mode: bool = False) -> None:
    """Route structlog through stdlib logging with rich or JSON output.

    Production gets JSON events on stdout; everything else gets a rich
    console on stderr. Commands run with ``cli_mode`` only show warnings.
    """
    app_settings = app_settings or default_settings
    production = app_settings.is_production()

    structlog.configure(
        processors=_processors(json_output=production, cli_mode=cli_mode),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if cli_mode:
        level = logging.WARNING
    else:
        level = logging.getLevelName(app_settings.logging.level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handlers = [_console_handler(app_settings, production, cli_mode)]
    if app_settings.logging.file:
        file_handler = logging.handlers.RotatingFileHandler(
            app_settings.logging.file,
            maxBytes=app_settings.logging.max_file_size,
            backupCount=app_settings.logging.backup_count,
        )
        file_handler.setFormatter(logging.Formatter(app_settings.logging.format))
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
