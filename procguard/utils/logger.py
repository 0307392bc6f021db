"""Structured logging for procguard using structlog."""

import logging
import os

import structlog
from structlog.types import FilteringBoundLogger

_TRUTHY = ("true", "1", "yes", "on")


def configure_structlog(
    log_format: str | None = None,
    log_colors: bool | None = None,
    level: str | int | None = None,
) -> None:
    """Configure structlog with pretty or JSON output.

    Routes stdlib logging through structlog's ProcessorFormatter so records
    from procguard and from the host application share one renderer.
    Arguments left as None come from the global ``settings``: the attached
    config manager, then PROCGUARD_LOG_* variables, then the defaults.
    """
    if log_format is None or log_colors is None or level is None:
        # config imports this module; resolve lazily
        from procguard.config.settings import settings

        if log_format is None:
            log_format = settings.log_format
        if log_colors is None:
            log_colors = settings.log_colors
        if level is None:
            level = settings.log_level

    if log_format.lower() == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=log_colors)

    logging.root.handlers = []
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
            ],
        )
    )
    logging.root.addHandler(handler)
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.root.setLevel(level)

    logging.captureWarnings(True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# A library must not grab the root logger unless the host asks for it
if os.getenv("PROCGUARD_CONFIGURE_LOGGING", "").lower() in _TRUTHY:
    configure_structlog(
        log_format=os.getenv("PROCGUARD_LOG_FORMAT", "pretty"),
        log_colors=os.getenv("PROCGUARD_LOG_COLORS", "true").lower() in _TRUTHY,
        level=os.getenv("PROCGUARD_LOG_LEVEL", "INFO"),
    )


def get_logger(name: str, level: int | None = None) -> FilteringBoundLogger:
    """Get a structlog logger bound to the stdlib logger ``procguard.<name>``."""
    full_name = name if name.startswith("procguard") else f"procguard.{name}"
    if level is not None:
        logging.getLogger(full_name).setLevel(level)
    return structlog.get_logger(full_name)


logger = get_logger("procguard")
registry_logger = get_logger("procguard.registry")
env_logger = get_logger("procguard.environment")
