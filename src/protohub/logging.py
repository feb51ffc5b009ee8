"""structlog setup shared by the API server and the CLI."""

import logging
import sys
from contextlib import AbstractContextManager

import structlog


def configure_logging(level: str, *, app_env: str = "dev") -> None:
    """Route stdlib and structlog records through one renderer.

    JSON lines when ``app_env`` is ``prod``, colored console output otherwise.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    renderer: structlog.types.Processor
    if app_env == "prod":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # deploy_target/deploy_source bound by log_context reach stdlib records here
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)


def log_context(**kwargs: object) -> AbstractContextManager[None]:
    """Bind context variables for the duration of a ``with`` block."""
    return structlog.contextvars.bound_contextvars(**kwargs)
