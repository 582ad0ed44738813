"""structlog setup for applications embedding the HubSpot client.

Library modules only call structlog.get_logger(__name__). Where events end
up (which renderer, which streams) is decided once by the host application
through configure_logging(). Clients built with LOGGING_ENABLED=False get
null_logger() and emit nothing.
"""

import logging
import sys
from typing import IO, Any, Iterable

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

APP_NAME = "hubspot-client"

# Loggers whose INFO chatter would drown the client's own events
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag every event with the emitting application."""
    event_dict["app"] = APP_NAME
    return event_dict


def _select_renderer(environment: str) -> tuple[Processor, list[Processor]]:
    """Renderer plus any extra pre-render processors for an environment."""
    if environment.lower() == "production":
        return structlog.processors.JSONRenderer(), [structlog.processors.format_exc_info]
    return structlog.dev.ConsoleRenderer(colors=False), []


def _sink_handler(stream: IO[str], formatter: logging.Formatter, level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    outputs: Iterable[IO[str]] | None = None,
) -> None:
    """Route client log events to one or more streams.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: "production" renders one JSON object per line;
            anything else renders key=value console lines
        outputs: Streams (sinks) that each receive every event; stdout when omitted

    Replaces any handlers already on the root logger.
    """
    level = logging.getLevelNamesMapping().get(log_level.upper(), logging.INFO)
    renderer, extra_processors = _select_renderer(environment)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        *extra_processors,
    ]

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=processors,
    )

    sinks = list(outputs) if outputs else [sys.stdout]
    root = logging.getLogger()
    root.handlers.clear()
    for stream in sinks:
        root.addHandler(_sink_handler(stream, formatter, level))
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        sinks=len(sinks),
    )


def null_logger() -> Any:
    """Logger that drops every event."""
    return structlog.wrap_logger(
        structlog.ReturnLogger(),
        processors=[_drop_event],
        wrapper_class=structlog.BoundLogger,
    )


def _drop_event(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    raise structlog.DropEvent
