"""
structlog setup shared by the server and the CLI.

Stdlib loggers (ours, uvicorn, engineio/socketio, httpx) all render through
one ``ProcessorFormatter``, so socket session ids and HTTP request ids bound
as contextvars appear on every line emitted while handling that event.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog

QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "engineio.server", "socketio.server")


def setup_logging(
    log_level: str = "INFO",
    json_logs: Optional[bool] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Install the root handler.

    Args:
        log_level: Level name; unknown names fall back to INFO.
        json_logs: Force JSON lines on/off. Defaults to JSON unless DEBUG.
        stream: Destination, stdout by default. The CLI passes stderr so
            replies and log lines do not interleave.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    if json_logs is None:
        json_logs = level != logging.DEBUG

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        pre_chain.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream is None)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_session(sid: str) -> None:
    """Tag log lines from the current socket event with its session id."""
    structlog.contextvars.bind_contextvars(sid=sid)


def bind_request(request_id: str) -> None:
    """Start a fresh log context for one HTTP request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
