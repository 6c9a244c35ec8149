"""Structured logging configuration with JSON output and context injection."""

import contextvars
import logging
import logging.config
import os

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Context var for request ID (safe across asyncio tasks)
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default="no-request-id"
)


def get_request_id() -> str:
    """Get current request ID from context."""
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    """Set request ID for current context and bind it into every log line."""
    request_id_var.set(request_id)
    structlog.contextvars.bind_contextvars(request_id=request_id)


def bind_request_context(
    request_id: str, store_id: str | None = None, actor: str | None = None
) -> None:
    """
    Start a fresh log context for one request.

    Drops whatever the previous request on this task bound, then binds the
    request id and, when present, the tenant store and actor.
    """
    structlog.contextvars.clear_contextvars()
    set_request_id(request_id)
    tenant = {key: value for key, value in (("store_id", store_id), ("actor", actor)) if value}
    if tenant:
        structlog.contextvars.bind_contextvars(**tenant)


def configure_logging() -> None:
    """Configure structlog with JSON output for production."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib logging (uvicorn, sqlalchemy) through structlog's renderer
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": structlog.dev.ConsoleRenderer(),
                },
            },
            "handlers": {
                "default": {
                    "level": LOG_LEVEL,
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "": {
                    "handlers": ["default"],
                    "level": LOG_LEVEL,
                    "propagate": True,
                }
            },
        }
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structlog logger; request ID comes from the bound contextvars."""
    return structlog.get_logger(name).bind(logger=name)
