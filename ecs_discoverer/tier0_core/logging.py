"""
ecs_discoverer.tier0_core.logging
──────────────────────────────────
Structured logs with levels, automatic context injection (request_id,
cluster, service), redaction, and stdout routing.

Minimal stack: structlog (console or JSON on stdout)
Configure via: ECS_DISCOVERER_LOG_LEVEL, ECS_DISCOVERER_LOG_FORMAT=console|json
"""
from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


# ── Configuration ─────────────────────────────────────────────────────────────

_handler: logging.Handler | None = None


def _configure_structlog(log_level: str, log_format: str) -> None:
    global _handler

    level = getattr(logging, log_level.upper(), logging.WARNING)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _redact_processor,
    ]

    if log_format.lower() == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    if _handler is not None:
        root_logger.removeHandler(_handler)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    _handler = handler

    # botocore is chatty at DEBUG; keep it out of the operator's output.
    for name in ("botocore", "boto3", "urllib3", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


# ── Redaction processor ───────────────────────────────────────────────────────

_REDACT_KEYS = frozenset({
    "password", "secret", "token", "authorization", "credential",
    "aws_access_key_id", "aws_secret_access_key", "aws_session_token",
    "access_key", "secret_key", "session_token",
})

_REDACTED = "[REDACTED]"


def _redact_processor(
    logger: Any, method: str, event_dict: dict
) -> dict:
    """Strip credential fields from log records before output."""
    for key in list(event_dict.keys()):
        if key.lower() in _REDACT_KEYS:
            event_dict[key] = _REDACTED
    return event_dict


# ── Public API ────────────────────────────────────────────────────────────────

_configured = False


def configure_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    (Re)configure logging for this process. Values default to the config.

    The CLI calls this once per invocation; ``--debug`` passes "DEBUG".
    """
    global _configured
    from ecs_discoverer.tier0_core.config import get_config

    cfg = get_config()
    _configure_structlog(log_level or cfg.log_level, log_format or cfg.log_format)
    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structured logger bound to the given name.

    Usage:
        log = get_logger(__name__)
        log.debug("task.excluded", container_instance_arn=arn, reason="is_self")
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger(name or __name__)


def bind_context(**kwargs: Any) -> None:
    """
    Bind key-value pairs to the current context.
    All subsequent log calls in this context will include these fields.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context-bound log fields. Call at the end of an invocation."""
    structlog.contextvars.clear_contextvars()


__all__ = ["configure_logging", "get_logger", "bind_context", "clear_context"]
