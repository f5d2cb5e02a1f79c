"""Structured logging configuration for PersonaPass.

Environment variables:
    PP_LOG_FORMAT  -- ``json`` for one JSON object per line, ``text`` (default) otherwise.
    PP_LOG_LEVEL   -- Python log level name (default: ``INFO``).

Request-scoped fields passed through ``extra=`` (request_id, path, method,
status_code, duration_ms, client_ip, error_type) become top-level JSON keys.
Identifiers such as emails and addresses go through :func:`redact` first.
"""

from __future__ import annotations

import logging
import os

from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
JSON_FIELDS = ("asctime", "levelname", "name", "message")
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def redact(value: str | None, keep: int = 3) -> str:
    """Return the log-safe form of an identifier: its first ``keep`` chars + ``***``."""
    if not value:
        return "not provided"
    return value[:keep] + "***"


def _level_from_env() -> int:
    level = logging.getLevelName(os.environ.get("PP_LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


class StructuredJsonFormatter(JsonFormatter):
    """JSON formatter whose exception text is emitted as a ``traceback`` list."""

    def __init__(self) -> None:
        super().__init__(fmt=list(JSON_FIELDS), datefmt=DATE_FORMAT)

    def add_fields(self, log_data, record, message_dict) -> None:
        super().add_fields(log_data, record, message_dict)
        exc_text = log_data.pop("exc_info", None)
        if exc_text:
            log_data["traceback"] = exc_text.splitlines()


def setup_logging(log_format: str | None = None, level: int | None = None) -> None:
    """Install a single stderr handler on the root logger.

    Arguments left as None fall back to PP_LOG_FORMAT / PP_LOG_LEVEL.
    """
    log_format = (log_format or os.environ.get("PP_LOG_FORMAT", "text")).lower()
    level = _level_from_env() if level is None else level

    handler = logging.StreamHandler()
    handler.setLevel(level)
    if log_format == "json":
        handler.setFormatter(StructuredJsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, DATE_FORMAT))

    root = logging.getLogger()
    # Replace rather than append: uvicorn reloads and tests call this repeatedly.
    root.handlers[:] = [handler]
    root.setLevel(level)


def log_startup_info() -> None:
    """Emit one startup record carrying the effective service configuration."""
    import personapass
    from personapass.config import settings

    log = logging.getLogger("personapass")
    log.info(
        "PersonaPass backend started",
        extra={
            "version": personapass.__version__,
            "environment": settings.environment,
            "rate_limit_config": settings.rate_limit,
            "chain_rpc_url": settings.chain_rpc_url,
            "listen": f"{settings.host}:{settings.port}",
        },
    )
    if settings.is_production:
        log.info("Production mode active: error details are redacted from responses")
