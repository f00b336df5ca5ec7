"""
staplus_policy.observability.logging

Structured logging configuration for the service.

Responsibilities:
- Configure `structlog` once per process: JSON lines in deployed envs, a console
  renderer for local development.
- Stamp every event with the service name and environment.
- Provide bound loggers to every layer, the policy engine included.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(
    *, service_name: str, env: str, level: str, json_logs: bool = True
) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _static_fields(service=service_name, env=env),
            structlog.processors.dict_tracebacks,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _static_fields(**fields: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    # Lazy proxy: safe to call at import time, before configure_logging runs.
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# Guard denials are logged as `policy.denied`; owner amendments as `policy.owner_derived`.
# `principal` is bound per request by `auth.deps`, so both carry the caller.
