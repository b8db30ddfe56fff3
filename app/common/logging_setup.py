# common/logging_setup.py
from __future__ import annotations

import logging
import os
import re
import sys
import uuid
from collections.abc import Iterable
from contextvars import ContextVar
from typing import Any

from pythonjsonlogger import jsonlogger

# ---------------------------
# Contexto propagado por request
# ---------------------------
correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="-")
app_env_ctx: ContextVar[str] = ContextVar("app_env", default="dev")

_SECRET_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(api[_-]?key\s*[=:]\s*)([A-Za-z0-9_\-]{6,})", re.IGNORECASE),
    re.compile(r"(token\s*[=:]\s*)([A-Za-z0-9_\-]{6,})", re.IGNORECASE),
    re.compile(r"(bearer\s+)([A-Za-z0-9\._\-]{6,})", re.IGNORECASE),
)


def get_correlation_id() -> str:
    """Retorna o correlation_id atual do contexto."""
    return correlation_id_ctx.get("-")


def set_correlation_id(value: str | None = None) -> str:
    """Define (ou gera) o correlation_id para o contexto atual e retorna o valor."""
    cid = value or str(uuid.uuid4())
    correlation_id_ctx.set(cid)
    return cid


def mask_secrets(msg: str) -> str:
    masked = msg
    for p in _SECRET_PATTERNS:
        masked = p.sub(r"\1***", masked)
    return masked


# ---------------------------
# Filtro de contexto + máscara
# ---------------------------
class ContextFilter(logging.Filter):
    def __init__(self, *, service: str, version: str, mask: bool = True) -> None:
        super().__init__()
        self.service = service
        self.version = version
        self.mask = mask

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_ctx.get("-")
        record.env = app_env_ctx.get()
        record.service = self.service
        record.version = self.version
        record.pid = os.getpid()
        record.thread_name = getattr(record, "threadName", "")

        # a chave da Printful nunca deve chegar ao log, nem via args
        if self.mask:
            if record.args:
                record.msg = record.getMessage()
                record.args = None
            if isinstance(record.msg, str):
                record.msg = mask_secrets(record.msg)
        return True


# ---------------------------
# Formatter JSON (UTC, ISO-8601)
# ---------------------------
class UtcJsonFormatter(jsonlogger.JsonFormatter):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("timestamp", True)
        kwargs.setdefault("json_ensure_ascii", False)
        kwargs.setdefault("rename_fields", {"levelname": "level", "message": "msg"})
        super().__init__(*args, **kwargs)


def _build_json_formatter() -> logging.Formatter:
    fmt = (
        "%(levelname)s %(name)s %(message)s "
        "%(correlation_id)s %(env)s %(service)s %(version)s %(pid)s %(thread_name)s"
    )
    return UtcJsonFormatter(fmt)


def _build_text_formatter() -> logging.Formatter:
    return logging.Formatter(
        "[%(asctime)s] %(levelname)s %(name)s %(env)s %(service)s:%(version)s "
        "(cid=%(correlation_id)s) %(message)s"
    )


# ---------------------------
# Setup principal
# ---------------------------
def setup_logging(
    *,
    level: int | str | None = None,
    json_console: bool | None = None,
    file_path: str | None = None,
    quiet_loggers: Iterable[str] = ("urllib3", "httpx"),
) -> None:
    """
    Configura logging global do gateway:
      - Console JSON por padrão (LOG_JSON=0 p/ texto)
      - Nível por LOG_LEVEL, padrão INFO
      - Arquivo opcional (LOG_FILE ou parâmetro file_path)
      - Máscara de segredos ligada por padrão (LOG_MASK_SECRETS=0 desliga)
    """
    service = os.getenv("APP_NAME", "printful-gateway")
    version = os.getenv("APP_VERSION", "2.0.0")
    app_env_ctx.set(os.getenv("APP_ENV", "dev"))

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    if isinstance(level, str):
        level = getattr(logging, level, logging.INFO)

    if json_console is None:
        json_console = os.getenv("LOG_JSON", "1") not in ("0", "false", "False")

    file_path = file_path or os.getenv("LOG_FILE")
    mask = os.getenv("LOG_MASK_SECRETS", "1") not in ("0", "false", "False")

    root = logging.getLogger()
    root.setLevel(level)

    # Evita duplicações em reload
    for h in list(root.handlers):
        root.removeHandler(h)

    ctx_filter = ContextFilter(service=service, version=version, mask=mask)

    ch = logging.StreamHandler(stream=sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(_build_json_formatter() if json_console else _build_text_formatter())
    ch.addFilter(ctx_filter)
    root.addHandler(ch)

    if file_path:
        fh = logging.FileHandler(file_path, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(_build_json_formatter())
        fh.addFilter(ctx_filter)
        root.addHandler(fh)

    for name in quiet_loggers or ():
        logging.getLogger(name).setLevel(logging.WARNING)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        logging.getLogger(name).setLevel(level)


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or "printful_gateway")
