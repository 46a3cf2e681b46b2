#  Copyright (c) 2026 Fleer
"""Configuração do logging da aplicação.

Variáveis de ambiente (ver database/config.py):
    LOG_FORMAT  - "json" para uma linha JSON por registro, "text" para texto (padrão)
    LOG_LEVEL   - nível do logger raiz (padrão: INFO)
"""
import json
import logging
import sys
from datetime import datetime, timezone

from database.config import LOG_LEVEL, LOG_FORMAT


class FormatadorJson(logging.Formatter):
    """Emite um objeto JSON por registro de log."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configurar_logging(nivel: str = LOG_LEVEL, formato: str = LOG_FORMAT) -> None:
    """Configura o logger raiz uma única vez, substituindo handlers anteriores."""
    level = getattr(logging, str(nivel).strip().upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    if str(formato).strip().lower() == "json":
        handler.setFormatter(FormatadorJson())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s [%(threadName)s] [%(name)s] %(message)s"))
    root.addHandler(handler)

    # O SQL emitido só interessa em depuração
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
