"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/conciliador/logging.py`.
Configuración de logging estructurado con structlog.

Componentes:
  - setup_logging
  - bind_context

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.

======================== ENGLISH ========================
File: `src/conciliador/logging.py`.
Structured logging setup with structlog.

Components:
  - setup_logging
  - bind_context

Notes:
- Keep this header in sync with structural changes in the file.
"""

# Logging Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Handlers de consola y archivo
#   2) Contexto de conciliación
#
# EN: Quick index
#   1) Console and file handlers
#   2) Reconciliation context

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Optional

import structlog


def setup_logging(log_level: str = "INFO", log_dir: Optional[Path] = None) -> structlog.BoundLogger:
    """Configura structlog y handlers de consola/archivo.

    Sin ``log_dir`` sólo se registra en consola.

    English:
        Configure structlog and console/file handlers. Without ``log_dir``
        only the console handler is installed.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            TimedRotatingFileHandler(
                log_dir / "conciliador.log",
                when="midnight",
                backupCount=30,
                encoding="utf-8",
            )
        )

    logging.basicConfig(
        level=log_level.upper(),
        handlers=handlers,
        format="%(message)s",
    )

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger("conciliador")


def bind_context(
    logger: Any,
    channel_id: Optional[Any] = None,
    reconciliation_id: Optional[str] = None,
) -> Any:
    """Adjunta contexto estándar al logger.

    English: Bind standard context to the logger.
    """
    context: dict[str, Any] = {}
    if channel_id is not None:
        context["channel_id"] = channel_id
    if reconciliation_id:
        context["reconciliation_id"] = reconciliation_id
    return logger.bind(**context)
