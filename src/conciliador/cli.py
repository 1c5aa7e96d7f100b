"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/conciliador/cli.py`.
Interfaz de línea de comandos del motor de conciliación. El JSON sale por
stdout; los errores van a stderr con código de salida 1.

Componentes:
  - reconcile
  - stacks
  - validate
  - levels

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.

======================== ENGLISH ========================
File: `src/conciliador/cli.py`.
Command line interface for the reconciliation engine. JSON goes to stdout;
errors go to stderr with exit code 1.

Components:
  - reconcile
  - stacks
  - validate
  - levels

Notes:
- Keep this header in sync with structural changes in the file.
"""

# CLI Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Construcción del motor desde la configuración
#   2) Comandos
#
# EN: Quick index
#   1) Engine construction from settings
#   2) Commands

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

import typer

from conciliador.config import load_config
from conciliador.core.levels import LEVELS
from conciliador.core.models import ReconciliationResult
from conciliador.core.validation import validate_channel
from conciliador.engine import VoteReconciliationEngine
from conciliador.errors import ReconciliationError
from conciliador.logging import setup_logging
from conciliador.schemas import load_channel

app = typer.Typer(help="Conciliador: hierarchical vote reconciliation engine")


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _fail(exc: Exception) -> NoReturn:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=1)


def _build_engine(log_level: Optional[str]) -> VoteReconciliationEngine:
    overrides = {"LOG_LEVEL": log_level} if log_level else {}
    try:
        settings = load_config(**overrides)
    except ValueError as exc:
        _fail(exc)
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    try:
        return VoteReconciliationEngine(settings=settings)
    except ValueError as exc:
        _fail(exc)


def _summary(result: ReconciliationResult) -> Dict[str, Any]:
    return {
        "reconciliationId": result.reconciliation_id,
        "channelId": result.channel_id,
        "totalVotes": result.total_votes,
        "integrity": result.integrity.value,
        "levels": {
            level: {
                "clusters": level_result.cluster_count,
                "candidates": level_result.total_candidates,
                "votes": level_result.total_votes,
            }
            for level, level_result in result.reconciled_votes.items()
        },
    }


@app.command()
def reconcile(
    files: List[Path] = typer.Argument(..., help="Channel JSON files."),
    summary: bool = typer.Option(False, "--summary", help="Print per-level totals only."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level; defaults to CONCILIADOR_LOG_LEVEL."),
) -> None:
    """Concilia uno o más canales y muestra el resultado en JSON.

    English: Reconcile one or more channels and print the JSON result.
    """
    engine = _build_engine(log_level)
    results = []
    for path in files:
        try:
            result = engine.reconcile(load_channel(path))
        except (ReconciliationError, ValueError) as exc:
            _fail(exc)
        results.append(_summary(result) if summary else result.to_dict())

    if len(results) == 1:
        _echo_json(results[0])
        return
    _echo_json({"results": results, "stats": engine.stats().to_dict()})


@app.command()
def stacks(
    file: Path = typer.Argument(..., help="Channel JSON file."),
    level: str = typer.Option("country", "--level", "-l", help="Target level."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level; defaults to CONCILIADOR_LOG_LEVEL."),
) -> None:
    """Genera las pilas 3D de un nivel.

    English: Generate the 3D stacks for one level.
    """
    engine = _build_engine(log_level)
    try:
        result = engine.reconcile(load_channel(file))
        generated = engine.generate_stacks(result.reconciled_votes, level)
    except (ReconciliationError, ValueError) as exc:
        _fail(exc)
    _echo_json([stack.to_dict() for stack in generated])


@app.command()
def validate(
    file: Path = typer.Argument(..., help="Channel JSON file."),
    unknown_sentinel: Optional[str] = typer.Option(None, "--unknown-sentinel", help="Placeholder to reject."),
) -> None:
    """Valida un canal sin conciliarlo.

    English: Validate a channel without reconciling it.
    """
    try:
        settings = load_config()
        channel = load_channel(file).to_mapping()
        candidates = validate_channel(channel, unknown_sentinel=unknown_sentinel or settings.UNKNOWN_SENTINEL)
    except (ReconciliationError, ValueError) as exc:
        _fail(exc)
    typer.echo(f"ok: channel {channel['id']} with {len(candidates)} candidates")


@app.command()
def levels() -> None:
    """Lista los niveles de agregación, del más fino al más grueso.

    English: List aggregation levels, finest first.
    """
    for level in LEVELS:
        typer.echo(level)


if __name__ == "__main__":
    app()
