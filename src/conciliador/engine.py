"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/conciliador/engine.py`.
Motor de conciliación jerárquica de votos. Punto de entrada único:
``VoteReconciliationEngine.reconcile()``. Cada llamada es secuencial y pura
sobre su snapshot de entrada:
``Validar → Construir → Conciliar×6 → Conservación → Bitácora``. Cualquier
fallo aborta la llamada, no deja entrada en la bitácora y se propaga con su
tipo original.

Componentes:
  - new_reconciliation_id
  - VoteReconciliationEngine

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.

======================== ENGLISH ========================
File: `src/conciliador/engine.py`.
Hierarchical vote reconciliation engine. Single entry point:
``VoteReconciliationEngine.reconcile()``. Each call is a sequential, pure
computation over its input snapshot. Any failure aborts the call, writes no
audit entry and propagates with its original type.

Components:
  - new_reconciliation_id
  - VoteReconciliationEngine

Notes:
- Keep this header in sync with structural changes in the file.
"""

# Engine Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Conciliación de un canal
#   2) Conciliación en paralelo
#   3) Pilas y estadísticas
#
# EN: Quick index
#   1) Single channel reconciliation
#   2) Parallel reconciliation
#   3) Stacks and statistics

from __future__ import annotations

import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import structlog

from conciliador.config import ConciliadorSettings, load_stack_style
from conciliador.core.audit import AuditStats, ReconciliationAuditLog
from conciliador.core.conservation import validate_reconciliation
from conciliador.core.hierarchy import build_hierarchy
from conciliador.core.levels import BASE_LEVEL, LEVELS
from conciliador.core.models import Candidate, Integrity, LevelResult, ReconciliationResult, Stack
from conciliador.core.reconciler import reconcile_level
from conciliador.core.stacks import StackStyle, generate_stacks
from conciliador.core.validation import UNKNOWN_SENTINEL, validate_channel
from conciliador.errors import ReconciliationError
from conciliador.logging import bind_context
from conciliador.schemas import ChannelPayload

ChannelInput = Union[Mapping[str, Any], ChannelPayload]


def new_reconciliation_id() -> str:
    return f"reconcile_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class VoteReconciliationEngine:
    """Concilia votos de un canal en los seis niveles geográficos.

    La única pieza de estado compartido es la bitácora, que se inyecta y
    serializa sus escrituras; varias conciliaciones pueden correr en paralelo.

    English:
        Reconciles a channel's votes across the six geographic levels. The
        only shared state is the injected audit log, which serializes its
        writes, so independent reconciliations may run in parallel.
    """

    def __init__(
        self,
        audit_log: Optional[ReconciliationAuditLog] = None,
        style: Optional[StackStyle] = None,
        settings: Optional[ConciliadorSettings] = None,
        logger: Any = None,
    ) -> None:
        self.settings = settings
        if audit_log is None:
            audit_log = (
                ReconciliationAuditLog(settings.AUDIT_CAPACITY, settings.AUDIT_RECENT)
                if settings is not None
                else ReconciliationAuditLog()
            )
        if style is None:
            style = load_stack_style(settings.STYLE_PATH) if settings is not None else StackStyle()
        self.audit_log = audit_log
        self.style = style
        self.unknown_sentinel = settings.UNKNOWN_SENTINEL if settings is not None else UNKNOWN_SENTINEL
        self.max_workers = settings.MAX_WORKERS if settings is not None else None
        self.logger = logger or structlog.get_logger("conciliador.engine")

    # ── helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _as_mapping(channel: ChannelInput) -> Any:
        if isinstance(channel, ChannelPayload):
            return channel.to_mapping()
        return channel

    @staticmethod
    def _channel_id(channel: Any) -> Any:
        return channel.get("id") if isinstance(channel, Mapping) else None

    # ── public API ───────────────────────────────────────────────────────

    def reconcile(self, channel: ChannelInput) -> ReconciliationResult:
        """Concilia un canal completo y verifica la conservación de votos.

        Raises:
            ValidationError: entrada mal formada (antes de agregar).
            VoteMismatch: un cluster no cuadra con sus miembros.
            ConservationError: los totales entre niveles difieren.

        English:
            Reconcile a whole channel and verify vote conservation.
        """
        channel = self._as_mapping(channel)
        started = time.perf_counter()
        reconciliation_id = new_reconciliation_id()
        log = bind_context(self.logger, channel_id=self._channel_id(channel), reconciliation_id=reconciliation_id)
        log.info("reconciliation_started")

        try:
            raw_candidates = validate_channel(channel, unknown_sentinel=self.unknown_sentinel)
            candidates = [Candidate.from_mapping(candidate) for candidate in raw_candidates]
            hierarchy = build_hierarchy(candidates)

            stamp = datetime.now(timezone.utc).isoformat()
            reconciled_votes: Dict[str, LevelResult] = {}
            for level in LEVELS:
                reconciled_votes[level] = reconcile_level(hierarchy, level, timestamp=stamp, log=log)

            level0_total = reconciled_votes[BASE_LEVEL].total_votes
            validate_reconciliation(reconciled_votes, level0_total)
        except ReconciliationError as exc:
            log.error("reconciliation_failed", error=str(exc), error_type=type(exc).__name__)
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        self.audit_log.record(reconciliation_id, channel["id"], reconciled_votes, elapsed_ms)
        log.info(
            "reconciliation_completed",
            total_votes=level0_total,
            candidates=len(candidates),
            duration_ms=round(elapsed_ms, 3),
        )

        return ReconciliationResult(
            reconciliation_id=reconciliation_id,
            channel_id=channel["id"],
            reconciled_votes=reconciled_votes,
            total_votes=level0_total,
            reconciliation_time=elapsed_ms,
            integrity=Integrity.PERFECT,
        )

    def reconcile_many(
        self,
        channels: Iterable[ChannelInput],
        max_workers: Optional[int] = None,
    ) -> List[ReconciliationResult]:
        """Concilia varios canales en paralelo, conservando el orden de entrada.

        El primer fallo se propaga.

        English:
            Reconcile several channels in parallel, keeping input order. The
            first failure is propagated.
        """
        channels = list(channels)
        if not channels:
            return []
        workers = max_workers or self.max_workers
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="conciliador") as executor:
            return list(executor.map(self.reconcile, channels))

    def generate_stacks(self, reconciled_votes: Mapping[str, LevelResult], target_level: str) -> List[Stack]:
        """Proyecta los clusters de ``target_level`` en pilas 3D.

        English: Project ``target_level`` clusters into 3D stacks.
        """
        return generate_stacks(reconciled_votes, target_level, self.style, log=self.logger)

    def stats(self) -> AuditStats:
        return self.audit_log.stats()
