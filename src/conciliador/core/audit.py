"""Bitácora acotada de conciliaciones exitosas.

English: Bounded in-memory history of successful reconciliations.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Mapping, Tuple

from conciliador.core.models import LevelResult

DEFAULT_CAPACITY = 100
DEFAULT_RECENT = 10


@dataclass(frozen=True)
class AuditEntry:
    """Resumen compacto de una conciliación.

    English: Compact summary of one reconciliation.
    """

    reconciliation_id: str
    channel_id: Any
    timestamp: str
    reconciliation_time: float
    summary: Mapping[str, Mapping[str, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reconciliationId": self.reconciliation_id,
            "channelId": self.channel_id,
            "timestamp": self.timestamp,
            "reconciliationTime": self.reconciliation_time,
            "summary": {level: dict(values) for level, values in self.summary.items()},
        }


@dataclass(frozen=True)
class AuditStats:
    """Estadísticas operativas de la bitácora.

    English: Operational statistics of the audit log.
    """

    total_reconciliations: int
    recent_reconciliations: Tuple[AuditEntry, ...]
    average_reconciliation_time: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalReconciliations": self.total_reconciliations,
            "recentReconciliations": [entry.to_dict() for entry in self.recent_reconciliations],
            "averageReconciliationTime": self.average_reconciliation_time,
        }


class ReconciliationAuditLog:
    """Buffer circular thread-safe de resúmenes de conciliación.

    Bilingual: Thread-safe ring buffer of reconciliation summaries. The oldest
    entry is evicted once ``capacity`` is reached.

    Args:
        capacity: Entradas retenidas como máximo.
        recent: Entradas devueltas como recientes en ``stats()``.

    Raises:
        ValueError: si ``capacity`` o ``recent`` no son positivos.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, recent: int = DEFAULT_RECENT) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if recent < 1:
            raise ValueError("recent must be >= 1")
        self.capacity = int(capacity)
        self.recent = int(recent)
        self._entries: Deque[AuditEntry] = deque(maxlen=self.capacity)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def record(
        self,
        reconciliation_id: str,
        channel_id: Any,
        reconciled_votes: Mapping[str, LevelResult],
        duration_ms: float,
    ) -> AuditEntry:
        """Agrega el resumen por nivel de una conciliación.

        English: Append the per-level summary of one reconciliation.
        """
        summary = {
            level: {
                "clusters": result.cluster_count,
                "candidates": result.total_candidates,
                "votes": result.total_votes,
            }
            for level, result in reconciled_votes.items()
        }
        entry = AuditEntry(
            reconciliation_id=reconciliation_id,
            channel_id=channel_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
            reconciliation_time=float(duration_ms),
            summary=summary,
        )
        with self._lock:
            self._entries.append(entry)
        return entry

    def stats(self) -> AuditStats:
        with self._lock:
            entries = tuple(self._entries)
        total = len(entries)
        average = sum(entry.reconciliation_time for entry in entries) / total if total else 0.0
        return AuditStats(
            total_reconciliations=total,
            recent_reconciliations=entries[-self.recent:],
            average_reconciliation_time=average,
        )
