"""Conciliador: motor de conciliación jerárquica de votos.

English: Hierarchical vote reconciliation and clustering engine.
"""

from conciliador.core.audit import AuditStats, ReconciliationAuditLog
from conciliador.core.levels import LEVELS
from conciliador.core.models import Integrity, ReconciliationResult, Stack
from conciliador.core.stacks import StackStyle
from conciliador.core.votes import vote_count_of
from conciliador.engine import VoteReconciliationEngine

__version__ = "0.1.0"

__all__ = [
    "AuditStats",
    "Integrity",
    "LEVELS",
    "ReconciliationAuditLog",
    "ReconciliationResult",
    "Stack",
    "StackStyle",
    "VoteReconciliationEngine",
    "vote_count_of",
]
