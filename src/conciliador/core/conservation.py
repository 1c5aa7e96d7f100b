"""Verificación de conservación de votos entre niveles.

Es imposible devolver un resultado en el que pasar de la vista de ciudad a
la de país cambie el total de votos mostrado.

English:
    Cross-level vote conservation check. A result in which zooming from city
    to country view changes the displayed total can never be returned.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from conciliador.core.levels import LEVELS
from conciliador.core.models import LevelResult
from conciliador.errors import IncompleteReconciliation, VoteConservationViolation


def validate_reconciliation(
    reconciled_votes: Mapping[str, LevelResult],
    level0_total: int,
    levels: Sequence[str] = LEVELS,
) -> None:
    """Confirma que todos los niveles terminaron y conservan el total base.

    Args:
        reconciled_votes: Resultado por nivel.
        level0_total: Total del nivel GPS, usado como verdad de referencia.
        levels: Niveles a verificar, en orden.

    Raises:
        IncompleteReconciliation: un nivel falta o no terminó.
        VoteConservationViolation: el total de un nivel difiere de ``level0_total``.

    English:
        Confirm every level completed and conserves the GPS total.
    """
    for level in levels:
        result = reconciled_votes.get(level)
        if result is None or not result.reconciliation_complete:
            raise IncompleteReconciliation(level)

    for level in levels:
        actual = reconciled_votes[level].total_votes
        if actual != level0_total:
            raise VoteConservationViolation(level, level0_total, actual)
