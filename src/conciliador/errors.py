"""Taxonomía de errores del motor de conciliación.

English:
    Error taxonomy for the reconciliation engine. Every failure is fatal to
    the current call; no partial result is ever returned.
"""

from __future__ import annotations

from typing import Any, Optional


class ReconciliationError(Exception):
    """Error general de conciliación.

    English: Generic reconciliation error.
    """


# ---------------------------------------------------------------------------
# Errores de forma de entrada / Input shape errors
# ---------------------------------------------------------------------------


class ValidationError(ReconciliationError):
    """Entrada inválida detectada antes de agregar votos.

    English: Invalid input detected before any aggregation work.
    """

    def __init__(self, message: str, *, candidate_id: Any = None, channel_id: Any = None) -> None:
        super().__init__(message)
        self.candidate_id = candidate_id
        self.channel_id = channel_id


class MissingChannelId(ValidationError):
    """El canal no tiene identificador.

    English: Channel has no id.
    """

    def __init__(self) -> None:
        super().__init__("Channel ID is required")


class EmptyCandidateList(ValidationError):
    """El canal no contiene candidatos.

    English: Channel has zero candidates.
    """

    def __init__(self, channel_id: Any) -> None:
        super().__init__(f"Channel {channel_id} must have at least one candidate", channel_id=channel_id)


class MissingCandidateId(ValidationError):
    """Candidato sin identificador.

    English: Candidate without id.
    """

    def __init__(self, *, channel_id: Any = None, position: Optional[int] = None) -> None:
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"Candidate ID is required{where}", channel_id=channel_id)
        self.position = position


class MissingClusterKey(ValidationError):
    """Falta la clave de cluster para un nivel.

    English: Cluster key missing for one level.
    """

    def __init__(self, level: str, *, candidate_id: Any = None) -> None:
        super().__init__(f"Candidate {candidate_id} missing {level} cluster key", candidate_id=candidate_id)
        self.level = level


class InvalidGeography(ValidationError):
    """Campo geográfico ausente o con marcador "unknown".

    English: Geography field missing or carrying the "unknown" placeholder.
    """

    def __init__(self, field: str, value: Any, *, candidate_id: Any = None) -> None:
        super().__init__(f"Candidate {candidate_id} has invalid {field}: {value}", candidate_id=candidate_id)
        self.field = field
        self.value = value


class InvalidLocation(ValidationError):
    """Coordenadas ausentes o no finitas.

    English: Missing or non-finite coordinates.
    """

    def __init__(self, *, candidate_id: Any = None, location: Any = None) -> None:
        super().__init__(f"Candidate {candidate_id} has invalid location data: {location}", candidate_id=candidate_id)
        self.location = location


class InvalidVoteCount(ValidationError):
    """Conteo de votos negativo o no numérico.

    English: Negative or non-numeric vote count.
    """

    def __init__(self, value: Any, *, candidate_id: Any = None) -> None:
        super().__init__(f"Candidate {candidate_id} has invalid vote count: {value}", candidate_id=candidate_id)
        self.value = value


# ---------------------------------------------------------------------------
# Errores de consistencia interna / Internal consistency errors
# ---------------------------------------------------------------------------


class ConsistencyError(ReconciliationError):
    """Defecto interno: un cluster no cuadra consigo mismo.

    English: Internal defect, a cluster disagrees with its own members.
    """


class VoteMismatch(ConsistencyError):
    """La suma recalculada difiere del total acumulado del cluster.

    English: Recomputed sum differs from the cluster running total.
    """

    def __init__(self, level: str, cluster_key: str, computed: int, stored: int) -> None:
        super().__init__(
            f"Vote mismatch in {level} cluster {cluster_key}: calculated {computed}, stored {stored}"
        )
        self.level = level
        self.cluster_key = cluster_key
        self.computed = computed
        self.stored = stored


class ConservationError(ReconciliationError):
    """Los totales entre niveles no se conservan.

    English: Cross-level totals are not conserved.
    """


class IncompleteReconciliation(ConservationError):
    """Un nivel no terminó su conciliación.

    English: A level did not complete reconciliation.
    """

    def __init__(self, level: str) -> None:
        super().__init__(f"Reconciliation incomplete for level: {level}")
        self.level = level


class VoteConservationViolation(ConservationError):
    """El total de un nivel difiere del total GPS.

    English: A level total differs from the GPS ground truth.
    """

    def __init__(self, level: str, expected: int, actual: int) -> None:
        super().__init__(f"Vote conservation failed at {level} level: expected {expected}, got {actual}")
        self.level = level
        self.expected = expected
        self.actual = actual


class MissingLevelData(ReconciliationError):
    """No hay datos conciliados para el nivel pedido.

    English: No reconciled data for the requested level.
    """

    def __init__(self, level: Any) -> None:
        super().__init__(f"No reconciled data found for level: {level}")
        self.level = level
