"""Validación de canales y candidatos previa a la agregación.

La validación es fail-fast: la primera violación aborta la conciliación
completa antes de construir cualquier jerarquía.

English:
    Channel and candidate validation ahead of aggregation. Fail-fast: the
    first violation aborts the whole reconciliation before any hierarchy is
    built.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Mapping, Optional, Sequence

from conciliador.core.levels import GEOGRAPHY_FIELDS, LEVELS
from conciliador.core.votes import vote_count_of
from conciliador.errors import (
    EmptyCandidateList,
    InvalidGeography,
    InvalidLocation,
    InvalidVoteCount,
    MissingCandidateId,
    MissingChannelId,
    MissingClusterKey,
    ValidationError,
)

# Placeholder that upstream geocoding leaves behind when it cannot resolve a
# place. Matched as a case-insensitive substring.
UNKNOWN_SENTINEL = "unknown"


def _is_finite_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def check_geography(field: str, value: Any, *, candidate_id: Any = None, sentinel: str = UNKNOWN_SENTINEL) -> None:
    """Regla ``InvalidGeography``: campo presente y sin el marcador ``sentinel``.

    English:
        ``InvalidGeography`` rule: field present and free of the ``sentinel``
        placeholder (case-insensitive substring).
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidGeography(field, value, candidate_id=candidate_id)
    if sentinel and sentinel.lower() in value.lower():
        raise InvalidGeography(field, value, candidate_id=candidate_id)


def validate_candidate(
    candidate: Any,
    *,
    unknown_sentinel: str = UNKNOWN_SENTINEL,
    channel_id: Any = None,
    position: Optional[int] = None,
) -> None:
    """Valida un candidato individual.

    Args:
        candidate: Mapping crudo del candidato.
        unknown_sentinel: Marcador de lugar no resuelto.
        channel_id: Canal al que pertenece, para los mensajes.
        position: Índice dentro del canal, para los mensajes.

    Raises:
        MissingCandidateId, MissingClusterKey, InvalidGeography,
        InvalidLocation, InvalidVoteCount.

    English:
        Validate a single candidate; raises the first violated rule.
    """
    if not isinstance(candidate, Mapping):
        where = f" at position {position}" if position is not None else ""
        raise ValidationError(f"Candidate{where} must be an object", channel_id=channel_id)

    candidate_id = candidate.get("id")
    if not _present(candidate_id):
        raise MissingCandidateId(channel_id=channel_id, position=position)

    cluster_keys = candidate.get("clusterKeys")
    if not isinstance(cluster_keys, Mapping):
        raise MissingClusterKey(LEVELS[0], candidate_id=candidate_id)
    for level in LEVELS:
        key = cluster_keys.get(level)
        if not isinstance(key, str) or not key:
            raise MissingClusterKey(level, candidate_id=candidate_id)

    for field in GEOGRAPHY_FIELDS:
        check_geography(field, candidate.get(field), candidate_id=candidate_id, sentinel=unknown_sentinel)

    location = candidate.get("location")
    if not isinstance(location, Mapping):
        raise InvalidLocation(candidate_id=candidate_id, location=location)
    if not (_is_finite_number(location.get("lat")) and _is_finite_number(location.get("lng"))):
        raise InvalidLocation(candidate_id=candidate_id, location=dict(location))

    votes = vote_count_of(candidate)
    # Integral counts keep cross-level sums exact.
    if not isinstance(votes, int) or isinstance(votes, bool) or votes < 0:
        raise InvalidVoteCount(votes, candidate_id=candidate_id)


def validate_channel(channel: Any, *, unknown_sentinel: str = UNKNOWN_SENTINEL) -> Sequence[Mapping[str, Any]]:
    """Valida el canal completo y devuelve su lista de candidatos.

    English:
        Validate the whole channel and return its candidate list.
    """
    if not isinstance(channel, Mapping):
        raise ValidationError("Channel data is required")

    channel_id = channel.get("id")
    if not _present(channel_id):
        raise MissingChannelId()

    candidates = channel.get("candidates")
    if candidates is None:
        raise EmptyCandidateList(channel_id)
    if isinstance(candidates, (str, bytes, Mapping)) or not isinstance(candidates, Sequence):
        raise ValidationError(f"Channel {channel_id} candidates must be an array", channel_id=channel_id)
    if len(candidates) == 0:
        raise EmptyCandidateList(channel_id)

    for position, candidate in enumerate(candidates):
        validate_candidate(
            candidate,
            unknown_sentinel=unknown_sentinel,
            channel_id=channel_id,
            position=position,
        )
    return candidates
