"""Conciliación por nivel: doble verificación, centroides y orden estable.

English: Per-level reconciliation: double-check, centroids and stable order.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import structlog

from conciliador.core.hierarchy import Hierarchy
from conciliador.core.models import Candidate, Centroid, Cluster, LevelResult
from conciliador.core.votes import vote_count_of
from conciliador.errors import MissingLevelData, VoteMismatch

logger = structlog.get_logger(__name__)


def candidate_sort_key(candidate: Candidate) -> Tuple[Any, str, str]:
    """Votos descendente; empates por ``id`` y luego ``name`` ascendente.

    English: Votes descending; ties by ``id`` then ``name`` ascending.
    """
    name = candidate.name if candidate.name is not None else ""
    return (-vote_count_of(candidate), str(candidate.id), str(name))


def sort_candidates(candidates: Iterable[Candidate]) -> List[Candidate]:
    return sorted(candidates, key=candidate_sort_key)


def calculate_centroid(
    candidates: Sequence[Candidate],
    level: str,
    cluster_key: Optional[str] = None,
    *,
    log: Any = None,
) -> Centroid:
    """Media aritmética de lat/lng sobre candidatos con ubicación válida.

    Sin ubicaciones válidas el centroide degrada a ``(0, 0)`` con un aviso.

    English:
        Arithmetic mean of lat/lng over candidates with a valid location.
        Without any valid location the centroid degrades to ``(0, 0)`` and a
        warning is logged.
    """
    located = [candidate for candidate in candidates if candidate.has_valid_location]
    if not located:
        (log or logger).warning(
            "centroid_without_locations",
            level=level,
            cluster_key=cluster_key,
            candidates=len(candidates),
        )
        return Centroid(lat=0.0, lng=0.0, valid_locations=0, total_candidates=len(candidates))

    # fsum keeps the mean independent of input order.
    return Centroid(
        lat=math.fsum(candidate.lat for candidate in located) / len(located),
        lng=math.fsum(candidate.lng for candidate in located) / len(located),
        valid_locations=len(located),
        total_candidates=len(candidates),
    )


def reconcile_level(
    hierarchy: Hierarchy,
    level: str,
    *,
    timestamp: Optional[str] = None,
    log: Any = None,
) -> LevelResult:
    """Concilia todos los clusters de un nivel.

    Recalcula la suma de votos de cada cluster desde sus miembros y la compara
    con el total acumulado por el constructor de jerarquía.

    Raises:
        VoteMismatch: si la suma recalculada difiere del total acumulado.
        MissingLevelData: si la jerarquía no contiene el nivel.

    English:
        Reconcile every cluster of a level, recomputing each cluster's vote
        sum from its members and comparing it with the builder's running
        total.
    """
    log = log or logger
    buckets = hierarchy.get(level)
    if buckets is None:
        raise MissingLevelData(level)

    stamp = timestamp or datetime.now(timezone.utc).isoformat()
    clusters: List[Cluster] = []
    total_votes = 0
    total_candidates = 0

    for cluster_key, bucket in buckets.items():
        computed = sum(vote_count_of(candidate) for candidate in bucket.candidates)
        if computed != bucket.total_votes:
            raise VoteMismatch(level, cluster_key, computed, bucket.total_votes)

        members = sort_candidates(bucket.candidates)
        clusters.append(
            Cluster(
                cluster_key=cluster_key,
                level=level,
                candidate_count=len(members),
                total_votes=bucket.total_votes,
                candidates=tuple(members),
                centroid=calculate_centroid(members, level, cluster_key, log=log),
                metadata=dict(bucket.metadata),
                reconciliation_timestamp=stamp,
            )
        )
        total_votes += bucket.total_votes
        total_candidates += len(members)

    clusters.sort(key=lambda cluster: (-cluster.total_votes, cluster.cluster_key))

    log.debug(
        "level_reconciled",
        level=level,
        clusters=len(clusters),
        candidates=total_candidates,
        votes=total_votes,
    )

    return LevelResult(
        level=level,
        clusters=tuple(clusters),
        cluster_count=len(clusters),
        total_candidates=total_candidates,
        total_votes=total_votes,
        reconciliation_complete=True,
    )
