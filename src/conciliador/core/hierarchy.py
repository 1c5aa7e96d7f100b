"""Construcción de la jerarquía de votos en una sola pasada.

English: Single-pass construction of the vote hierarchy.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Union

from conciliador.core.levels import CITY, COUNTRY, GLOBAL, GLOBAL_SCOPE, GPS, LEVELS, PROVINCE, REGION
from conciliador.core.models import Candidate, ClusterBucket
from conciliador.core.votes import vote_count_of
from conciliador.errors import MissingClusterKey

Hierarchy = Dict[str, Dict[str, ClusterBucket]]


def cluster_metadata(candidate: Candidate, level: str) -> Dict[str, Any]:
    """Metadatos del nivel tomados del primer candidato de la cubeta.

    English: Level metadata snapshotted from the bucket's first candidate.
    """
    metadata: Dict[str, Any] = {"level": level}
    if level == GPS:
        metadata["location"] = candidate.location
    elif level == CITY:
        metadata.update(city=candidate.city, province=candidate.province, country=candidate.country)
    elif level == PROVINCE:
        metadata.update(province=candidate.province, country=candidate.country, region=candidate.region)
    elif level == COUNTRY:
        metadata.update(country=candidate.country, countryCode=candidate.country_code, region=candidate.region)
    elif level == REGION:
        metadata["region"] = candidate.region
    elif level == GLOBAL:
        metadata["scope"] = GLOBAL_SCOPE
    return metadata


def build_hierarchy(candidates: Iterable[Union[Candidate, Mapping[str, Any]]]) -> Hierarchy:
    """Agrupa candidatos en seis mapas nivel → clave → cubeta.

    Cada candidato se añade a la cubeta de su clave en cada nivel y su conteo
    de votos se suma al total acumulado de esa cubeta.

    English:
        Group candidates into six level -> key -> bucket maps. Each candidate
        joins its key's bucket at every level and its vote count is added to
        the bucket running total.
    """
    hierarchy: Hierarchy = {level: {} for level in LEVELS}

    for item in candidates:
        candidate = item if isinstance(item, Candidate) else Candidate.from_mapping(item)
        votes = vote_count_of(candidate)

        for level in LEVELS:
            cluster_key = candidate.cluster_keys.get(level)
            if not cluster_key:
                raise MissingClusterKey(level, candidate_id=candidate.id)

            buckets = hierarchy[level]
            bucket = buckets.get(cluster_key)
            if bucket is None:
                bucket = ClusterBucket(
                    cluster_key=cluster_key,
                    level=level,
                    metadata=cluster_metadata(candidate, level),
                )
                buckets[cluster_key] = bucket
            bucket.add(candidate, votes)

    return hierarchy
