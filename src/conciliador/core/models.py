"""Modelos del motor de conciliación jerárquica.

Todas las entidades derivadas se crean en cada llamada y se descartan cuando
el consumidor termina con el resultado. ``to_dict`` produce la forma JSON en
camelCase que consumen las capas REST y de renderizado.

English:
    Models for the hierarchical reconciliation engine. Derived entities are
    created per call and discarded once consumed. ``to_dict`` yields the
    camelCase JSON shape used by REST and rendering layers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional, Tuple

from conciliador.core.votes import VoteRepresentation, resolve_votes


def _finite(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class Candidate:
    """Vista tipada de un candidato ya validado.

    Attributes:
        id: Identificador del candidato.
        name: Nombre visible (opcional).
        city, province, country, region: Jerarquía geográfica completa.
        country_code: Código ISO del país (opcional).
        lat, lng: Coordenadas del candidato.
        cluster_keys: Clave de cluster por nivel.
        representation: Representación de votos resuelta una vez.
        raw: Mapping original tal como llegó del colaborador externo.

    English:
        Typed view of an already validated candidate. ``raw`` keeps the
        original mapping so output round-trips every source field.
    """

    id: Any
    name: Optional[str]
    city: str
    province: str
    country: str
    region: str
    country_code: Optional[str]
    lat: Any
    lng: Any
    cluster_keys: Mapping[str, str]
    representation: VoteRepresentation
    raw: Mapping[str, Any] = field(repr=False, compare=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Candidate":
        """Construye la vista desde el mapping crudo del candidato.

        English: Build the view from the raw candidate mapping.
        """
        location = data.get("location") or {}
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            city=data.get("city"),
            province=data.get("province"),
            country=data.get("country"),
            region=data.get("region"),
            country_code=data.get("countryCode"),
            lat=location.get("lat"),
            lng=location.get("lng"),
            cluster_keys=dict(data.get("clusterKeys") or {}),
            representation=resolve_votes(data),
            raw=data,
        )

    @property
    def votes(self) -> Any:
        return self.representation.total

    @property
    def has_valid_location(self) -> bool:
        return _finite(self.lat) and _finite(self.lng)

    @property
    def location(self) -> Dict[str, Any]:
        source = self.raw.get("location")
        return dict(source) if isinstance(source, Mapping) else {"lat": self.lat, "lng": self.lng}

    def cluster_key(self, level: str) -> str:
        return self.cluster_keys[level]

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.raw)


@dataclass
class ClusterBucket:
    """Cubeta mutable que acumula candidatos y votos de un cluster.

    English: Mutable bucket accumulating candidates and votes for a cluster.
    """

    cluster_key: str
    level: str
    metadata: Dict[str, Any]
    candidates: List[Candidate] = field(default_factory=list)
    total_votes: int = 0

    def add(self, candidate: Candidate, votes: int) -> None:
        self.candidates.append(candidate)
        self.total_votes += votes


@dataclass(frozen=True)
class Centroid:
    """Centroide aritmético de los candidatos con ubicación válida.

    English: Arithmetic centroid of candidates with a valid location.
    """

    lat: float
    lng: float
    valid_locations: int
    total_candidates: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "validLocations": self.valid_locations,
            "totalCandidates": self.total_candidates,
        }


@dataclass(frozen=True)
class Cluster:
    """Cluster conciliado de un nivel.

    English: Reconciled cluster for one level.
    """

    cluster_key: str
    level: str
    candidate_count: int
    total_votes: int
    candidates: Tuple[Candidate, ...]
    centroid: Centroid
    metadata: Mapping[str, Any]
    reconciliation_timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clusterKey": self.cluster_key,
            "level": self.level,
            "candidateCount": self.candidate_count,
            "totalVotes": self.total_votes,
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "centroid": self.centroid.to_dict(),
            "metadata": dict(self.metadata),
            "reconciliationTimestamp": self.reconciliation_timestamp,
        }


@dataclass(frozen=True)
class LevelResult:
    """Resultado conciliado de un nivel completo.

    English: Reconciled result for a whole level.
    """

    level: str
    clusters: Tuple[Cluster, ...]
    cluster_count: int
    total_candidates: int
    total_votes: int
    reconciliation_complete: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "clusters": [cluster.to_dict() for cluster in self.clusters],
            "clusterCount": self.cluster_count,
            "totalCandidates": self.total_candidates,
            "totalVotes": self.total_votes,
            "reconciliationComplete": self.reconciliation_complete,
        }


class Integrity(str, Enum):
    """Integridad declarada de una conciliación.

    ``FAILED`` existe sólo por compatibilidad de formato: un fallo siempre se
    propaga como excepción.

    English:
        Declared integrity. ``FAILED`` exists for wire compatibility only; a
        failure is always raised.
    """

    PERFECT = "PERFECT"
    FAILED = "FAILED"


@dataclass(frozen=True)
class ReconciliationResult:
    """Salida de una conciliación de canal.

    English: Output of one channel reconciliation.
    """

    reconciliation_id: str
    channel_id: Any
    reconciled_votes: Mapping[str, LevelResult]
    total_votes: int
    reconciliation_time: float
    integrity: Integrity = Integrity.PERFECT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reconciliationId": self.reconciliation_id,
            "channelId": self.channel_id,
            "reconciledVotes": {level: result.to_dict() for level, result in self.reconciled_votes.items()},
            "totalVotes": self.total_votes,
            "reconciliationTime": self.reconciliation_time,
            "integrity": self.integrity.value,
        }


@dataclass(frozen=True)
class StackPosition:
    lat: float
    lng: float
    height: float


@dataclass(frozen=True)
class StackDimensions:
    width: float
    depth: float
    height: float


@dataclass(frozen=True)
class Stack:
    """Proyección 3D de un cluster lista para renderizar.

    English: Render-ready 3D projection of one cluster.
    """

    id: str
    level: str
    cluster_key: str
    position: StackPosition
    dimensions: StackDimensions
    candidate_count: int
    total_votes: int
    candidates: Tuple[Candidate, ...]
    color: Tuple[int, int, int, int]
    opacity: float
    metadata: Mapping[str, Any]
    reconciliation_timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "level": self.level,
            "clusterKey": self.cluster_key,
            "position": {"lat": self.position.lat, "lng": self.position.lng, "height": self.position.height},
            "dimensions": {
                "width": self.dimensions.width,
                "depth": self.dimensions.depth,
                "height": self.dimensions.height,
            },
            "candidateCount": self.candidate_count,
            "totalVotes": self.total_votes,
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "color": list(self.color),
            "opacity": self.opacity,
            "metadata": dict(self.metadata),
            "reconciliationTimestamp": self.reconciliation_timestamp,
        }
