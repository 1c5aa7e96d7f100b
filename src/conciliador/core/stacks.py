"""Proyección de clusters conciliados a pilas 3D renderizables.

English: Projection of reconciled clusters into renderable 3D stacks.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog

from conciliador.core.levels import CITY, COUNTRY, GLOBAL, GPS, PROVINCE, REGION
from conciliador.core.models import Cluster, LevelResult, Stack, StackDimensions, StackPosition
from conciliador.errors import MissingLevelData

logger = structlog.get_logger(__name__)

RGB = Tuple[int, int, int]

DEFAULT_LEVEL_COLORS: Dict[str, RGB] = {
    GPS: (255, 0, 0),
    CITY: (255, 165, 0),
    PROVINCE: (255, 255, 0),
    COUNTRY: (0, 255, 0),
    REGION: (0, 0, 255),
    GLOBAL: (128, 0, 128),
}


@dataclass(frozen=True)
class StackStyle:
    """Constantes de renderizado inyectables en el proyector.

    Attributes:
        level_colors: Color base RGB por nivel.
        fallback_color: Color para niveles sin entrada en ``level_colors``.
        height_per_candidate: Altura aportada por cada candidato.
        max_height: Altura máxima de una pila.
        footprint: Ancho y profundidad fijos de la pila.
        vote_scale: Votos con los que la intensidad se satura.
        intensity_floor: Intensidad mínima para clusters con pocos votos.
        alpha: Canal alfa fijo (0-255).
        opacity: Opacidad de la pila (0-1).

    English:
        Rendering constants injected into the projector so style changes never
        touch aggregation logic.
    """

    level_colors: Mapping[str, RGB] = field(default_factory=lambda: dict(DEFAULT_LEVEL_COLORS))
    fallback_color: RGB = (128, 128, 128)
    height_per_candidate: float = 0.1
    max_height: float = 2.0
    footprint: float = 0.05
    vote_scale: float = 1000.0
    intensity_floor: float = 0.3
    alpha: int = 200
    opacity: float = 0.8

    def stack_height(self, candidate_count: int) -> float:
        return min(candidate_count * self.height_per_candidate, self.max_height)

    def color_for(self, level: str, total_votes: int) -> Tuple[int, int, int, int]:
        """Color determinista a partir de ``(level, total_votes)``.

        English: Deterministic color from ``(level, total_votes)``.
        """
        base = self.level_colors.get(level, self.fallback_color)
        intensity = min(total_votes / self.vote_scale, 1.0)
        factor = self.intensity_floor + (1.0 - self.intensity_floor) * intensity
        red, green, blue = (math.floor(channel * factor) for channel in base)
        return (red, green, blue, self.alpha)


DEFAULT_STYLE = StackStyle()


def project_cluster(cluster: Cluster, level: str, style: StackStyle = DEFAULT_STYLE) -> Stack:
    height = style.stack_height(cluster.candidate_count)
    return Stack(
        id=f"stack_{level}_{cluster.cluster_key}",
        level=level,
        cluster_key=cluster.cluster_key,
        # Resting on the ground: the anchor sits at half the stack height.
        position=StackPosition(lat=cluster.centroid.lat, lng=cluster.centroid.lng, height=height / 2),
        dimensions=StackDimensions(width=style.footprint, depth=style.footprint, height=height),
        candidate_count=cluster.candidate_count,
        total_votes=cluster.total_votes,
        candidates=cluster.candidates,
        color=style.color_for(level, cluster.total_votes),
        opacity=style.opacity,
        metadata=dict(cluster.metadata),
        reconciliation_timestamp=cluster.reconciliation_timestamp,
    )


def generate_stacks(
    reconciled_votes: Mapping[str, LevelResult],
    target_level: str,
    style: Optional[StackStyle] = None,
    *,
    log: Any = None,
) -> List[Stack]:
    """Genera las pilas de un nivel, ordenadas por votos descendente.

    Raises:
        MissingLevelData: si no hay resultado conciliado para ``target_level``.

    English:
        Generate the stacks for one level, sorted by votes descending.
    """
    level_result = reconciled_votes.get(target_level) if target_level else None
    if level_result is None:
        raise MissingLevelData(target_level)

    style = style or DEFAULT_STYLE
    stacks = [project_cluster(cluster, target_level, style) for cluster in level_result.clusters]
    stacks.sort(key=lambda stack: (-stack.total_votes, stack.cluster_key))

    (log or logger).debug("stacks_generated", level=target_level, stacks=len(stacks))
    return stacks
