"""Fixtures compartidas: candidatos y canales sintéticos.

English: Shared fixtures: synthetic candidates and channels.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import pytest

from conciliador.core.audit import ReconciliationAuditLog
from conciliador.engine import VoteReconciliationEngine

CITY_COORDS = {
    "Paris": (48.8566, 2.3522),
    "Lyon": (45.764, 4.8357),
    "Berlin": (52.52, 13.405),
    "Munich": (48.1351, 11.582),
    "Madrid": (40.4168, -3.7038),
    "Tokyo": (35.6762, 139.6503),
}

GEOGRAPHY = {
    "Paris": ("Ile-de-France", "France", "FR", "Europe"),
    "Lyon": ("Auvergne-Rhone-Alpes", "France", "FR", "Europe"),
    "Berlin": ("Berlin", "Germany", "DE", "Europe"),
    "Munich": ("Bavaria", "Germany", "DE", "Europe"),
    "Madrid": ("Community of Madrid", "Spain", "ES", "Europe"),
    "Tokyo": ("Tokyo", "Japan", "JP", "Asia"),
}


def build_candidate(
    candidate_id: str,
    city: str,
    votes: Optional[int] = 0,
    *,
    name: Optional[str] = None,
    offset: float = 0.0,
    **overrides: Any,
) -> Dict[str, Any]:
    """Construye un candidato completo ubicado en ``city``.

    English: Build a complete candidate located in ``city``.
    """
    province, country, code, region = GEOGRAPHY[city]
    lat, lng = CITY_COORDS[city]
    lat += offset
    lng += offset
    candidate: Dict[str, Any] = {
        "id": candidate_id,
        "name": name or f"Candidate {candidate_id}",
        "city": city,
        "province": province,
        "country": country,
        "countryCode": code,
        "region": region,
        "location": {"lat": lat, "lng": lng},
        "clusterKeys": {
            "gps": f"{lat:.6f}_{lng:.6f}",
            "city": city,
            "province": province,
            "country": country,
            "region": region,
            "global": "GLOBAL",
        },
    }
    if votes is not None:
        candidate["votes"] = votes
    candidate.update(overrides)
    return candidate


@pytest.fixture
def make_candidate() -> Callable[..., Dict[str, Any]]:
    return build_candidate


@pytest.fixture
def europe_channel() -> Dict[str, Any]:
    """Canal de ejemplo: París 100, Lyon 50, Berlín 25.

    English: Example channel: Paris 100, Lyon 50, Berlin 25.
    """
    return {
        "id": "channel-europe",
        "name": "Europe Channel",
        "candidates": [
            build_candidate("A", "Paris", 100),
            build_candidate("B", "Lyon", 50),
            build_candidate("C", "Berlin", 25),
        ],
    }


@pytest.fixture
def large_channel() -> Dict[str, Any]:
    cities = list(CITY_COORDS)
    candidates = []
    for index in range(60):
        city = cities[index % len(cities)]
        candidates.append(
            build_candidate(
                f"cand_{index:03d}",
                city,
                (index * 37) % 211,
                offset=(index % 4) * 0.01,
            )
        )
    return {"id": "channel-large", "name": "Large Channel", "candidates": candidates}


@pytest.fixture
def engine() -> VoteReconciliationEngine:
    return VoteReconciliationEngine(audit_log=ReconciliationAuditLog())
