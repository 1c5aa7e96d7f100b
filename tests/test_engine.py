"""Pruebas de extremo a extremo del motor de conciliación.

English: End-to-end tests for the reconciliation engine.
"""

from __future__ import annotations

import random
import re
from dataclasses import replace
from typing import Any

import pytest
from structlog.testing import capture_logs

import conciliador.engine as engine_module
from conciliador.config import load_config
from conciliador.core.audit import ReconciliationAuditLog
from conciliador.core.levels import LEVELS
from conciliador.core.models import Integrity
from conciliador.engine import VoteReconciliationEngine
from conciliador.errors import (
    EmptyCandidateList,
    InvalidGeography,
    InvalidLocation,
    InvalidVoteCount,
    MissingChannelId,
    VoteConservationViolation,
)
from conciliador.schemas import load_channel

VOLATILE_KEYS = {"reconciliationId", "reconciliationTime", "reconciliationTimestamp"}


def _stable(payload: Any) -> Any:
    """Quita campos de tiempo e identificador para comparar resultados."""
    if isinstance(payload, dict):
        return {key: _stable(value) for key, value in payload.items() if key not in VOLATILE_KEYS}
    if isinstance(payload, list):
        return [_stable(item) for item in payload]
    return payload


EXPECTED_CLUSTERS = {
    "city": [("Paris", 100), ("Lyon", 50), ("Berlin", 25)],
    "province": [("Ile-de-France", 100), ("Auvergne-Rhone-Alpes", 50), ("Berlin", 25)],
    "country": [("France", 150), ("Germany", 25)],
    "region": [("Europe", 175)],
    "global": [("GLOBAL", 175)],
}


def test_europe_channel_reconciles_every_level(engine, europe_channel) -> None:
    result = engine.reconcile(europe_channel)

    assert result.channel_id == "channel-europe"
    assert result.total_votes == 175
    assert result.integrity is Integrity.PERFECT
    assert list(result.reconciled_votes) == list(LEVELS)
    for level, expected in EXPECTED_CLUSTERS.items():
        clusters = result.reconciled_votes[level].clusters
        assert [(c.cluster_key, c.total_votes) for c in clusters] == expected
    assert [c.total_votes for c in result.reconciled_votes["gps"].clusters] == [100, 50, 25]


def test_reconciliation_id_format(engine, europe_channel) -> None:
    result = engine.reconcile(europe_channel)

    assert re.fullmatch(r"reconcile_\d+_[0-9a-f]{6}", result.reconciliation_id)
    assert result.reconciliation_time >= 0


def test_votes_are_conserved_across_levels(engine, large_channel) -> None:
    expected = sum(candidate["votes"] for candidate in large_channel["candidates"])

    result = engine.reconcile(large_channel)

    for level in LEVELS:
        level_result = result.reconciled_votes[level]
        assert level_result.total_votes == expected
        assert level_result.total_candidates == 60
        assert sum(c.candidate_count for c in level_result.clusters) == 60
    assert result.reconciled_votes["global"].cluster_count == 1


def test_every_cluster_equals_sum_of_its_members(engine, large_channel) -> None:
    result = engine.reconcile(large_channel)

    for level_result in result.reconciled_votes.values():
        for cluster in level_result.clusters:
            assert cluster.total_votes == sum(candidate.votes for candidate in cluster.candidates)


def test_all_clusters_share_one_timestamp(engine, europe_channel) -> None:
    result = engine.reconcile(europe_channel)

    stamps = {
        cluster.reconciliation_timestamp
        for level_result in result.reconciled_votes.values()
        for cluster in level_result.clusters
    }
    assert len(stamps) == 1


def test_reconcile_is_idempotent(engine, large_channel) -> None:
    first = engine.reconcile(large_channel).to_dict()
    second = engine.reconcile(large_channel).to_dict()

    assert _stable(first) == _stable(second)


def test_input_order_does_not_change_output(engine, large_channel) -> None:
    shuffled = dict(large_channel)
    shuffled["candidates"] = list(large_channel["candidates"])
    random.Random(7).shuffle(shuffled["candidates"])

    assert _stable(engine.reconcile(large_channel).to_dict()) == _stable(engine.reconcile(shuffled).to_dict())


def test_single_candidate_channel(engine, make_candidate) -> None:
    result = engine.reconcile({"id": 7, "candidates": [make_candidate("solo", "Madrid", 3)]})

    for level in LEVELS:
        level_result = result.reconciled_votes[level]
        assert level_result.cluster_count == 1
        assert level_result.total_votes == 3
        assert level_result.clusters[0].centroid.lat == pytest.approx(40.4168)


def test_candidates_without_votes_count_as_zero(engine, make_candidate) -> None:
    channel = {
        "id": "c",
        "candidates": [
            make_candidate("A", "Paris", None),
            make_candidate("B", "Paris", None, voteComponents={"testVotes": 1, "realVotes": 2, "bonusVotes": 3}),
            make_candidate("C", "Paris", None, voteCount=4.0),
        ],
    }

    result = engine.reconcile(channel)

    assert result.total_votes == 10
    assert [c.id for c in result.reconciled_votes["city"].clusters[0].candidates] == ["B", "C", "A"]


def test_unknown_city_is_rejected_without_audit_entry(engine, europe_channel) -> None:
    europe_channel["candidates"][1]["city"] = "unknown city"

    with pytest.raises(InvalidGeography) as excinfo:
        engine.reconcile(europe_channel)

    assert (excinfo.value.field, excinfo.value.value) == ("city", "unknown city")
    assert excinfo.value.candidate_id == "B"
    assert engine.stats().total_reconciliations == 0


@pytest.mark.parametrize(
    ("channel", "error"),
    [
        ({"candidates": []}, MissingChannelId),
        ({"id": "x", "candidates": []}, EmptyCandidateList),
        ({"id": "x"}, EmptyCandidateList),
    ],
)
def test_channel_level_failures(engine, channel, error) -> None:
    with pytest.raises(error):
        engine.reconcile(channel)


def test_negative_votes_rejected(engine, make_candidate) -> None:
    with pytest.raises(InvalidVoteCount):
        engine.reconcile({"id": "x", "candidates": [make_candidate("A", "Paris", -1)]})


def test_conservation_violation_aborts_reconciliation(engine, europe_channel, monkeypatch) -> None:
    real_reconcile_level = engine_module.reconcile_level

    def drifting(hierarchy, level, **kwargs):
        result = real_reconcile_level(hierarchy, level, **kwargs)
        if level == "region":
            return replace(result, total_votes=result.total_votes - 1)
        return result

    monkeypatch.setattr(engine_module, "reconcile_level", drifting)

    with pytest.raises(VoteConservationViolation) as excinfo:
        engine.reconcile(europe_channel)

    assert excinfo.value.level == "region"
    assert engine.stats().total_reconciliations == 0


def test_success_is_recorded_in_audit_log(engine, europe_channel) -> None:
    result = engine.reconcile(europe_channel)

    stats = engine.stats()
    assert stats.total_reconciliations == 1
    entry = stats.recent_reconciliations[0]
    assert entry.reconciliation_id == result.reconciliation_id
    assert entry.channel_id == "channel-europe"
    assert entry.summary["country"] == {"clusters": 2, "candidates": 3, "votes": 175}


def test_reconcile_many_keeps_input_order(engine, europe_channel, large_channel) -> None:
    results = engine.reconcile_many([europe_channel, large_channel, europe_channel], max_workers=3)

    assert [r.channel_id for r in results] == ["channel-europe", "channel-large", "channel-europe"]
    assert engine.stats().total_reconciliations == 3
    assert len({r.reconciliation_id for r in results}) == 3


def test_reconcile_many_empty(engine) -> None:
    assert engine.reconcile_many([]) == []


def test_reconcile_many_propagates_first_failure(engine, europe_channel) -> None:
    with pytest.raises(MissingChannelId):
        engine.reconcile_many([europe_channel, {"candidates": []}])


def test_accepts_channel_payload(engine, europe_channel) -> None:
    result = engine.reconcile(load_channel(europe_channel))

    assert result.total_votes == 175


def test_settings_drive_sentinel_and_capacity(make_candidate) -> None:
    settings = load_config(AUDIT_CAPACITY=2, AUDIT_RECENT=1, UNKNOWN_SENTINEL="n/a")
    engine = VoteReconciliationEngine(settings=settings)
    candidate = make_candidate("A", "Paris", 1)
    candidate["city"] = "Unknownville"
    channel = {"id": "x", "candidates": [candidate]}

    for _ in range(3):
        engine.reconcile(channel)

    stats = engine.stats()
    assert stats.total_reconciliations == 2
    assert len(stats.recent_reconciliations) == 1

    candidate["city"] = "N/A"
    with pytest.raises(InvalidGeography):
        engine.reconcile(channel)


def test_default_sentinel_rejects_unknown_substring(make_candidate) -> None:
    engine = VoteReconciliationEngine(audit_log=ReconciliationAuditLog())

    with pytest.raises(InvalidGeography):
        engine.reconcile({"id": "x", "candidates": [make_candidate("A", "Paris", 1, province="UNKNOWN")]})


def test_result_to_dict_shape(engine, europe_channel) -> None:
    payload = engine.reconcile(europe_channel).to_dict()

    assert set(payload) == {
        "reconciliationId",
        "channelId",
        "reconciledVotes",
        "totalVotes",
        "reconciliationTime",
        "integrity",
    }
    assert payload["integrity"] == "PERFECT"
    country = payload["reconciledVotes"]["country"]
    assert country["clusterCount"] == 2
    assert country["reconciliationComplete"] is True
    france = country["clusters"][0]
    assert france["clusterKey"] == "France"
    assert france["candidates"][0] == europe_channel["candidates"][0]
    assert set(france["centroid"]) == {"lat", "lng", "validLocations", "totalCandidates"}


def test_structured_log_events(engine, europe_channel) -> None:
    with capture_logs() as logs:
        result = engine.reconcile(europe_channel)

    events = [entry["event"] for entry in logs]
    assert events[0] == "reconciliation_started"
    assert events[-1] == "reconciliation_completed"
    assert events.count("level_reconciled") == len(LEVELS)
    assert logs[-1]["reconciliation_id"] == result.reconciliation_id
    assert logs[-1]["channel_id"] == "channel-europe"
    assert logs[-1]["total_votes"] == 175


def test_failure_is_logged_with_error_type(engine, europe_channel) -> None:
    europe_channel["candidates"][0]["region"] = None

    with capture_logs() as logs, pytest.raises(InvalidGeography):
        engine.reconcile(europe_channel)

    failed = [entry for entry in logs if entry["event"] == "reconciliation_failed"]
    assert failed[0]["error_type"] == "InvalidGeography"
    assert failed[0]["log_level"] == "error"


@pytest.mark.parametrize(
    ("field", "value", "error"),
    [
        ("city", "unknown city", InvalidGeography),
        ("location", {"lat": None, "lng": 2.3}, InvalidLocation),
    ],
)
def test_invalid_input_aborts_before_hierarchy_build(
    engine, europe_channel, monkeypatch, field, value, error
) -> None:
    calls = []
    real_build_hierarchy = engine_module.build_hierarchy

    def recording(candidates):
        calls.append(candidates)
        return real_build_hierarchy(candidates)

    monkeypatch.setattr(engine_module, "build_hierarchy", recording)
    europe_channel["candidates"][2][field] = value

    with pytest.raises(error):
        engine.reconcile(europe_channel)

    assert calls == []


def test_valid_input_builds_hierarchy_once(engine, europe_channel, monkeypatch) -> None:
    calls = []
    real_build_hierarchy = engine_module.build_hierarchy

    def recording(candidates):
        calls.append(candidates)
        return real_build_hierarchy(candidates)

    monkeypatch.setattr(engine_module, "build_hierarchy", recording)

    engine.reconcile(europe_channel)

    assert len(calls) == 1
