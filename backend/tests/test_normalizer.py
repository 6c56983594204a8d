"""
Unit tests for match normalization: round and status mapping, player
rendering, defaults for missing upstream fields, and validation failures.
"""
from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from shared.errors import MatchValidationError
from shared.models.enums import MatchStatus, RoundCode
from ingest.normalization.normalizer import (
    UNKNOWN_COURT,
    MatchNormalizer,
    normalize_status,
    round_to_short_label,
)

REFERENCE = datetime(2025, 6, 5, 9, 0, tzinfo=timezone.utc)


# ── round_to_short_label ────────────────────────────────────────────────

class TestRoundLabel:

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("First Round", RoundCode.R1),
            ("second round", RoundCode.R2),
            ("Third Round", RoundCode.R3),
            ("FOURTH ROUND", RoundCode.R4),
            ("QUARTERFINAL", RoundCode.QF),
            ("Quarter-finals", RoundCode.QF),
            ("Semifinals", RoundCode.SF),
            ("Semi-Final", RoundCode.SF),
            ("Final", RoundCode.F),
        ],
    )
    def test_known_labels(self, label: str, expected: RoundCode) -> None:
        assert round_to_short_label(label) == expected

    @pytest.mark.parametrize("label", ["Bronze Medal", "Qualifying", "", None])
    def test_unmatched_is_none(self, label: Any) -> None:
        assert round_to_short_label(label) is None


# ── normalize_status ────────────────────────────────────────────────────

class TestStatus:

    @pytest.mark.parametrize("value", ["in_progress", "finished", "not_started", "interrupted"])
    def test_known_values_pass_through(self, value: str) -> None:
        assert normalize_status(value) == MatchStatus(value)

    def test_case_insensitive(self) -> None:
        assert normalize_status("FINISHED") == MatchStatus.FINISHED

    @pytest.mark.parametrize("value", [None, "", "suspended", "walkover", "in progress"])
    def test_everything_else_is_unknown(self, value: Any) -> None:
        assert normalize_status(value) == MatchStatus.UNKNOWN


# ── MatchNormalizer ─────────────────────────────────────────────────────

class TestNormalize:

    def test_full_match(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        match = normalizer.normalize_raw(make_raw_match(), REFERENCE)

        assert match.id == "SM001"
        assert match.court == "Court Philippe-Chatrier"
        assert match.type_label == "Men's Singles"
        assert match.home == "C. Alcaraz"
        assert match.away == "J. Sinner"
        assert match.players_a[0].country == "ESP"
        assert match.seed_a == 2
        assert match.seed_b == 1
        assert match.status == MatchStatus.IN_PROGRESS
        assert match.round == RoundCode.SF
        assert match.score.current.home == "30"
        assert match.score.current.away == "15"
        assert match.score.sets.home == [6, 3]
        assert match.score.sets.away == [4, 5]
        assert match.not_before == "14:00"
        # 5 June: CEST +2, AEST +10
        assert match.not_before_aest == "22:00"
        assert match.duration == 97
        assert match.start_time is None

    def test_wire_shape_uses_camel_case(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        wire = normalizer.normalize_raw(make_raw_match(), REFERENCE).to_wire()

        assert list(wire) == [
            "id", "court", "typeLabel", "home", "away", "playersA", "playersB",
            "seedA", "seedB", "status", "startTime", "endTime", "notBefore",
            "notBeforeAEST", "round", "score", "duration",
        ]
        assert wire["status"] == "in_progress"
        assert wire["round"] == "SF"
        assert wire["startTime"] is None
        assert wire["score"] == {
            "current": {"home": "30", "away": "15"},
            "sets": {"home": [6, 3], "away": [4, 5]},
        }
        assert wire["playersA"] == [{"name": "C. Alcaraz", "country": "ESP"}]

    def test_missing_optional_fields_use_defaults(self, normalizer: MatchNormalizer) -> None:
        raw = {
            "id": 42,
            "teamA": {"players": [{"firstName": "Iga", "lastName": "Swiatek"}]},
            "teamB": {"players": [{"firstName": "Coco", "lastName": "Gauff"}], "sets": None},
            "matchData": {},
        }
        match = normalizer.normalize_raw(raw, REFERENCE)

        assert match.id == 42
        assert match.court == UNKNOWN_COURT
        assert match.type_label is None
        assert match.seed_a is None and match.seed_b is None
        assert match.players_a[0].country is None
        assert match.score.current.home == "0"
        assert match.score.current.away == "0"
        assert match.score.sets.home == []
        assert match.score.sets.away == []
        assert match.status == MatchStatus.UNKNOWN
        assert match.round is None
        assert match.end_time is None
        assert match.not_before is None
        assert match.not_before_aest is None
        assert match.duration == 0

    def test_falsy_upstream_values_collapse_to_defaults(
        self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]
    ) -> None:
        raw = make_raw_match(courtName="", durationInMinutes="n/a", notBefore="")
        raw["teamA"]["seed"] = 0
        raw["teamA"]["points"] = ""
        raw["teamA"]["players"][0]["country"] = ""
        match = normalizer.normalize_raw(raw, REFERENCE)

        assert match.court == UNKNOWN_COURT
        assert match.duration == 0
        assert match.not_before is None
        assert match.not_before_aest is None
        assert match.seed_a is None
        assert match.score.current.home == "0"
        assert match.players_a[0].country is None

    def test_doubles_team_joined(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        raw = make_raw_match(
            teamA={
                "players": [
                    {"firstName": "Marcelo", "lastName": "Arevalo", "country": "ESA"},
                    {"firstName": "Mate", "lastName": "Pavic", "country": "CRO"},
                ],
            },
        )
        match = normalizer.normalize_raw(raw, REFERENCE)
        assert match.home == "M. Arevalo / M. Pavic"
        assert [p.name for p in match.players_a] == ["M. Arevalo", "M. Pavic"]

    def test_unparsable_not_before_keeps_raw_value(
        self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]
    ) -> None:
        match = normalizer.normalize_raw(make_raw_match(notBefore="25:99"), REFERENCE)
        assert match.not_before == "25:99"
        assert match.not_before_aest is None

    def test_end_timestamp_passed_through(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        match = normalizer.normalize_raw(make_raw_match(endTimestamp=1749130000000), REFERENCE)
        assert match.end_time == 1749130000000

    def test_input_is_not_mutated(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        raw = make_raw_match()
        before = copy.deepcopy(raw)
        normalizer.normalize_raw(raw, REFERENCE)
        assert raw == before

    def test_unknown_upstream_keys_ignored(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        raw = make_raw_match(weather="sunny")
        raw["extra"] = {"anything": True}
        assert normalizer.normalize_raw(raw, REFERENCE).court == "Court Philippe-Chatrier"


class TestValidationFailures:

    def test_empty_first_name(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        raw = make_raw_match()
        raw["teamB"]["players"][0]["firstName"] = ""
        with pytest.raises(MatchValidationError) as exc_info:
            normalizer.normalize_raw(raw, REFERENCE)
        assert exc_info.value.match_id == "SM001"
        assert "firstName" in str(exc_info.value)

    def test_blank_first_name(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        raw = make_raw_match()
        raw["teamA"]["players"][0]["firstName"] = "   "
        with pytest.raises(MatchValidationError):
            normalizer.normalize_raw(raw, REFERENCE)

    def test_padded_first_name_is_trimmed(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        raw = make_raw_match()
        raw["teamA"]["players"][0]["firstName"] = "  Carlos"
        assert normalizer.normalize_raw(raw, REFERENCE).players_a[0].name == "C. Alcaraz"

    def test_missing_roster(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        raw = make_raw_match()
        del raw["teamA"]["players"]
        with pytest.raises(MatchValidationError):
            normalizer.normalize_raw(raw, REFERENCE)

    def test_missing_match_data(self, normalizer: MatchNormalizer, make_raw_match: Callable[..., dict]) -> None:
        raw = make_raw_match()
        del raw["matchData"]
        with pytest.raises(MatchValidationError):
            normalizer.normalize_raw(raw, REFERENCE)

    def test_non_object_match(self, normalizer: MatchNormalizer) -> None:
        with pytest.raises(MatchValidationError) as exc_info:
            normalizer.normalize_raw("not a match", REFERENCE)
        assert exc_info.value.match_id is None
