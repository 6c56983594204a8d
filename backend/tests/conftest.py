"""Shared fixtures: settings pointed at tmp dirs and raw polling matches."""
from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable

import pytest

from shared.config import Settings
from ingest.normalization.normalizer import MatchNormalizer
from ingest.normalization.timezones import TimeConverter

RAW_MATCH: dict[str, Any] = {
    "id": "SM001",
    "teamA": {
        "players": [{"firstName": "Carlos", "lastName": "Alcaraz", "country": "ESP"}],
        "seed": 2,
        "points": "30",
        "sets": [{"score": 6}, {"score": 3}],
    },
    "teamB": {
        "players": [{"firstName": "Jannik", "lastName": "Sinner", "country": "ITA"}],
        "seed": 1,
        "points": "15",
        "sets": [{"score": 4}, {"score": 5}],
    },
    "matchData": {
        "courtName": "Court Philippe-Chatrier",
        "typeLabel": "Men's Singles",
        "roundLabel": "Semifinals",
        "status": "IN_PROGRESS",
        "endTimestamp": None,
        "notBefore": "14:00",
        "durationInMinutes": 97,
    },
}


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    public = tmp_path / "public"
    return Settings(
        _env_file=None,
        static_dir=public,
        schedule_path=public / "schedule.json",
        refresh_interval_s=30.0,
    )


@pytest.fixture
def normalizer(settings: Settings) -> MatchNormalizer:
    return MatchNormalizer(TimeConverter(settings.source_tz, settings.target_tz))


@pytest.fixture
def make_raw_match() -> Callable[..., dict[str, Any]]:
    """Build a raw match; keyword args override matchData fields, or whole teams via teamA/teamB."""

    def _make(match_id: str = "SM001", **overrides: Any) -> dict[str, Any]:
        raw = copy.deepcopy(RAW_MATCH)
        raw["id"] = match_id
        for key in ("teamA", "teamB"):
            if key in overrides:
                raw[key] = overrides.pop(key)
        raw["matchData"].update(overrides)
        return raw

    return _make
