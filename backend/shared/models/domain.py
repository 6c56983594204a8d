"""
Pydantic v2 models for the Courtside schedule service.

Two families live here:
- Upstream shapes (``Raw*``), parsed from the polling endpoint. Every field
  the endpoint may omit is Optional; defaults are applied by the normalizer,
  not here.
- Output shapes, serialized by alias into the camelCase JSON the front-end
  reads from ``schedule.json``.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.models.enums import MatchStatus, RoundCode

ScoreValue = Union[int, str]
Timestamp = Union[int, float, str]


# ── Base ────────────────────────────────────────────────────────────────
class UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class OutputModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ── Upstream (polling endpoint) ─────────────────────────────────────────
class RawPlayer(UpstreamModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(alias="firstName", min_length=1)
    last_name: Optional[str] = Field(default=None, alias="lastName")
    country: Optional[str] = None


class RawSet(UpstreamModel):
    score: Optional[ScoreValue] = None


class RawTeam(UpstreamModel):
    players: list[RawPlayer]
    seed: Optional[ScoreValue] = None
    points: Optional[ScoreValue] = None
    sets: list[RawSet] = Field(default_factory=list)

    @field_validator("sets", mode="before")
    @classmethod
    def none_sets_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class RawMatchData(UpstreamModel):
    court_name: Optional[str] = Field(default=None, alias="courtName")
    type_label: Optional[str] = Field(default=None, alias="typeLabel")
    round_label: Optional[str] = Field(default=None, alias="roundLabel")
    status: Optional[str] = None
    end_timestamp: Optional[Timestamp] = Field(default=None, alias="endTimestamp")
    not_before: Optional[Timestamp] = Field(default=None, alias="notBefore")
    duration_in_minutes: Optional[Union[int, float]] = Field(
        default=None, alias="durationInMinutes"
    )

    @field_validator("duration_in_minutes", mode="before")
    @classmethod
    def coerce_minutes(cls, value: Any) -> Any:
        """Non-numeric durations count as absent."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            return None


class RawMatch(UpstreamModel):
    id: Optional[Union[int, str]] = None
    team_a: RawTeam = Field(alias="teamA")
    team_b: RawTeam = Field(alias="teamB")
    match_data: RawMatchData = Field(alias="matchData")


class PollingPayload(UpstreamModel):
    """Top-level polling body. Entries stay raw, of any type, so each one validates on its own."""
    matches: list[Any] = Field(default_factory=list)

    @field_validator("matches", mode="before")
    @classmethod
    def none_matches_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


# ── Output (schedule.json) ──────────────────────────────────────────────
class PlayerOut(OutputModel):
    name: str
    country: Optional[str] = None


class CurrentScore(OutputModel):
    home: ScoreValue = "0"
    away: ScoreValue = "0"


class SetScores(OutputModel):
    home: list[Optional[ScoreValue]] = Field(default_factory=list)
    away: list[Optional[ScoreValue]] = Field(default_factory=list)


class Score(OutputModel):
    current: CurrentScore = Field(default_factory=CurrentScore)
    sets: SetScores = Field(default_factory=SetScores)


class NormalizedMatch(OutputModel):
    id: Optional[Union[int, str]] = None
    court: str
    type_label: Optional[str] = Field(default=None, alias="typeLabel")
    home: str
    away: str
    players_a: list[PlayerOut] = Field(alias="playersA")
    players_b: list[PlayerOut] = Field(alias="playersB")
    seed_a: Optional[ScoreValue] = Field(default=None, alias="seedA")
    seed_b: Optional[ScoreValue] = Field(default=None, alias="seedB")
    status: MatchStatus = MatchStatus.UNKNOWN
    start_time: None = Field(default=None, alias="startTime")
    end_time: Optional[Timestamp] = Field(default=None, alias="endTime")
    not_before: Optional[Timestamp] = Field(default=None, alias="notBefore")
    not_before_aest: Optional[str] = Field(default=None, alias="notBeforeAEST")
    round: Optional[RoundCode] = None
    score: Score = Field(default_factory=Score)
    duration: Union[int, float] = 0


# ── Refresh cycle outcome ───────────────────────────────────────────────
class CycleResult(OutputModel):
    ok: bool
    started_at: datetime
    finished_at: Optional[datetime] = None
    courts: int = 0
    matches: int = 0
    rejected: int = 0
    error: Optional[str] = None
