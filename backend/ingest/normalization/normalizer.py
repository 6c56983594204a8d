"""
Normalization layer for the polling feed.
Maps one raw upstream match into the canonical schedule schema.

Defaults for every optional upstream field are applied here and nowhere
else in the pipeline.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from shared.errors import MatchValidationError
from shared.models.domain import (
    CurrentScore,
    NormalizedMatch,
    PlayerOut,
    RawMatch,
    RawPlayer,
    RawTeam,
    Score,
    SetScores,
)
from shared.models.enums import MatchStatus, RoundCode

from ingest.normalization.timezones import TimeConverter

UNKNOWN_COURT = "Unknown Court"
TEAM_SEPARATOR = " / "
DEFAULT_POINTS = "0"

# Checked in order: "semifinal" and "quarterfinal" also contain "final".
ROUND_KEYWORDS: list[tuple[str, RoundCode]] = [
    ("first", RoundCode.R1),
    ("second", RoundCode.R2),
    ("third", RoundCode.R3),
    ("fourth", RoundCode.R4),
    ("quarter", RoundCode.QF),
    ("semi", RoundCode.SF),
    ("final", RoundCode.F),
]

KNOWN_STATUSES = {s.value: s for s in MatchStatus if s is not MatchStatus.UNKNOWN}


def round_to_short_label(round_label: Optional[str]) -> Optional[RoundCode]:
    """Map a round label like "Quarterfinals" to its short code, or None."""
    if not round_label:
        return None
    label = round_label.lower()
    for keyword, code in ROUND_KEYWORDS:
        if keyword in label:
            return code
    return None


def normalize_status(status: Optional[str]) -> MatchStatus:
    if not status:
        return MatchStatus.UNKNOWN
    return KNOWN_STATUSES.get(status.strip().lower(), MatchStatus.UNKNOWN)


def format_player_name(player: RawPlayer) -> str:
    """Render "<first-initial>. <last-name>", e.g. "C. Alcaraz"."""
    return f"{player.first_name[0]}. {player.last_name or ''}".rstrip()


def _players(team: RawTeam) -> list[PlayerOut]:
    return [PlayerOut(name=format_player_name(p), country=p.country or None) for p in team.players]


def _score(team_a: RawTeam, team_b: RawTeam) -> Score:
    return Score(
        current=CurrentScore(
            home=team_a.points or DEFAULT_POINTS,
            away=team_b.points or DEFAULT_POINTS,
        ),
        sets=SetScores(
            home=[s.score for s in team_a.sets],
            away=[s.score for s in team_b.sets],
        ),
    )


class MatchNormalizer:
    """
    Turns raw polling matches into ``NormalizedMatch`` objects.

    Stateless apart from the zone pair used for "not before" conversion; the
    reference instant is passed per call so one cycle can share a single
    "now" across every match.
    """

    def __init__(self, converter: TimeConverter) -> None:
        self._convert = converter

    def parse(self, raw: Any) -> RawMatch:
        """
        Validate one raw entry of the polling ``matches`` array.

        Raises:
            MatchValidationError: If the entry is not an object, required nested
                structures are missing, or a player has a blank first name.
        """
        try:
            return RawMatch.model_validate(raw)
        except ValidationError as exc:
            match_id = raw.get("id") if isinstance(raw, dict) else None
            raise MatchValidationError(match_id, exc.errors(include_url=False)) from exc

    def normalize(self, raw: RawMatch, reference: datetime) -> NormalizedMatch:
        data = raw.match_data
        players_a = _players(raw.team_a)
        players_b = _players(raw.team_b)

        return NormalizedMatch(
            id=raw.id,
            court=data.court_name or UNKNOWN_COURT,
            type_label=data.type_label or None,
            home=TEAM_SEPARATOR.join(p.name for p in players_a),
            away=TEAM_SEPARATOR.join(p.name for p in players_b),
            players_a=players_a,
            players_b=players_b,
            seed_a=raw.team_a.seed or None,
            seed_b=raw.team_b.seed or None,
            status=normalize_status(data.status),
            end_time=data.end_timestamp or None,
            not_before=data.not_before or None,
            not_before_aest=self._convert(data.not_before, reference) if data.not_before else None,
            round=round_to_short_label(data.round_label),
            score=_score(raw.team_a, raw.team_b),
            duration=data.duration_in_minutes or 0,
        )

    def normalize_raw(self, raw: Any, reference: datetime) -> NormalizedMatch:
        """Validate and normalize in one step."""
        return self.normalize(self.parse(raw), reference)
