"""Canonical data shapes shared by every engine component."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import FrozenSet, Optional, Tuple

# Stages
REGULAR_SEASON = 'REGULAR_SEASON'
LEAGUE_STAGE = 'LEAGUE_STAGE'
GROUP_STAGE = 'GROUP_STAGE'
PRELIMINARY_ROUND = 'PRELIMINARY_ROUND'
PLAYOFFS = 'PLAYOFFS'
LAST_32 = 'LAST_32'
LAST_16 = 'LAST_16'
QUARTER_FINALS = 'QUARTER_FINALS'
SEMI_FINALS = 'SEMI_FINALS'
THIRD_PLACE = 'THIRD_PLACE'
FINAL = 'FINAL'

LEAGUE_STAGES = frozenset({REGULAR_SEASON, LEAGUE_STAGE, GROUP_STAGE})

# Match statuses
SCHEDULED = 'SCHEDULED'
TIMED = 'TIMED'
IN_PLAY = 'IN_PLAY'
PAUSED = 'PAUSED'
FINISHED = 'FINISHED'
AWARDED = 'AWARDED'
POSTPONED = 'POSTPONED'
CANCELLED = 'CANCELLED'

DECIDED_STATUSES = frozenset({FINISHED, AWARDED})

# Tournament statuses
PENDING = 'pending'
WARMUP = 'warmup'
ACTIVE = 'active'
COMPLETED = 'completed'


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return an aware UTC datetime; naive values are assumed to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class CompetitionRef:
    """Either an imported competition or a user-authored custom one."""

    kind: str  # "imported" | "custom"
    id: int

    def __str__(self):
        return f"{self.kind}:{self.id}"


@dataclass(frozen=True)
class Match:
    id: int
    competition_ref: CompetitionRef
    stage: Optional[str]
    matchday: int
    kickoff_time: Optional[datetime]
    status: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    is_bonus_match: bool = False

    @property
    def is_decided(self) -> bool:
        return (
            self.status in DECIDED_STATUSES
            and self.home_score is not None
            and self.away_score is not None
        )


@dataclass(frozen=True)
class Prediction:
    user_id: int
    tournament_id: int
    match_id: int
    predicted_home_score: int
    predicted_away_score: int
    is_default_prediction: bool = False
    submitted_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "submitted_at", as_utc(self.submitted_at))


@dataclass(frozen=True)
class ScoringConfig:
    exact_score_points: int = 3
    correct_winner_points: int = 1
    default_draw_points: int = 1


@dataclass(frozen=True)
class TournamentConfig:
    id: int
    competition_ref: CompetitionRef
    starting_matchday: int
    ending_matchday: int
    status: str = ACTIVE
    bonus_match_enabled: bool = False
    early_prediction_bonus_enabled: bool = False
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    ending_date: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "ending_date", as_utc(self.ending_date))
        if self.starting_matchday > self.ending_matchday:
            raise ValueError(
                f"starting_matchday ({self.starting_matchday}) is after "
                f"ending_matchday ({self.ending_matchday})"
            )

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED


@dataclass(frozen=True)
class TournamentSnapshot:
    """Immutable input for one tournament computation."""

    tournament: TournamentConfig
    matches: Tuple[Match, ...]
    predictions: Tuple[Prediction, ...]
    participants: Tuple[int, ...]
    # (user_id, trophy_type) pairs already recorded before this run
    unlocked_trophies: FrozenSet[Tuple[int, str]] = frozenset()


@dataclass
class ParticipantStanding:
    user_id: int
    total_points: int = 0
    exact_scores: int = 0
    correct_results: int = 0
    matches_played: int = 0
    early_prediction_bonus: int = 0
    rank: int = 0
    previous_rank: Optional[int] = None
    rank_change: Optional[str] = None  # "up" | "down" | "same"


@dataclass(frozen=True)
class TrophyUnlockEvent:
    user_id: int
    trophy_type: str
    unlocked_at: datetime
    tournament_id: Optional[int] = None
