"""
Prediction scoring and standings ranking.

``score_prediction`` is a pure function of its arguments. A default
prediction (a draw filled in for a participant who never submitted) only
ever earns the configured draw points, never an exact-score or
correct-winner award.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .snapshot import Match, ParticipantStanding, Prediction, ScoringConfig

HOME = 'HOME'
AWAY = 'AWAY'
DRAW = 'DRAW'


def outcome(home_score: int, away_score: int) -> str:
    if home_score > away_score:
        return HOME
    if home_score < away_score:
        return AWAY
    return DRAW


@dataclass(frozen=True)
class PredictionResult:
    points: int
    is_exact_score: bool
    is_correct_result: bool


def is_exact_score(prediction: Prediction, match: Match) -> bool:
    return (
        prediction.predicted_home_score == match.home_score
        and prediction.predicted_away_score == match.away_score
    )


def is_correct_result(prediction: Prediction, match: Match) -> bool:
    return (
        outcome(prediction.predicted_home_score, prediction.predicted_away_score)
        == outcome(match.home_score, match.away_score)
    )


def score_prediction(
    prediction: Prediction,
    match: Match,
    scoring: ScoringConfig,
    is_bonus_match: bool = False,
) -> PredictionResult:
    """Score one prediction against a decided match."""
    if not match.is_decided:
        raise ValueError(f"Match {match.id} is not decided")

    multiplier = 2 if is_bonus_match else 1

    if prediction.is_default_prediction:
        drawn = outcome(match.home_score, match.away_score) == DRAW
        base = scoring.default_draw_points if drawn else 0
        return PredictionResult(base * multiplier, False, False)

    if is_exact_score(prediction, match):
        return PredictionResult(scoring.exact_score_points * multiplier, True, True)
    if is_correct_result(prediction, match):
        return PredictionResult(scoring.correct_winner_points * multiplier, False, True)
    return PredictionResult(0, False, False)


def points(prediction: Prediction, match: Match, scoring: ScoringConfig, is_bonus_match: bool = False) -> int:
    return score_prediction(prediction, match, scoring, is_bonus_match).points


def _ranking_key(standing: ParticipantStanding):
    return (-standing.total_points, -standing.exact_scores, -standing.correct_results)


def rank_standings(
    standings: Iterable[ParticipantStanding],
    previous_ranks: Optional[Dict[int, int]] = None,
) -> List[ParticipantStanding]:
    """
    Sort by points, then exact scores, then correct results.

    Perfect ties share a rank and the next distinct entry skips ahead
    (1, 1, 3). When ``previous_ranks`` is given, ``rank_change`` is filled
    for every participant present in it.
    """
    ordered = sorted(standings, key=lambda s: (_ranking_key(s), s.user_id))

    current_rank = 1
    for index, standing in enumerate(ordered):
        if index > 0 and _ranking_key(standing) != _ranking_key(ordered[index - 1]):
            current_rank = index + 1
        standing.rank = current_rank

        if previous_ranks and standing.user_id in previous_ranks:
            previous = previous_ranks[standing.user_id]
            standing.previous_rank = previous
            if current_rank < previous:
                standing.rank_change = 'up'
            elif current_rank > previous:
                standing.rank_change = 'down'
            else:
                standing.rank_change = 'same'
    return ordered
