"""
Per-matchday leaderboards and tournament standings.

A group is eligible only when every match in it is decided. Points of
decided matches always count towards the standings, but leadership is
only awarded on eligible groups.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from .exceptions import MissingScheduleData
from .scoring import PredictionResult, rank_standings, score_prediction
from .sequencer import MatchGroup
from .snapshot import Match, ParticipantStanding, Prediction, TournamentConfig


@dataclass(frozen=True)
class ScoredPrediction:
    prediction: Prediction
    match: Match
    result: PredictionResult
    is_bonus_match: bool


@dataclass
class GroupResult:
    group: MatchGroup
    eligible: bool
    points_by_user: Dict[int, int] = field(default_factory=dict)
    scored_by_user: Dict[int, List[ScoredPrediction]] = field(default_factory=dict)
    max_points: Optional[int] = None
    min_points: Optional[int] = None
    leaders: FrozenSet[int] = frozenset()
    lasts: FrozenSet[int] = frozenset()

    @property
    def ended_at(self) -> Optional[datetime]:
        return self.group.latest_kickoff

    @property
    def credited_leaders(self) -> FrozenSet[int]:
        """
        Participants credited with leading this group.

        The top score only counts when it is above zero or held by a single
        participant; a shared zero credits nobody.
        """
        if not self.eligible or not self.leaders:
            return frozenset()
        if self.max_points > 0 or len(self.leaders) == 1:
            return self.leaders
        return frozenset()

    @property
    def sole_last(self) -> Optional[int]:
        if not self.eligible or len(self.lasts) != 1 or len(self.points_by_user) < 2:
            return None
        return next(iter(self.lasts))

    def is_leader(self, user_id: int) -> bool:
        return user_id in self.credited_leaders

    def predictions_of(self, user_id: int) -> List[ScoredPrediction]:
        return self.scored_by_user.get(user_id, [])


def index_predictions(predictions: Iterable[Prediction], participants: Iterable[int]) -> Dict[Tuple[int, int], Prediction]:
    members = set(participants)
    index = {}
    for prediction in predictions:
        if prediction.user_id in members:
            index[(prediction.user_id, prediction.match_id)] = prediction
    return index


def is_bonus(match: Match, tournament: TournamentConfig) -> bool:
    return tournament.bonus_match_enabled and match.is_bonus_match


def compute_group_result(
    group: MatchGroup,
    prediction_index: Mapping[Tuple[int, int], Prediction],
    participants: Iterable[int],
    tournament: TournamentConfig,
) -> GroupResult:
    participants = list(participants)
    result = GroupResult(group=group, eligible=group.is_decided)
    result.points_by_user = {user_id: 0 for user_id in participants}
    result.scored_by_user = {user_id: [] for user_id in participants}

    for match in group.matches:
        if not match.is_decided:
            continue
        bonus = is_bonus(match, tournament)
        for user_id in participants:
            prediction = prediction_index.get((user_id, match.id))
            if prediction is None:
                continue
            scored = score_prediction(prediction, match, tournament.scoring, bonus)
            result.points_by_user[user_id] += scored.points
            result.scored_by_user[user_id].append(ScoredPrediction(prediction, match, scored, bonus))

    if result.eligible and participants:
        values = result.points_by_user.values()
        result.max_points = max(values)
        result.min_points = min(values)
        result.leaders = frozenset(u for u, p in result.points_by_user.items() if p == result.max_points)
        result.lasts = frozenset(u for u, p in result.points_by_user.items() if p == result.min_points)
    return result


def compute_group_results(
    groups: Iterable[MatchGroup],
    predictions: Iterable[Prediction],
    participants: Iterable[int],
    tournament: TournamentConfig,
    deadline=None,
) -> List[GroupResult]:
    participants = list(participants)
    prediction_index = index_predictions(predictions, participants)
    results = []
    for group in groups:
        if deadline is not None:
            deadline.check()
        results.append(compute_group_result(group, prediction_index, participants, tournament))
    return results


def require_schedule(group: MatchGroup) -> MatchGroup:
    if group.is_empty:
        raise MissingScheduleData(group.virtual_order)
    return group


def build_standings(
    group_results: List[GroupResult],
    participants: Iterable[int],
    on_time: Optional[Mapping[int, Set[int]]] = None,
    early_bonus_points: int = 0,
) -> List[ParticipantStanding]:
    """
    Aggregate all decided predictions into ranked standings.

    ``on_time`` maps a user to the positions (indexes into
    ``group_results``) of eligible groups they predicted on time; each one
    adds ``early_bonus_points``. Previous ranks are taken as of the
    second-to-last eligible group.
    """
    participants = list(participants)
    on_time = on_time or {}
    totals = {user_id: ParticipantStanding(user_id=user_id) for user_id in participants}

    eligible_positions = [i for i, r in enumerate(group_results) if r.eligible]
    previous_cutoff = eligible_positions[-2] if len(eligible_positions) >= 2 else None
    previous = None

    for position, group_result in enumerate(group_results):
        for user_id in participants:
            standing = totals[user_id]
            for scored in group_result.predictions_of(user_id):
                standing.total_points += scored.result.points
                if scored.prediction.is_default_prediction:
                    continue
                standing.matches_played += 1
                if scored.result.is_exact_score:
                    standing.exact_scores += 1
                if scored.result.is_correct_result:
                    standing.correct_results += 1
            if early_bonus_points and position in on_time.get(user_id, ()):
                standing.total_points += early_bonus_points
                standing.early_prediction_bonus += early_bonus_points

        if position == previous_cutoff:
            previous = rank_standings(copy.deepcopy(list(totals.values())))

    previous_ranks = {s.user_id: s.rank for s in previous} if previous else None
    return rank_standings(totals.values(), previous_ranks)
