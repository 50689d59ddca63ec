"""
Trophy eligibility rules.

Each trophy is a rule ``(context, user_id) -> unlock time or None``.
Evaluation is stateless: the same snapshot always yields the same events,
and trophy types already recorded for a user are never emitted again.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from .exceptions import InconsistentCompletionState
from .leaderboard import GroupResult
from .snapshot import ParticipantStanding, TournamentConfig, TrophyUnlockEvent
from .streaks import StreakState

logger = logging.getLogger(__name__)

LEGEND_MIN_PARTICIPANTS = 11


@dataclass(frozen=True)
class TrophyInfo:
    name: str
    description: str


TROPHY_INFO = OrderedDict([
    ('correct_result', TrophyInfo('The Lucky One', 'Predict at least one correct result')),
    ('exact_score', TrophyInfo('The Analyst', 'Predict at least one exact score')),
    ('king_of_day', TrophyInfo('King of the Day', 'Top the ranking of a matchday')),
    ('double_king', TrophyInfo('Double King', 'Top the ranking of two consecutive matchdays')),
    ('opportunist', TrophyInfo('The Opportunist', 'Two correct results on the same matchday')),
    ('nostradamus', TrophyInfo('Nostradamus', 'Two exact scores on the same matchday')),
    ('lantern', TrophyInfo('Red Lantern', 'Finish a matchday alone in last place')),
    ('downward_spiral', TrophyInfo('Downward Spiral', 'Finish alone in last place two matchdays in a row')),
    ('bonus_profiteer', TrophyInfo('The Profiteer', 'A correct result on a bonus match')),
    ('bonus_optimizer', TrophyInfo('The Optimizer', 'An exact score on a bonus match')),
    ('ultra_dominator', TrophyInfo('Ultra Dominator', 'Top the ranking of every matchday of a tournament')),
    ('poulidor', TrophyInfo('Eternal Runner-up', 'Never top a matchday of a finished tournament')),
    ('cursed', TrophyInfo('The Cursed', 'Not a single correct result on a matchday')),
    ('tournament_winner', TrophyInfo("Ballon d'Or", 'Win a tournament outright')),
    ('legend', TrophyInfo('The Legend', 'Win a tournament of more than 10 participants')),
    ('abyssal', TrophyInfo('The Abyssal', 'Finish a tournament alone in last place')),
])

TROPHY_TYPES = tuple(TROPHY_INFO)


def get_trophy_info(trophy_type):
    return TROPHY_INFO.get(trophy_type, TrophyInfo('Unknown trophy', 'No description available'))


@dataclass
class TrophyContext:
    tournament: TournamentConfig
    participants: Tuple[int, ...]
    group_results: List[GroupResult]
    streaks: Dict[int, StreakState]
    standings: List[ParticipantStanding]
    computed_at: datetime
    warnings: List[InconsistentCompletionState] = field(default_factory=list)

    @property
    def all_decided(self) -> bool:
        return bool(self.group_results) and all(r.eligible for r in self.group_results)

    @property
    def is_cleanly_completed(self) -> bool:
        return self.tournament.is_completed and self.all_decided

    @property
    def final_time(self) -> datetime:
        kickoffs = [r.ended_at for r in self.group_results if r.ended_at is not None]
        return max(kickoffs) if kickoffs else self.computed_at

    def group_time(self, result: GroupResult) -> datetime:
        return result.ended_at or self.computed_at


def build_context(tournament, participants, group_results, streaks, standings, computed_at) -> TrophyContext:
    context = TrophyContext(
        tournament=tournament,
        participants=tuple(participants),
        group_results=group_results,
        streaks=streaks,
        standings=standings,
        computed_at=computed_at,
    )
    if tournament.is_completed and not context.all_decided:
        undecided = sum(
            1 for r in group_results for m in r.group.matches if not m.is_decided
        ) + sum(1 for r in group_results if r.group.is_empty)
        warning = InconsistentCompletionState(tournament.id, undecided)
        logger.warning("Data integrity: %s", warning)
        context.warnings.append(warning)
    return context


Rule = Callable[[TrophyContext, int], Optional[datetime]]
RULES: "OrderedDict[str, Rule]" = OrderedDict()


def rule(trophy_type):
    def register(func):
        RULES[trophy_type] = func
        return func
    return register


def _first_prediction(context, user_id, predicate):
    for result in context.group_results:
        for scored in result.predictions_of(user_id):
            if scored.prediction.is_default_prediction:
                continue
            if predicate(scored):
                return scored.match.kickoff_time or context.group_time(result)
    return None


def _first_group(context, user_id, predicate):
    for result in context.group_results:
        if result.eligible and predicate(result, user_id):
            return context.group_time(result)
    return None


def _count_in_group(result, user_id, attr):
    return sum(
        1 for s in result.predictions_of(user_id)
        if not s.prediction.is_default_prediction and getattr(s.result, attr)
    )


@rule('correct_result')
def correct_result(context, user_id):
    return _first_prediction(context, user_id, lambda s: s.result.is_correct_result)


@rule('exact_score')
def exact_score(context, user_id):
    return _first_prediction(context, user_id, lambda s: s.result.is_exact_score)


@rule('king_of_day')
def king_of_day(context, user_id):
    reached = context.streaks[user_id].win_streak_reached.get(1)
    return context.group_time(reached) if reached else None


@rule('double_king')
def double_king(context, user_id):
    reached = context.streaks[user_id].win_streak_reached.get(2)
    return context.group_time(reached) if reached else None


@rule('opportunist')
def opportunist(context, user_id):
    return _first_group(context, user_id, lambda r, u: _count_in_group(r, u, 'is_correct_result') >= 2)


@rule('nostradamus')
def nostradamus(context, user_id):
    return _first_group(context, user_id, lambda r, u: _count_in_group(r, u, 'is_exact_score') >= 2)


@rule('lantern')
def lantern(context, user_id):
    reached = context.streaks[user_id].loss_streak_reached.get(1)
    return context.group_time(reached) if reached else None


@rule('downward_spiral')
def downward_spiral(context, user_id):
    reached = context.streaks[user_id].loss_streak_reached.get(2)
    return context.group_time(reached) if reached else None


@rule('bonus_profiteer')
def bonus_profiteer(context, user_id):
    return _first_prediction(context, user_id, lambda s: s.is_bonus_match and s.result.is_correct_result)


@rule('bonus_optimizer')
def bonus_optimizer(context, user_id):
    return _first_prediction(context, user_id, lambda s: s.is_bonus_match and s.result.is_exact_score)


def _submitted_nothing_right(result, user_id):
    submitted = [s for s in result.predictions_of(user_id) if not s.prediction.is_default_prediction]
    return bool(submitted) and not any(s.result.is_correct_result for s in submitted)


@rule('cursed')
def cursed(context, user_id):
    return _first_group(context, user_id, _submitted_nothing_right)


def _full_run(context):
    return context.is_cleanly_completed and len(context.group_results) >= 2


@rule('ultra_dominator')
def ultra_dominator(context, user_id):
    if _full_run(context) and context.streaks[user_id].first_place_count == len(context.group_results):
        return context.final_time
    return None


@rule('poulidor')
def poulidor(context, user_id):
    if _full_run(context) and context.streaks[user_id].first_place_count == 0:
        return context.final_time
    return None


def matchday_points(standing: ParticipantStanding) -> int:
    return standing.total_points - standing.early_prediction_bonus


def outright_winner(standings: List[ParticipantStanding]) -> Optional[int]:
    """User holding strictly more matchday points than everybody else, if any."""
    if not standings:
        return None
    ordered = sorted(standings, key=lambda s: -matchday_points(s))
    if len(ordered) > 1 and matchday_points(ordered[0]) == matchday_points(ordered[1]):
        return None
    return ordered[0].user_id


def outright_last(standings: List[ParticipantStanding]) -> Optional[int]:
    if len(standings) < 2:
        return None
    ordered = sorted(standings, key=matchday_points)
    if matchday_points(ordered[0]) == matchday_points(ordered[1]):
        return None
    return ordered[0].user_id


@rule('tournament_winner')
def tournament_winner(context, user_id):
    if context.is_cleanly_completed and outright_winner(context.standings) == user_id:
        return context.final_time
    return None


@rule('legend')
def legend(context, user_id):
    if len(context.participants) >= LEGEND_MIN_PARTICIPANTS and tournament_winner(context, user_id):
        return context.final_time
    return None


@rule('abyssal')
def abyssal(context, user_id):
    if context.is_cleanly_completed and outright_last(context.standings) == user_id:
        return context.final_time
    return None


def evaluate_user(context: TrophyContext, user_id: int, already_unlocked: Iterable[str] = ()) -> List[TrophyUnlockEvent]:
    already_unlocked = set(already_unlocked)
    events = []
    for trophy_type, predicate in RULES.items():
        if trophy_type in already_unlocked:
            continue
        unlocked_at = predicate(context, user_id)
        if unlocked_at is not None:
            events.append(TrophyUnlockEvent(user_id, trophy_type, unlocked_at, context.tournament.id))
    return events


def evaluate_trophies(context: TrophyContext, unlocked: Iterable[Tuple[int, str]] = ()) -> Dict[int, List[TrophyUnlockEvent]]:
    """New unlock events per participant, skipping ``(user_id, trophy_type)`` pairs in ``unlocked``."""
    recorded: Dict[int, Set[str]] = {}
    for user_id, trophy_type in unlocked:
        recorded.setdefault(user_id, set()).add(trophy_type)
    return {
        user_id: evaluate_user(context, user_id, recorded.get(user_id, ()))
        for user_id in context.participants
    }
