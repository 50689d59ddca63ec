"""
Consecutive-leadership tracking.

Groups are walked in virtual order. Leading an eligible group extends the
run; anything else (not leading, a partially decided group, a matchday
with nothing scheduled yet) resets it to zero. There is no skipping over
gaps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from .exceptions import MissingScheduleData
from .leaderboard import GroupResult, require_schedule

logger = logging.getLogger(__name__)


@dataclass
class StreakState:
    user_id: int
    consecutive_wins: int = 0
    max_consecutive_wins: int = 0
    consecutive_losses: int = 0
    max_consecutive_losses: int = 0
    first_place_count: int = 0
    # streak length -> group on which that length was first reached
    win_streak_reached: Dict[int, GroupResult] = field(default_factory=dict)
    loss_streak_reached: Dict[int, GroupResult] = field(default_factory=dict)
    # positions of eligible groups predicted entirely before kickoff
    on_time_positions: Set[int] = field(default_factory=set)

    def reset(self):
        self.consecutive_wins = 0
        self.consecutive_losses = 0

    def step(self, result: GroupResult):
        if not result.eligible:
            self.reset()
            return

        if result.is_leader(self.user_id):
            self.consecutive_wins += 1
            self.first_place_count += 1
            if self.consecutive_wins > self.max_consecutive_wins:
                self.max_consecutive_wins = self.consecutive_wins
                self.win_streak_reached.setdefault(self.consecutive_wins, result)
        else:
            self.consecutive_wins = 0

        if result.sole_last == self.user_id:
            self.consecutive_losses += 1
            if self.consecutive_losses > self.max_consecutive_losses:
                self.max_consecutive_losses = self.consecutive_losses
                self.loss_streak_reached.setdefault(self.consecutive_losses, result)
        else:
            self.consecutive_losses = 0

    def has_win_streak(self, length: int) -> bool:
        return self.max_consecutive_wins >= length


def is_on_time(result: GroupResult, user_id: int) -> bool:
    """
    Whether every match of an eligible group was predicted before the
    group's first kickoff, with no default or missing prediction.
    """
    if not result.eligible:
        return False
    first_kickoff = result.group.earliest_kickoff
    if first_kickoff is None:
        return False

    scored = {s.match.id: s for s in result.predictions_of(user_id)}
    for match in result.group.matches:
        entry = scored.get(match.id)
        if entry is None or entry.prediction.is_default_prediction:
            return False
        submitted_at = entry.prediction.submitted_at
        if submitted_at is None or submitted_at >= first_kickoff:
            return False
    return True


def track_streaks(group_results: List[GroupResult], participants: Iterable[int], deadline=None) -> Dict[int, StreakState]:
    states = {user_id: StreakState(user_id) for user_id in participants}

    for position, result in enumerate(group_results):
        if deadline is not None:
            deadline.check()
        try:
            require_schedule(result.group)
        except MissingScheduleData as exc:
            logger.debug("%s; breaking streaks", exc)
            for state in states.values():
                state.reset()
            continue

        for state in states.values():
            state.step(result)
            if is_on_time(result, state.user_id):
                state.on_time_positions.add(position)
    return states
