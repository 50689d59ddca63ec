"""
Virtual matchday sequencing.

Knockout stages restart their matchday numbering at 1, so the raw number
cannot order a competition that has a league phase followed by a bracket.
Every knockout stage gets a fixed base offset above the longest possible
league phase and ``virtual_order = offset + matchday``. League matchdays
keep their own number.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .snapshot import (
    FINAL, GROUP_STAGE, LAST_16, LAST_32, LEAGUE_STAGE, LEAGUE_STAGES, PLAYOFFS,
    PRELIMINARY_ROUND, QUARTER_FINALS, SEMI_FINALS, THIRD_PLACE, Match,
)

KNOCKOUT_STAGE_OFFSETS = {
    PLAYOFFS: 8,
    LAST_16: 10,
    QUARTER_FINALS: 12,
    SEMI_FINALS: 14,
    THIRD_PLACE: 16,
    FINAL: 16,
}
DEFAULT_KNOCKOUT_OFFSET = 8

TWO_LEGGED_STAGES = frozenset({PLAYOFFS, LAST_32, LAST_16, QUARTER_FINALS, SEMI_FINALS})

STAGE_LABELS = {
    LEAGUE_STAGE: 'League stage',
    GROUP_STAGE: 'Group stage',
    PRELIMINARY_ROUND: 'Preliminary round',
    PLAYOFFS: 'Play-offs',
    LAST_32: 'Round of 32',
    LAST_16: 'Round of 16',
    QUARTER_FINALS: 'Quarter-finals',
    SEMI_FINALS: 'Semi-finals',
    THIRD_PLACE: 'Third place play-off',
    FINAL: 'Final',
}


def is_knockout_stage(stage: Optional[str]) -> bool:
    return stage is not None and stage not in LEAGUE_STAGES


def has_knockout_stages(matches: Iterable[Match]) -> bool:
    return any(is_knockout_stage(m.stage) for m in matches)


def virtual_matchday(stage: Optional[str], matchday: Optional[int], knockout: bool = True) -> int:
    """Ordering key of one match. ``knockout=False`` is the identity mapping."""
    if not knockout or not is_knockout_stage(stage):
        return matchday or 1
    return KNOCKOUT_STAGE_OFFSETS.get(stage, DEFAULT_KNOCKOUT_OFFSET) + (matchday or 1)


@dataclass(frozen=True)
class MatchGroup:
    virtual_order: int
    stage: Optional[str]
    matchday: int
    matches: Tuple[Match, ...]
    leg: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return not self.matches

    @property
    def earliest_kickoff(self) -> Optional[datetime]:
        kickoffs = [m.kickoff_time for m in self.matches if m.kickoff_time is not None]
        return min(kickoffs) if kickoffs else None

    @property
    def latest_kickoff(self) -> Optional[datetime]:
        kickoffs = [m.kickoff_time for m in self.matches if m.kickoff_time is not None]
        return max(kickoffs) if kickoffs else None

    @property
    def is_decided(self) -> bool:
        """Every match is decided. An empty group is never decided."""
        return bool(self.matches) and all(m.is_decided for m in self.matches)

    @property
    def label(self) -> str:
        if not is_knockout_stage(self.stage):
            prefix = STAGE_LABELS.get(self.stage)
            return f"{prefix} - Matchday {self.matchday}" if prefix else f"Matchday {self.matchday}"
        label = STAGE_LABELS.get(self.stage, self.stage)
        if self.leg:
            return f"{label} - Leg {self.leg}"
        return label


def _sort_key(group: MatchGroup):
    earliest = group.earliest_kickoff
    # undated groups go last among equal virtual orders
    return (group.virtual_order, earliest is None, earliest.timestamp() if earliest else 0)


def _assign_legs(groups: List[MatchGroup]) -> List[MatchGroup]:
    result = []
    for index, group in enumerate(groups):
        leg = None
        if group.stage in TWO_LEGGED_STAGES:
            previous = groups[index - 1] if index > 0 else None
            following = groups[index + 1] if index + 1 < len(groups) else None
            if previous is not None and previous.stage == group.stage:
                leg = 2
            elif following is not None and following.stage == group.stage:
                leg = 1
        if leg != group.leg:
            group = MatchGroup(group.virtual_order, group.stage, group.matchday, group.matches, leg)
        result.append(group)
    return result


def sequence_matches(matches: Iterable[Match], starting_matchday: int, ending_matchday: int) -> List[MatchGroup]:
    """
    Group matches by virtual matchday within ``[starting_matchday, ending_matchday]``.

    Every virtual order in the range yields at least one group, empty when
    nothing is scheduled for it yet. Distinct stages sharing a virtual
    order become separate groups, ordered by earliest kickoff.
    """
    matches = list(matches)
    knockout = has_knockout_stages(matches)

    buckets: Dict[Tuple[int, Optional[str]], List[Match]] = {}
    for match in matches:
        order = virtual_matchday(match.stage, match.matchday, knockout)
        if starting_matchday <= order <= ending_matchday:
            bracket_stage = match.stage if knockout and is_knockout_stage(match.stage) else None
            buckets.setdefault((order, bracket_stage), []).append(match)

    groups = []
    for (order, _), bucket in buckets.items():
        bucket.sort(key=lambda m: (m.kickoff_time is None, m.kickoff_time.timestamp() if m.kickoff_time else 0, m.id))
        first = bucket[0]
        groups.append(MatchGroup(order, first.stage, first.matchday, tuple(bucket)))

    covered = {order for order, _ in buckets}
    for order in range(starting_matchday, ending_matchday + 1):
        if order not in covered:
            groups.append(MatchGroup(order, None, order, ()))

    groups.sort(key=_sort_key)
    return _assign_legs(groups)


def find_group(groups: Iterable[MatchGroup], virtual_order: int) -> List[MatchGroup]:
    return [g for g in groups if g.virtual_order == virtual_order]
