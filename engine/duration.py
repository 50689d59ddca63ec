"""
Tournament ending-date estimation.

States: ``no_estimate`` -> ``exact`` | ``estimated`` -> ``finalized``.

The exact path reads the latest known kickoff of the tournament's last
matchday. A flat championship whose last matchday is not dated yet falls
back to extrapolating the average interval between dated matchdays.
Every recomputation yields an ``EndingDateEvent`` carrying the previous
and new values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from .exceptions import InsufficientEstimationData
from .sequencer import MatchGroup, has_knockout_stages, sequence_matches
from .snapshot import Match, TournamentConfig

logger = logging.getLogger(__name__)

NO_ESTIMATE = 'no_estimate'
EXACT = 'exact'
ESTIMATED = 'estimated'
FINALIZED = 'finalized'


@dataclass(frozen=True)
class EndingDateEstimate:
    state: str
    ending_date: Optional[datetime] = None
    details: str = ''

    @property
    def estimation_used(self) -> bool:
        return self.state == ESTIMATED


@dataclass(frozen=True)
class EndingDateEvent:
    tournament_id: int
    state: str
    previous_ending_date: Optional[datetime]
    new_ending_date: Optional[datetime]
    estimation_used: bool
    details: str
    reason: str

    @property
    def moved_backward(self) -> bool:
        return (
            self.previous_ending_date is not None
            and self.new_ending_date is not None
            and self.new_ending_date < self.previous_ending_date
        )

    @property
    def changed(self) -> bool:
        return self.previous_ending_date != self.new_ending_date

    def as_dict(self):
        return {
            'tournament_id': self.tournament_id,
            'state': self.state,
            'previous_ending_date': _iso(self.previous_ending_date),
            'new_ending_date': _iso(self.new_ending_date),
            'estimation_used': self.estimation_used,
            'moved_backward': self.moved_backward,
            'details': self.details,
            'reason': self.reason,
        }


def _iso(value):
    return value.isoformat() if value is not None else None


def _latest_kickoff(groups: Iterable[MatchGroup]) -> Optional[datetime]:
    kickoffs = [g.latest_kickoff for g in groups if g.latest_kickoff is not None]
    return max(kickoffs) if kickoffs else None


def extrapolate(groups: List[MatchGroup], ending_matchday: int) -> EndingDateEstimate:
    """Project the ending date from the average interval between dated matchdays."""
    latest_by_matchday = {}
    for group in groups:
        latest = group.latest_kickoff
        if latest is None:
            continue
        known = latest_by_matchday.get(group.virtual_order)
        if known is None or latest > known:
            latest_by_matchday[group.virtual_order] = latest

    dated = sorted(latest_by_matchday.items())
    if len(dated) < 2:
        raise InsufficientEstimationData(
            f"Only {len(dated)} dated matchday(s), at least 2 are needed to estimate"
        )

    intervals = []
    for (previous_md, previous_date), (md, date) in zip(dated, dated[1:]):
        intervals.append((date - previous_date) / (md - previous_md))
    average = sum(intervals, timedelta()) / len(intervals)

    last_matchday, last_date = dated[-1]
    remaining = ending_matchday - last_matchday
    average_days = average.total_seconds() / 86400
    return EndingDateEstimate(
        ESTIMATED,
        last_date + average * remaining,
        f"Estimated from {len(intervals)} interval(s) (average {average_days:.1f} days per matchday)",
    )


def estimate_ending_date(matches: Iterable[Match], starting_matchday: int, ending_matchday: int) -> EndingDateEstimate:
    matches = list(matches)
    groups = sequence_matches(matches, starting_matchday, ending_matchday)

    if all(g.is_empty for g in groups):
        return EndingDateEstimate(NO_ESTIMATE, None, 'No match found in the tournament range')

    if all(g.is_decided for g in groups):
        return EndingDateEstimate(FINALIZED, _latest_kickoff(groups), 'Every match in range is decided')

    last_groups = [g for g in groups if g.virtual_order == ending_matchday]
    latest = _latest_kickoff(last_groups)
    if latest is not None:
        return EndingDateEstimate(EXACT, latest, f"Latest kickoff of matchday {ending_matchday}")

    if has_knockout_stages(matches):
        return EndingDateEstimate(NO_ESTIMATE, None, 'Final knockout round is not scheduled yet')

    try:
        return extrapolate(groups, ending_matchday)
    except InsufficientEstimationData as exc:
        return EndingDateEstimate(NO_ESTIMATE, None, str(exc))


def recalculate_ending_date(tournament: TournamentConfig, matches: Iterable[Match], reason: str = 'Scheduled recheck') -> EndingDateEvent:
    estimate = estimate_ending_date(matches, tournament.starting_matchday, tournament.ending_matchday)

    if estimate.state == FINALIZED:
        # no new estimate once everything is played; completion takes over
        new_date = tournament.ending_date or estimate.ending_date
    else:
        new_date = estimate.ending_date

    event = EndingDateEvent(
        tournament_id=tournament.id,
        state=estimate.state,
        previous_ending_date=tournament.ending_date,
        new_ending_date=new_date,
        estimation_used=estimate.estimation_used,
        details=estimate.details,
        reason=reason,
    )

    if event.moved_backward:
        logger.warning(
            "Ending date of tournament %s moved backward: %s -> %s (%s)",
            tournament.id, _iso(event.previous_ending_date), _iso(event.new_ending_date), estimate.details,
        )
    else:
        logger.info(
            "Ending date of tournament %s recalculated: %s -> %s [%s, estimation_used=%s]",
            tournament.id, _iso(event.previous_ending_date), _iso(event.new_ending_date),
            estimate.state, estimate.estimation_used,
        )
    return event
