"""
Tournament processing pipeline and the periodic sweep.

One tournament is processed strictly in sequence (normalized matches ->
groups -> leaderboards -> streaks -> trophies, plus the ending-date
estimate). Tournaments are independent of each other and are computed in a
bounded thread pool. Snapshots are loaded and outcomes committed by the
caller's thread, one whole batch per tournament, so a failure never leaves
half of a tournament's derived state written.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from .duration import FINALIZED, EndingDateEvent, recalculate_ending_date
from .exceptions import ComputationTimeout, InconsistentCompletionState
from .leaderboard import build_standings, compute_group_results
from .sequencer import sequence_matches
from .snapshot import (
    COMPLETED, Match, ParticipantStanding, Prediction, TournamentConfig, TournamentSnapshot, TrophyUnlockEvent,
)
from .streaks import track_streaks
from .trophies import build_context, evaluate_trophies

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4
DEFAULT_TIMEOUT = 30.0
DEFAULT_EARLY_BONUS_POINTS = 1

OK = 'ok'
TIMEOUT = 'timeout'
ERROR = 'error'


class Deadline:
    """Cooperative wall-clock guard for one tournament."""

    def __init__(self, tournament_id, budget, clock=time.monotonic):
        self.tournament_id = tournament_id
        self.budget = budget
        self._clock = clock
        self._expires_at = clock() + budget if budget is not None else None

    def check(self):
        if self._expires_at is not None and self._clock() > self._expires_at:
            raise ComputationTimeout(self.tournament_id, self.budget)


class TournamentSource:
    """Read-only access to the data one tournament computation needs."""

    def list_tournaments_to_check(self) -> List[int]:
        raise NotImplementedError

    def get_tournament_config(self, tournament_id) -> TournamentConfig:
        raise NotImplementedError

    def list_decided_and_scheduled_matches(self, tournament: TournamentConfig) -> List[Match]:
        raise NotImplementedError

    def list_predictions(self, tournament: TournamentConfig) -> List[Prediction]:
        raise NotImplementedError

    def list_participants(self, tournament: TournamentConfig) -> List[int]:
        raise NotImplementedError

    def list_unlocked_trophies(self, participants) -> Iterable[Tuple[int, str]]:
        return ()

    def load_snapshot(self, tournament_id) -> TournamentSnapshot:
        tournament = self.get_tournament_config(tournament_id)
        participants = tuple(self.list_participants(tournament))
        return TournamentSnapshot(
            tournament=tournament,
            matches=tuple(self.list_decided_and_scheduled_matches(tournament)),
            predictions=tuple(self.list_predictions(tournament)),
            participants=participants,
            unlocked_trophies=frozenset(self.list_unlocked_trophies(participants)),
        )


class ResultSink:
    """Receives one tournament's derived results. Implementations commit them as a whole."""

    def apply_ranking_snapshot(self, tournament_id, standings: List[ParticipantStanding]):
        raise NotImplementedError

    def record_trophy_unlocks(self, user_id, events: List[TrophyUnlockEvent]):
        raise NotImplementedError

    def update_ending_date(self, tournament_id, iso_date: Optional[str], estimation_used: bool, details: str, event: EndingDateEvent = None):
        raise NotImplementedError

    def finalize_tournament(self, tournament_id):
        raise NotImplementedError

    def commit(self, outcome: "TournamentOutcome"):
        """Write every part of ``outcome``. Override to wrap it in a transaction."""
        self.apply_ranking_snapshot(outcome.tournament_id, outcome.standings)
        for user_id, events in outcome.trophy_events.items():
            if events:
                self.record_trophy_unlocks(user_id, events)
        event = outcome.ending_date_event
        if event is not None:
            iso_date = event.new_ending_date.isoformat() if event.new_ending_date else None
            self.update_ending_date(outcome.tournament_id, iso_date, event.estimation_used, event.details, event)
            if event.state == FINALIZED:
                self.finalize_tournament(outcome.tournament_id)


@dataclass
class TournamentOutcome:
    tournament_id: int
    status: str = OK
    standings: List[ParticipantStanding] = field(default_factory=list)
    trophy_events: Dict[int, List[TrophyUnlockEvent]] = field(default_factory=dict)
    ending_date_event: Optional[EndingDateEvent] = None
    warnings: List[InconsistentCompletionState] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.ending_date_event is not None and self.ending_date_event.state == FINALIZED

    @property
    def new_trophy_count(self) -> int:
        return sum(len(events) for events in self.trophy_events.values())


def process_snapshot(
    snapshot: TournamentSnapshot,
    deadline: Optional[Deadline] = None,
    early_bonus_points: int = DEFAULT_EARLY_BONUS_POINTS,
    computed_at: Optional[datetime] = None,
    reason: str = 'Scheduled recheck',
) -> TournamentOutcome:
    """Run the whole pipeline for one tournament. Pure: nothing is written."""
    tournament = snapshot.tournament
    computed_at = computed_at or datetime.now(timezone.utc)
    deadline = deadline or Deadline(tournament.id, None)

    ending_date_event = recalculate_ending_date(tournament, snapshot.matches, reason)
    if ending_date_event.state == FINALIZED and not tournament.is_completed:
        # completion is committed in the same batch as the trophies
        tournament = replace(tournament, status=COMPLETED)
    deadline.check()

    groups = sequence_matches(snapshot.matches, tournament.starting_matchday, tournament.ending_matchday)
    results = compute_group_results(groups, snapshot.predictions, snapshot.participants, tournament, deadline)
    streaks = track_streaks(results, snapshot.participants, deadline)

    on_time = {user_id: state.on_time_positions for user_id, state in streaks.items()}
    standings = build_standings(
        results,
        snapshot.participants,
        on_time if tournament.early_prediction_bonus_enabled else None,
        early_bonus_points if tournament.early_prediction_bonus_enabled else 0,
    )
    deadline.check()

    context = build_context(tournament, snapshot.participants, results, streaks, standings, computed_at)
    trophy_events = evaluate_trophies(context, snapshot.unlocked_trophies)
    deadline.check()

    return TournamentOutcome(
        tournament_id=tournament.id,
        standings=standings,
        trophy_events=trophy_events,
        ending_date_event=ending_date_event,
        warnings=list(context.warnings),
    )


def _guarded(snapshot, timeout, early_bonus_points, computed_at):
    tournament_id = snapshot.tournament.id
    try:
        return process_snapshot(snapshot, Deadline(tournament_id, timeout), early_bonus_points, computed_at)
    except ComputationTimeout as exc:
        logger.warning("Skipping tournament %s: %s", tournament_id, exc)
        return TournamentOutcome(tournament_id, status=TIMEOUT, error=str(exc))
    except Exception as exc:
        logger.exception("Error processing tournament %s", tournament_id)
        return TournamentOutcome(tournament_id, status=ERROR, error=str(exc))


@dataclass
class SweepReport:
    processed: int = 0
    committed: int = 0
    finalized: int = 0
    skipped: List[int] = field(default_factory=list)
    outcomes: List[TournamentOutcome] = field(default_factory=list)


def run_sweep(
    source: TournamentSource,
    sink: ResultSink,
    tournament_ids: Optional[Iterable[int]] = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    early_bonus_points: int = DEFAULT_EARLY_BONUS_POINTS,
) -> SweepReport:
    """
    Recompute every tournament in ``tournament_ids`` (all tournaments the
    source wants rechecked when omitted) and commit each successful one.

    Failures are isolated: a tournament that times out, fails to load or
    fails to commit keeps its prior derived state and is retried next sweep.
    """
    if tournament_ids is None:
        tournament_ids = source.list_tournaments_to_check()
    tournament_ids = list(tournament_ids)
    report = SweepReport()
    logger.info("Sweep started for %d tournament(s)", len(tournament_ids))

    snapshots = []
    for tournament_id in tournament_ids:
        try:
            snapshots.append(source.load_snapshot(tournament_id))
        except Exception:
            logger.exception("Could not load snapshot of tournament %s", tournament_id)
            report.skipped.append(tournament_id)

    computed_at = datetime.now(timezone.utc)
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = [
            pool.submit(_guarded, snapshot, timeout, early_bonus_points, computed_at)
            for snapshot in snapshots
        ]
        outcomes = [future.result() for future in futures]

    for outcome in outcomes:
        report.processed += 1
        report.outcomes.append(outcome)
        if outcome.status != OK:
            report.skipped.append(outcome.tournament_id)
            continue
        try:
            sink.commit(outcome)
        except Exception:
            logger.exception("Could not commit results of tournament %s", outcome.tournament_id)
            report.skipped.append(outcome.tournament_id)
            continue
        report.committed += 1
        if outcome.is_final:
            report.finalized += 1

    logger.info(
        "Sweep finished: %d processed, %d committed, %d finalized, %d skipped",
        report.processed, report.committed, report.finalized, len(report.skipped),
    )
    return report
