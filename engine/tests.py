import itertools
from datetime import datetime, timedelta, timezone

from django.test import SimpleTestCase

from .duration import (
    ESTIMATED, EXACT, FINALIZED, NO_ESTIMATE, estimate_ending_date, recalculate_ending_date,
)
from .exceptions import ComputationTimeout, InconsistentCompletionState, MissingScheduleData
from .leaderboard import build_standings, compute_group_results, require_schedule
from .normalizer import CustomMatch, LeagueMatch, normalize_match, normalize_matches
from .scoring import rank_standings, score_prediction
from .sequencer import MatchGroup, sequence_matches, virtual_matchday
from .snapshot import (
    COMPLETED, FINAL, FINISHED, LEAGUE_STAGE, PLAYOFFS, QUARTER_FINALS, REGULAR_SEASON, SCHEDULED,
    THIRD_PLACE, CompetitionRef, Match, ParticipantStanding, Prediction, ScoringConfig,
    TournamentConfig, TournamentSnapshot,
)
from .streaks import track_streaks
from .sweep import ERROR, OK, TIMEOUT, Deadline, ResultSink, TournamentSource, process_snapshot, run_sweep
from .trophies import build_context, evaluate_trophies

BASE = datetime(2025, 8, 1, 18, 0, tzinfo=timezone.utc)
REF = CompetitionRef('imported', 1)


def make_match(match_id, matchday, home=None, away=None, stage=REGULAR_SEASON, kickoff=None, bonus=False, undated=False):
    if kickoff is None and not undated:
        kickoff = BASE + timedelta(days=7 * (matchday - 1))
    return Match(
        id=match_id,
        competition_ref=REF,
        stage=stage,
        matchday=matchday,
        kickoff_time=kickoff,
        status=FINISHED if home is not None else SCHEDULED,
        home_score=home,
        away_score=away,
        is_bonus_match=bonus,
    )


def predict(user_id, match_id, home, away, default=False, submitted_at=None):
    return Prediction(
        user_id=user_id,
        tournament_id=1,
        match_id=match_id,
        predicted_home_score=home,
        predicted_away_score=away,
        is_default_prediction=default,
        submitted_at=submitted_at,
    )


def make_tournament(start=1, end=2, **kwargs):
    return TournamentConfig(id=1, competition_ref=REF, starting_matchday=start, ending_matchday=end, **kwargs)


def run_pipeline(tournament, matches, predictions, participants=(1, 2)):
    groups = sequence_matches(matches, tournament.starting_matchday, tournament.ending_matchday)
    results = compute_group_results(groups, predictions, participants, tournament)
    streaks = track_streaks(results, participants)
    return results, streaks


class ScoringTests(SimpleTestCase):

    def test_exact_score_uses_configured_points(self):
        match = make_match(1, 1, 2, 1)
        result = score_prediction(predict(1, 1, 2, 1), match, ScoringConfig(exact_score_points=5))
        self.assertEqual(result.points, 5)
        self.assertTrue(result.is_exact_score)
        self.assertTrue(result.is_correct_result)

    def test_correct_winner_on_bonus_match_is_doubled(self):
        match = make_match(1, 1, 2, 1)
        result = score_prediction(predict(1, 1, 1, 0), match, ScoringConfig(correct_winner_points=3), True)
        self.assertEqual(result.points, 6)
        self.assertFalse(result.is_exact_score)
        self.assertTrue(result.is_correct_result)

    def test_default_prediction_only_earns_draw_points(self):
        scoring = ScoringConfig(default_draw_points=1)
        default = predict(1, 1, 0, 0, default=True)

        drawn = score_prediction(default, make_match(1, 1, 1, 1), scoring)
        self.assertEqual(drawn.points, 1)
        self.assertFalse(drawn.is_correct_result)

        lost = score_prediction(default, make_match(1, 1, 2, 0), scoring)
        self.assertEqual(lost.points, 0)

        # even a 0-0 match is not an exact score for a default prediction
        goalless = score_prediction(default, make_match(1, 1, 0, 0), scoring)
        self.assertEqual(goalless.points, 1)
        self.assertFalse(goalless.is_exact_score)

    def test_wrong_prediction_scores_nothing(self):
        result = score_prediction(predict(1, 1, 0, 2), make_match(1, 1, 2, 1), ScoringConfig())
        self.assertEqual(result.points, 0)

    def test_undecided_match_cannot_be_scored(self):
        with self.assertRaises(ValueError):
            score_prediction(predict(1, 1, 1, 0), make_match(1, 1), ScoringConfig())

    def test_perfect_ties_share_a_rank(self):
        standings = [
            ParticipantStanding(user_id=1, total_points=5, exact_scores=1),
            ParticipantStanding(user_id=2, total_points=5, exact_scores=1),
            ParticipantStanding(user_id=3, total_points=5, exact_scores=0),
            ParticipantStanding(user_id=4, total_points=7),
        ]
        ranked = rank_standings(standings, previous_ranks={1: 1, 4: 3})
        self.assertEqual([(s.user_id, s.rank) for s in ranked], [(4, 1), (1, 2), (2, 2), (3, 4)])
        self.assertEqual(ranked[0].rank_change, 'up')
        self.assertEqual(ranked[1].rank_change, 'down')
        self.assertIsNone(ranked[2].rank_change)


class NormalizerTests(SimpleTestCase):

    def test_league_match_without_matchday_defaults_to_one(self):
        match = normalize_match(LeagueMatch(id=7, competition_id=3, matchday=None, stage=FINAL))
        self.assertEqual(match.matchday, 1)
        self.assertEqual(match.competition_ref, CompetitionRef('imported', 3))

    def test_custom_match_mirrors_its_source(self):
        source = LeagueMatch(id=11, competition_id=3, matchday=5, stage=QUARTER_FINALS,
                             utc_date=BASE, status=FINISHED, home_score=1, away_score=0)
        record = CustomMatch(id=2, custom_competition_id=9, matchday_number=4,
                             cached_utc_date=BASE - timedelta(days=1), source=source)
        match = normalize_matches([record], bonus_match_ids=[11])[0]
        self.assertEqual(match.id, 11)
        self.assertIsNone(match.stage)
        self.assertEqual(match.matchday, 4)
        self.assertEqual(match.kickoff_time, BASE)
        self.assertTrue(match.is_decided)
        self.assertTrue(match.is_bonus_match)

    def test_custom_match_without_source_uses_cached_date(self):
        naive = datetime(2025, 9, 1, 20, 0)
        match = normalize_match(CustomMatch(id=2, custom_competition_id=9, matchday_number=1, cached_utc_date=naive))
        self.assertEqual(match.kickoff_time, naive.replace(tzinfo=timezone.utc))
        self.assertEqual(match.status, SCHEDULED)

    def test_unknown_record_is_rejected(self):
        with self.assertRaises(TypeError):
            normalize_match(object())


class SequencerTests(SimpleTestCase):

    def test_league_matchday_is_identity_without_knockout(self):
        self.assertEqual(virtual_matchday(PLAYOFFS, 2, knockout=False), 2)
        self.assertEqual(virtual_matchday(LEAGUE_STAGE, 6), 6)
        self.assertEqual(virtual_matchday(PLAYOFFS, 2), 10)
        self.assertEqual(virtual_matchday(FINAL, 1), 17)

    def test_league_then_bracket_is_totally_ordered(self):
        matches = [
            make_match(1, 1, stage=LEAGUE_STAGE),
            make_match(2, 2, stage=LEAGUE_STAGE),
            make_match(3, 1, stage=PLAYOFFS, kickoff=BASE + timedelta(days=60)),
            make_match(4, 2, stage=PLAYOFFS, kickoff=BASE + timedelta(days=67)),
            make_match(5, 1, stage=QUARTER_FINALS, kickoff=BASE + timedelta(days=80)),
        ]
        groups = sequence_matches(matches, 1, 13)

        self.assertEqual([g.virtual_order for g in groups], list(range(1, 14)))
        self.assertTrue(all(g.is_empty for g in groups[2:8]))
        self.assertEqual(groups[0].label, 'League stage - Matchday 1')
        self.assertEqual(groups[2].label, 'Matchday 3')
        self.assertEqual((groups[8].leg, groups[9].leg), (1, 2))
        self.assertEqual(groups[8].label, 'Play-offs - Leg 1')
        self.assertIsNone(groups[12].leg)
        self.assertEqual(groups[12].label, 'Quarter-finals')

    def test_stages_sharing_an_order_are_split_by_kickoff(self):
        matches = [
            make_match(1, 1, stage=LEAGUE_STAGE),
            make_match(2, 1, stage=FINAL, kickoff=BASE + timedelta(days=100)),
            make_match(3, 1, stage=THIRD_PLACE, kickoff=BASE + timedelta(days=99)),
        ]
        groups = [g for g in sequence_matches(matches, 17, 17)]
        self.assertEqual([g.stage for g in groups], [THIRD_PLACE, FINAL])
        self.assertEqual({g.virtual_order for g in groups}, {17})

    def test_empty_group_is_never_decided(self):
        group = MatchGroup(3, None, 3, ())
        self.assertFalse(group.is_decided)
        with self.assertRaises(MissingScheduleData):
            require_schedule(group)


class LeaderboardAndStreakTests(SimpleTestCase):

    def test_shared_zero_credits_no_leader(self):
        tournament = make_tournament(1, 1)
        matches = [make_match(1, 1, 2, 0)]
        predictions = [predict(1, 1, 0, 1), predict(2, 1, 0, 3)]
        results, streaks = run_pipeline(tournament, matches, predictions)

        self.assertEqual(results[0].leaders, frozenset({1, 2}))
        self.assertEqual(results[0].credited_leaders, frozenset())
        self.assertEqual(streaks[1].consecutive_wins, 0)
        self.assertEqual(streaks[2].consecutive_wins, 0)

        context = build_context(tournament, (1, 2), results, streaks, build_standings(results, (1, 2)), BASE)
        events = evaluate_trophies(context)
        for user_events in events.values():
            self.assertNotIn('king_of_day', [e.trophy_type for e in user_events])

    def test_empty_matchday_breaks_a_streak(self):
        tournament = make_tournament(1, 3)
        matches = [make_match(1, 1, 1, 0), make_match(3, 3, 2, 0)]
        predictions = [predict(1, 1, 1, 0), predict(2, 1, 0, 1), predict(1, 3, 2, 0), predict(2, 3, 0, 0)]
        results, streaks = run_pipeline(tournament, matches, predictions)

        self.assertTrue(results[1].group.is_empty)
        self.assertEqual(streaks[1].first_place_count, 2)
        self.assertEqual(streaks[1].max_consecutive_wins, 1)
        self.assertNotIn(2, streaks[1].win_streak_reached)

    def test_partially_decided_group_is_not_eligible(self):
        tournament = make_tournament(1, 1)
        matches = [make_match(1, 1, 1, 0), make_match(2, 1)]
        predictions = [predict(1, 1, 1, 0), predict(2, 1, 0, 1)]
        results, streaks = run_pipeline(tournament, matches, predictions)

        self.assertFalse(results[0].eligible)
        self.assertEqual(results[0].points_by_user[1], 3)
        self.assertEqual(streaks[1].first_place_count, 0)

    def test_sole_last_needs_two_participants(self):
        tournament = make_tournament(1, 1)
        results, _ = run_pipeline(tournament, [make_match(1, 1, 1, 0)], [predict(1, 1, 0, 1)], participants=(1,))
        self.assertIsNone(results[0].sole_last)
        self.assertEqual(results[0].credited_leaders, frozenset({1}))

    def test_previous_rank_is_taken_before_last_matchday(self):
        tournament = make_tournament(1, 2)
        matches = [make_match(1, 1, 1, 0), make_match(2, 2, 0, 2)]
        predictions = [predict(1, 1, 1, 0), predict(2, 1, 0, 0), predict(2, 2, 0, 2), predict(1, 2, 2, 2)]
        results, _ = run_pipeline(tournament, matches, predictions)
        standings = build_standings(results, (1, 2))

        by_user = {s.user_id: s for s in standings}
        self.assertEqual(by_user[1].total_points, 3)
        self.assertEqual(by_user[2].total_points, 3)
        self.assertEqual(by_user[1].rank, 1)
        self.assertEqual(by_user[2].rank, 1)
        self.assertEqual(by_user[2].previous_rank, 2)
        self.assertEqual(by_user[2].rank_change, 'up')

    def test_early_predictions_earn_bonus_points(self):
        tournament = make_tournament(1, 1, early_prediction_bonus_enabled=True)
        matches = [make_match(1, 1, 1, 0)]
        predictions = [
            predict(1, 1, 0, 1, submitted_at=BASE - timedelta(hours=2)),
            predict(2, 1, 0, 1, submitted_at=BASE + timedelta(minutes=5)),
        ]
        outcome = process_snapshot(TournamentSnapshot(tournament, tuple(matches), tuple(predictions), (1, 2)), early_bonus_points=2)
        by_user = {s.user_id: s for s in outcome.standings}
        self.assertEqual(by_user[1].early_prediction_bonus, 2)
        self.assertEqual(by_user[1].total_points, 2)
        self.assertEqual(by_user[2].early_prediction_bonus, 0)

    def test_naive_timestamps_are_read_as_utc(self):
        kickoff = datetime(2025, 8, 1, 18, 0)
        matches = normalize_matches([
            LeagueMatch(id=1, competition_id=1, matchday=1, utc_date=kickoff, status=FINISHED, home_score=1, away_score=0),
        ])
        predictions = [
            predict(1, 1, 1, 0, submitted_at=kickoff - timedelta(hours=1)),
            predict(2, 1, 1, 0, submitted_at=kickoff + timedelta(minutes=5)),
        ]
        self.assertEqual(predictions[0].submitted_at, BASE - timedelta(hours=1))

        tournament = make_tournament(1, 1, early_prediction_bonus_enabled=True)
        outcome = process_snapshot(TournamentSnapshot(tournament, tuple(matches), tuple(predictions), (1, 2)))
        by_user = {s.user_id: s for s in outcome.standings}
        self.assertEqual(by_user[1].early_prediction_bonus, 1)
        self.assertEqual(by_user[2].early_prediction_bonus, 0)



class TrophyTests(SimpleTestCase):

    def setUp(self):
        self.tournament = make_tournament(1, 2)
        self.matches = (make_match(1, 1, 2, 1), make_match(2, 2, 0, 0))
        self.predictions = (
            predict(1, 1, 2, 1), predict(1, 2, 0, 0),
            predict(2, 1, 0, 1), predict(2, 2, 1, 2),
        )

    def snapshot(self, unlocked=frozenset(), **kwargs):
        tournament = make_tournament(1, 2, **kwargs)
        return TournamentSnapshot(tournament, self.matches, self.predictions, (1, 2), unlocked)

    def trophy_types(self, outcome, user_id):
        return {e.trophy_type for e in outcome.trophy_events[user_id]}

    def test_finished_tournament_unlocks_final_trophies(self):
        outcome = process_snapshot(self.snapshot(), computed_at=BASE)

        self.assertTrue(outcome.is_final)
        self.assertEqual(self.trophy_types(outcome, 1), {
            'correct_result', 'exact_score', 'king_of_day', 'double_king', 'ultra_dominator', 'tournament_winner',
        })
        self.assertEqual(self.trophy_types(outcome, 2), {
            'lantern', 'downward_spiral', 'cursed', 'poulidor', 'abyssal',
        })

    def test_recorded_trophies_are_not_emitted_again(self):
        first = process_snapshot(self.snapshot(), computed_at=BASE)
        unlocked = frozenset((u, e.trophy_type) for u, events in first.trophy_events.items() for e in events)
        second = process_snapshot(self.snapshot(unlocked), computed_at=BASE)
        self.assertEqual(second.new_trophy_count, 0)

    def test_evaluation_is_deterministic(self):
        first = process_snapshot(self.snapshot(), computed_at=BASE)
        second = process_snapshot(self.snapshot(), computed_at=BASE)
        self.assertEqual(first.trophy_events, second.trophy_events)

    def test_legend_needs_a_large_tournament(self):
        participants = tuple(range(1, 12))
        predictions = self.predictions + tuple(predict(u, 1, 0, 3) for u in participants[2:])
        snapshot = TournamentSnapshot(self.tournament, self.matches, predictions, participants)
        outcome = process_snapshot(snapshot, computed_at=BASE)
        self.assertIn('legend', self.trophy_types(outcome, 1))
        self.assertNotIn('abyssal', {t for u in participants for t in self.trophy_types(outcome, u)})

    def test_bonus_trophies_need_bonus_matches_enabled(self):
        self.matches = (make_match(1, 1, 2, 1, bonus=True), make_match(2, 2, 0, 0))
        disabled = process_snapshot(self.snapshot(), computed_at=BASE)
        enabled = process_snapshot(self.snapshot(bonus_match_enabled=True), computed_at=BASE)

        self.assertNotIn('bonus_optimizer', self.trophy_types(disabled, 1))
        self.assertTrue({'bonus_optimizer', 'bonus_profiteer'} <= self.trophy_types(enabled, 1))
        self.assertEqual({s.user_id: s.total_points for s in enabled.standings}[1], 9)

    def test_completed_with_undecided_matches_withholds_final_trophies(self):
        self.matches = (make_match(1, 1, 2, 1), make_match(2, 2))
        tournament = make_tournament(1, 2, status=COMPLETED)
        results, streaks = run_pipeline(tournament, self.matches, self.predictions)
        standings = build_standings(results, (1, 2))

        with self.assertLogs('engine.trophies', 'WARNING'):
            context = build_context(tournament, (1, 2), results, streaks, standings, BASE)
        self.assertIsInstance(context.warnings[0], InconsistentCompletionState)

        events = evaluate_trophies(context)
        self.assertNotIn('tournament_winner', {e.trophy_type for e in events[1]})
        self.assertNotIn('abyssal', {e.trophy_type for e in events[2]})

    def test_two_correct_results_in_a_matchday_make_an_opportunist(self):
        self.matches = (make_match(1, 1, 2, 1), make_match(3, 1, 1, 1), make_match(2, 2, 0, 0))
        self.predictions = (
            predict(1, 1, 1, 0), predict(1, 3, 2, 2),
            predict(2, 1, 1, 0), predict(2, 3, 0, 1),
        )
        outcome = process_snapshot(self.snapshot(), computed_at=BASE)

        self.assertIn('opportunist', self.trophy_types(outcome, 1))
        self.assertNotIn('nostradamus', self.trophy_types(outcome, 1))
        self.assertNotIn('opportunist', self.trophy_types(outcome, 2))

    def test_two_exact_scores_in_a_matchday_make_a_nostradamus(self):
        self.matches = (make_match(1, 1, 2, 1), make_match(3, 1, 1, 1), make_match(2, 2, 0, 0))
        self.predictions = (
            predict(1, 1, 2, 1), predict(1, 3, 1, 1),
            predict(2, 1, 2, 1), predict(2, 3, 2, 2),
        )
        outcome = process_snapshot(self.snapshot(), computed_at=BASE)

        self.assertTrue({'opportunist', 'nostradamus'} <= self.trophy_types(outcome, 1))
        self.assertIn('opportunist', self.trophy_types(outcome, 2))
        self.assertNotIn('nostradamus', self.trophy_types(outcome, 2))

    def test_default_predictions_do_not_count_towards_a_matchday(self):
        self.matches = (make_match(1, 1, 2, 1), make_match(3, 1, 0, 0), make_match(2, 2, 0, 0))
        self.predictions = (
            predict(1, 1, 2, 1), predict(1, 3, 0, 0, default=True),
            predict(2, 1, 0, 1), predict(2, 3, 1, 2),
        )
        outcome = process_snapshot(self.snapshot(), computed_at=BASE)

        self.assertEqual({s.user_id: s.total_points for s in outcome.standings}[1], 4)
        self.assertIn('exact_score', self.trophy_types(outcome, 1))
        self.assertFalse({'opportunist', 'nostradamus'} & self.trophy_types(outcome, 1))

    def test_early_bonus_does_not_decide_the_winner(self):
        self.matches = (make_match(1, 1, 1, 0),)
        self.predictions = (
            predict(1, 1, 2, 0, submitted_at=BASE - timedelta(days=1)),
            predict(2, 1, 3, 1),
        )
        snapshot = TournamentSnapshot(
            make_tournament(1, 1, early_prediction_bonus_enabled=True), self.matches, self.predictions, (1, 2),
        )
        outcome = process_snapshot(snapshot, computed_at=BASE)

        by_user = {s.user_id: s for s in outcome.standings}
        self.assertEqual((by_user[1].total_points, by_user[2].total_points), (2, 1))
        self.assertTrue(outcome.is_final)
        self.assertNotIn('tournament_winner', self.trophy_types(outcome, 1))
        self.assertNotIn('abyssal', self.trophy_types(outcome, 2))



class DurationTests(SimpleTestCase):

    def test_flat_championship_is_extrapolated(self):
        matches = [make_match(md, md) for md in range(1, 16)]
        estimate = estimate_ending_date(matches, 1, 20)

        self.assertEqual(estimate.state, ESTIMATED)
        self.assertTrue(estimate.estimation_used)
        self.assertEqual(estimate.ending_date, BASE + timedelta(days=7 * 14) + timedelta(days=7 * 5))

    def test_dated_last_matchday_is_exact(self):
        matches = [make_match(1, 1, 1, 0), make_match(2, 2), make_match(3, 2, kickoff=BASE + timedelta(days=9))]
        estimate = estimate_ending_date(matches, 1, 2)
        self.assertEqual(estimate.state, EXACT)
        self.assertEqual(estimate.ending_date, BASE + timedelta(days=9))
        self.assertFalse(estimate.estimation_used)

    def test_undated_final_round_gives_no_estimate(self):
        matches = [make_match(md, md, stage=LEAGUE_STAGE) for md in range(1, 9)]
        matches.append(make_match(99, 1, stage=FINAL, undated=True))
        estimate = estimate_ending_date(matches, 1, 17)
        self.assertEqual(estimate.state, NO_ESTIMATE)
        self.assertIsNone(estimate.ending_date)

    def test_single_dated_matchday_gives_no_estimate(self):
        estimate = estimate_ending_date([make_match(1, 1)], 1, 10)
        self.assertEqual(estimate.state, NO_ESTIMATE)

    def test_finalized_keeps_previous_date(self):
        previous = BASE + timedelta(days=30)
        tournament = make_tournament(1, 2, ending_date=previous)
        event = recalculate_ending_date(tournament, [make_match(1, 1, 1, 0), make_match(2, 2, 0, 0)])
        self.assertEqual(event.state, FINALIZED)
        self.assertEqual(event.new_ending_date, previous)
        self.assertFalse(event.changed)

    def test_moving_backward_is_logged_as_warning(self):
        tournament = make_tournament(1, 2, ending_date=BASE + timedelta(days=60))
        with self.assertLogs('engine.duration', 'WARNING'):
            event = recalculate_ending_date(tournament, [make_match(1, 1), make_match(2, 2)], 'Fixture moved')
        self.assertTrue(event.moved_backward)
        self.assertEqual(event.as_dict()['reason'], 'Fixture moved')

    def test_naive_previous_ending_date_is_read_as_utc(self):
        tournament = make_tournament(1, 2, ending_date=datetime(2025, 10, 1, 18, 0))
        self.assertEqual(tournament.ending_date, datetime(2025, 10, 1, 18, 0, tzinfo=timezone.utc))
        with self.assertLogs('engine.duration', 'WARNING'):
            event = recalculate_ending_date(tournament, [make_match(1, 1), make_match(2, 2)])
        self.assertTrue(event.moved_backward)



class MemorySource(TournamentSource):

    def __init__(self, snapshots, broken=()):
        self.snapshots = snapshots
        self.broken = set(broken)

    def list_tournaments_to_check(self):
        return list(self.snapshots) + sorted(self.broken)

    def load_snapshot(self, tournament_id):
        if tournament_id in self.broken:
            raise RuntimeError("database unavailable")
        return self.snapshots[tournament_id]


class MemorySink(ResultSink):

    def __init__(self):
        self.calls = []

    def apply_ranking_snapshot(self, tournament_id, standings):
        self.calls.append(('standings', tournament_id))

    def record_trophy_unlocks(self, user_id, events):
        self.calls.append(('trophies', user_id))

    def update_ending_date(self, tournament_id, iso_date, estimation_used, details, event=None):
        self.calls.append(('ending_date', tournament_id))

    def finalize_tournament(self, tournament_id):
        self.calls.append(('finalize', tournament_id))


class SweepTests(SimpleTestCase):

    def setUp(self):
        matches = (make_match(1, 1, 1, 0),)
        predictions = (predict(1, 1, 1, 0), predict(2, 1, 0, 0))
        self.snapshot = TournamentSnapshot(make_tournament(1, 1), matches, predictions, (1, 2))

    def test_deadline_raises_once_budget_is_spent(self):
        clock = itertools.chain([0.0], itertools.repeat(100.0)).__next__
        with self.assertRaises(ComputationTimeout):
            process_snapshot(self.snapshot, Deadline(1, 5.0, clock))

    def test_zero_budget_is_a_real_deadline(self):
        clock = itertools.count(0.0, 1.0).__next__
        with self.assertRaises(ComputationTimeout):
            Deadline(1, 0, clock).check()

    def test_no_budget_never_expires(self):
        clock = itertools.count(0.0, 100.0).__next__
        deadline = Deadline(1, None, clock)
        deadline.check()
        deadline.check()


    def test_sweep_commits_each_tournament_in_one_batch(self):
        sink = MemorySink()
        report = run_sweep(MemorySource({1: self.snapshot}, broken=[2]), sink, max_workers=2)

        self.assertEqual(report.committed, 1)
        self.assertEqual(report.finalized, 1)
        self.assertEqual(report.skipped, [2])
        self.assertEqual(report.outcomes[0].status, OK)
        self.assertEqual(sink.calls[0], ('standings', 1))
        self.assertEqual(sink.calls[-2:], [('ending_date', 1), ('finalize', 1)])

    def test_timed_out_tournament_is_skipped(self):
        sink = MemorySink()
        report = run_sweep(MemorySource({1: self.snapshot}), sink, timeout=-1)

        self.assertEqual(report.outcomes[0].status, TIMEOUT)
        self.assertEqual(report.skipped, [1])
        self.assertEqual(sink.calls, [])

    def test_failing_tournament_does_not_stop_the_sweep(self):
        bad = TournamentSnapshot(TournamentConfig(id=3, competition_ref=REF, starting_matchday=1, ending_matchday=1), None, (), (1,))
        report = run_sweep(MemorySource({1: self.snapshot, 3: bad}), MemorySink())

        statuses = {o.tournament_id: o.status for o in report.outcomes}
        self.assertEqual(statuses[1], OK)
        self.assertEqual(statuses[3], ERROR)
        self.assertEqual(report.committed, 1)
