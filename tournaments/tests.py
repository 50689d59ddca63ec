from datetime import datetime, timedelta, timezone as dt_timezone
from io import StringIO
from unittest.mock import patch

from django.contrib.auth.models import User
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.urls import reverse

from engine import snapshot as engine
from engine.duration import EndingDateEvent, EXACT
from engine.sweep import SweepReport
from predictions.models import Prediction, Standing
from trophies.models import UserTrophy
from .forms import BonusMatchForm, TournamentForm
from .models import (
    BonusMatch, Competition, CustomCompetition, CustomMatch, CustomMatchday, Match, Tournament,
    TournamentDurationEvent,
)
from .snapshots import DjangoResultSink, DjangoTournamentSource

KICKOFF = datetime(2025, 3, 1, 15, 0, tzinfo=dt_timezone.utc)


class BaseTournamentTestCase(TestCase):
    """Base test case with a two-matchday tournament between alice and bob."""

    @classmethod
    def setUpTestData(cls):
        cls.organizer = User.objects.create_user(username="organizer", password="password")
        cls.alice = User.objects.create_user(username="alice", password="password")
        cls.bob = User.objects.create_user(username="bob", password="password")

        cls.competition = Competition.objects.create(name="Premier League", code="PL")
        cls.match1 = Match.objects.create(
            competition=cls.competition, home_team_name="Arsenal", away_team_name="Chelsea",
            stage=engine.REGULAR_SEASON, matchday=1, utc_date=KICKOFF,
        )
        cls.match2 = Match.objects.create(
            competition=cls.competition, home_team_name="Everton", away_team_name="Fulham",
            stage=engine.REGULAR_SEASON, matchday=1, utc_date=KICKOFF + timedelta(hours=2),
        )
        cls.match3 = Match.objects.create(
            competition=cls.competition, home_team_name="Chelsea", away_team_name="Everton",
            stage=engine.REGULAR_SEASON, matchday=2, utc_date=KICKOFF + timedelta(days=7),
        )

        cls.tournament = Tournament.objects.create(
            name="Office League",
            organizer=cls.organizer,
            competition=cls.competition,
            starting_matchday=1,
            ending_matchday=2,
            status=engine.ACTIVE,
        )
        cls.tournament.participants.add(cls.alice, cls.bob)

    def predict(self, user, match, home, away, tournament=None):
        return Prediction.objects.create(
            user=user,
            tournament=tournament or self.tournament,
            match=match,
            predicted_home_score=home,
            predicted_away_score=away,
            submitted_at=KICKOFF - timedelta(days=1),
        )

    def finish(self, match, home, away):
        match.status = engine.FINISHED
        match.home_score = home
        match.away_score = away
        match.save()

    def play_matchday_one(self):
        self.predict(self.alice, self.match1, 2, 1)
        self.predict(self.alice, self.match2, 0, 0)
        self.predict(self.bob, self.match1, 0, 2)
        self.predict(self.bob, self.match2, 1, 0)
        self.finish(self.match1, 2, 1)
        self.finish(self.match2, 0, 0)

    def play_matchday_two(self):
        self.predict(self.alice, self.match3, 1, 1)
        self.predict(self.bob, self.match3, 0, 1)
        self.finish(self.match3, 1, 1)

    def run_sweep(self, *args):
        out, err = StringIO(), StringIO()
        call_command('run_tournament_sweep', *args, stdout=out, stderr=err)
        return out.getvalue()


class TournamentSourceTests(BaseTournamentTestCase):

    def test_only_active_tournaments_are_checked(self):
        Tournament.objects.create(
            name="Old League", organizer=self.organizer, competition=self.competition,
            ending_matchday=2, status=engine.COMPLETED,
        )
        self.assertEqual(DjangoTournamentSource().list_tournaments_to_check(), [self.tournament.pk])

    def test_snapshot_of_imported_competition(self):
        self.predict(self.alice, self.match1, 1, 0)
        snapshot = DjangoTournamentSource().load_snapshot(self.tournament.pk)

        self.assertEqual(snapshot.tournament.competition_ref, engine.CompetitionRef('imported', self.competition.pk))
        self.assertEqual({m.id for m in snapshot.matches}, {self.match1.pk, self.match2.pk, self.match3.pk})
        self.assertEqual(snapshot.participants, (self.alice.pk, self.bob.pk))
        self.assertEqual(len(snapshot.predictions), 1)
        self.assertEqual(snapshot.predictions[0].submitted_at, KICKOFF - timedelta(days=1))
        self.assertEqual(snapshot.unlocked_trophies, frozenset())

    def test_bonus_matches_are_flagged(self):
        BonusMatch.objects.create(tournament=self.tournament, match=self.match1, matchday=1)
        snapshot = DjangoTournamentSource().load_snapshot(self.tournament.pk)
        flagged = {m.id for m in snapshot.matches if m.is_bonus_match}
        self.assertEqual(flagged, {self.match1.pk})

    def test_snapshot_of_custom_competition(self):
        custom = CustomCompetition.objects.create(name="Derbies", created_by=self.organizer)
        day1 = CustomMatchday.objects.create(custom_competition=custom, matchday_number=1)
        day2 = CustomMatchday.objects.create(custom_competition=custom, matchday_number=2)
        CustomMatch.objects.create(custom_matchday=day1, match=self.match3, cached_utc_date=KICKOFF)
        CustomMatch.objects.create(custom_matchday=day2, match=None, cached_utc_date=KICKOFF + timedelta(days=3))
        tournament = Tournament.objects.create(
            name="Derby Cup", organizer=self.organizer, custom_competition=custom,
            ending_matchday=2, status=engine.ACTIVE,
        )

        snapshot = DjangoTournamentSource().load_snapshot(tournament.pk)
        by_matchday = {m.matchday: m for m in snapshot.matches}

        self.assertEqual(snapshot.tournament.competition_ref.kind, 'custom')
        self.assertEqual(by_matchday[1].id, self.match3.pk)
        self.assertEqual(by_matchday[1].kickoff_time, self.match3.utc_date)
        self.assertIsNone(by_matchday[1].stage)
        self.assertEqual(by_matchday[2].kickoff_time, KICKOFF + timedelta(days=3))


class ResultSinkTests(BaseTournamentTestCase):

    def test_ranking_snapshot_replaces_previous_rows(self):
        Standing.objects.create(tournament=self.tournament, user=self.alice, rank=2, total_points=1)
        sink = DjangoResultSink()
        sink.apply_ranking_snapshot(self.tournament.pk, [
            engine.ParticipantStanding(user_id=self.alice.pk, total_points=4, rank=1, previous_rank=2, rank_change='up'),
            engine.ParticipantStanding(user_id=self.bob.pk, total_points=0, rank=2),
        ])

        rows = list(Standing.objects.filter(tournament=self.tournament))
        self.assertEqual([(r.user, r.rank, r.total_points) for r in rows], [(self.alice, 1, 4), (self.bob, 2, 0)])
        self.assertEqual(rows[0].rank_change, 'up')

    def test_unchanged_ending_date_is_not_audited(self):
        sink = DjangoResultSink()
        new_date = KICKOFF + timedelta(days=7)
        event = EndingDateEvent(self.tournament.pk, EXACT, None, new_date, False, 'Latest kickoff', 'Test')
        sink.update_ending_date(self.tournament.pk, new_date.isoformat(), False, event.details, event)

        same = EndingDateEvent(self.tournament.pk, EXACT, new_date, new_date, False, 'Latest kickoff', 'Test')
        sink.update_ending_date(self.tournament.pk, new_date.isoformat(), False, same.details, same)

        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.ending_date, new_date)
        self.assertEqual(TournamentDurationEvent.objects.filter(tournament=self.tournament).count(), 1)


class RunTournamentSweepCommandTests(BaseTournamentTestCase):

    def test_finished_tournament_is_ranked_and_finalized(self):
        self.play_matchday_one()
        self.play_matchday_two()

        out = self.run_sweep()

        self.assertIn('Finalized', out)
        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.status, engine.COMPLETED)
        self.assertEqual(self.tournament.ending_date, KICKOFF + timedelta(days=7))

        alice = Standing.objects.get(tournament=self.tournament, user=self.alice)
        bob = Standing.objects.get(tournament=self.tournament, user=self.bob)
        self.assertEqual((alice.rank, alice.total_points, alice.exact_scores), (1, 9, 3))
        self.assertEqual((bob.rank, bob.total_points), (2, 0))

        self.assertTrue(UserTrophy.objects.filter(user=self.alice, trophy_type='tournament_winner', tournament=self.tournament).exists())
        self.assertTrue(UserTrophy.objects.filter(user=self.bob, trophy_type='abyssal').exists())
        self.assertFalse(UserTrophy.objects.filter(user=self.alice, trophy_type='legend').exists())

        event = TournamentDurationEvent.objects.get(tournament=self.tournament)
        self.assertEqual(event.state, 'finalized')
        self.assertIsNone(event.previous_ending_date)

    def test_rerunning_the_sweep_is_idempotent(self):
        self.play_matchday_one()
        self.play_matchday_two()
        self.run_sweep()
        trophies = UserTrophy.objects.count()

        self.run_sweep('--tournament', str(self.tournament.pk))

        self.assertEqual(UserTrophy.objects.count(), trophies)
        self.assertEqual(Standing.objects.filter(tournament=self.tournament).count(), 2)
        self.assertEqual(TournamentDurationEvent.objects.filter(tournament=self.tournament).count(), 1)

    def test_running_tournament_gets_exact_ending_date(self):
        self.play_matchday_one()

        self.run_sweep('--workers', '1', '--timeout', '10')

        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.status, engine.ACTIVE)
        self.assertEqual(self.tournament.ending_date, KICKOFF + timedelta(days=7))
        event = TournamentDurationEvent.objects.get(tournament=self.tournament)
        self.assertEqual(event.state, 'exact')
        self.assertFalse(event.estimation_used)

        self.assertTrue(UserTrophy.objects.filter(user=self.alice, trophy_type='king_of_day').exists())
        self.assertTrue(UserTrophy.objects.filter(user=self.alice, trophy_type='nostradamus').exists())
        self.assertFalse(UserTrophy.objects.filter(user=self.alice, trophy_type='tournament_winner').exists())

    def test_no_active_tournament(self):
        Tournament.objects.filter(pk=self.tournament.pk).update(status=engine.PENDING)
        self.assertIn('No active tournaments', self.run_sweep())

    def test_unknown_tournament_is_rejected(self):
        with self.assertRaises(CommandError):
            self.run_sweep('--tournament', '999999')

    @patch('tournaments.management.commands.run_tournament_sweep.run_sweep', return_value=SweepReport())
    def test_explicit_zero_options_are_respected(self, mock_run_sweep):
        self.run_sweep('--workers', '0', '--timeout', '0')

        kwargs = mock_run_sweep.call_args.kwargs
        self.assertEqual(kwargs['max_workers'], 0)
        self.assertEqual(kwargs['timeout'], 0)

    @patch('tournaments.management.commands.run_tournament_sweep.run_sweep', return_value=SweepReport())
    def test_missing_options_fall_back_to_settings(self, mock_run_sweep):
        with self.settings(PRONOHUB_ENGINE={'MAX_WORKERS': 3, 'TOURNAMENT_TIMEOUT': 12.5, 'EARLY_PREDICTION_BONUS_POINTS': 1}):
            self.run_sweep()

        kwargs = mock_run_sweep.call_args.kwargs
        self.assertEqual(kwargs['max_workers'], 3)
        self.assertEqual(kwargs['timeout'], 12.5)


class TournamentFormTests(BaseTournamentTestCase):

    def form_data(self, **overrides):
        data = {
            'name': 'Friends Cup',
            'organizer': self.organizer.pk,
            'participants': [self.alice.pk],
            'competition': self.competition.pk,
            'starting_matchday': 1,
            'ending_matchday': 10,
            'status': engine.PENDING,
            'scoring_exact_score': 3,
            'scoring_correct_winner': 1,
            'scoring_default_draw': 1,
        }
        data.update(overrides)
        return data

    def test_valid_form(self):
        form = TournamentForm(data=self.form_data())
        self.assertTrue(form.is_valid(), form.errors)

    def test_ending_before_starting_matchday(self):
        form = TournamentForm(data=self.form_data(starting_matchday=5, ending_matchday=2))
        self.assertFalse(form.is_valid())
        self.assertIn("The ending matchday cannot be before the starting matchday.", form.non_field_errors())

    def test_exactly_one_competition(self):
        custom = CustomCompetition.objects.create(name="Derbies")
        form = TournamentForm(data=self.form_data(custom_competition=custom.pk))
        self.assertFalse(form.is_valid())

    def test_bonus_match_cap_per_matchday(self):
        Tournament.objects.filter(pk=self.tournament.pk).update(bonus_match_enabled=True)
        BonusMatch.objects.create(tournament=self.tournament, match=self.match1, matchday=1)

        form = BonusMatchForm(data={'tournament': self.tournament.pk, 'match': self.match2.pk, 'matchday': 1})
        self.assertFalse(form.is_valid())

        form = BonusMatchForm(data={'tournament': self.tournament.pk, 'match': self.match3.pk, 'matchday': 2})
        self.assertTrue(form.is_valid(), form.errors)

    def test_bonus_match_needs_bonus_enabled(self):
        form = BonusMatchForm(data={'tournament': self.tournament.pk, 'match': self.match1.pk, 'matchday': 1})
        self.assertFalse(form.is_valid())


class TournamentAdminTests(BaseTournamentTestCase):

    def setUp(self):
        self.admin = User.objects.create_superuser(username="admin", password="password", email="admin@test.com")
        self.client.force_login(self.admin)

    def test_changelists_load(self):
        for name in ('tournaments_tournament', 'tournaments_match', 'tournaments_tournamentdurationevent'):
            response = self.client.get(reverse(f'admin:{name}_changelist'))
            self.assertEqual(response.status_code, 200)

    def test_change_form_loads(self):
        response = self.client.get(reverse('admin:tournaments_tournament_change', args=[self.tournament.pk]))
        self.assertEqual(response.status_code, 200)
