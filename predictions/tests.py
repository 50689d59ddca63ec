from datetime import datetime, timedelta, timezone as dt_timezone

from django.contrib.auth.models import User
from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone

from engine import snapshot as engine
from predictions.models import Prediction, Standing
from predictions.signals import backfill_default_predictions, tournaments_covering
from tournaments.models import (
    Competition, CustomCompetition, CustomMatch, CustomMatchday, Match, Tournament,
)

KICKOFF = datetime(2025, 3, 1, 15, 0, tzinfo=dt_timezone.utc)


class DefaultPredictionTests(TestCase):
    def setUp(self):
        # Users
        self.organizer = User.objects.create_user(username='organizer', password='pass')
        self.alice = User.objects.create_user(username='alice', password='pass')
        self.bob = User.objects.create_user(username='bob', password='pass')

        # Fixtures
        self.competition = Competition.objects.create(name='Champions League', code='CL')
        self.match = Match.objects.create(
            competition=self.competition,
            home_team_name='Inter',
            away_team_name='Porto',
            stage=engine.LEAGUE_STAGE,
            matchday=2,
            utc_date=KICKOFF,
        )

        # Tournament
        self.tournament = Tournament.objects.create(
            name='Office Pool',
            organizer=self.organizer,
            competition=self.competition,
            starting_matchday=1,
            ending_matchday=8,
            status=engine.ACTIVE,
        )
        self.tournament.participants.add(self.alice, self.bob)

        Prediction.objects.create(
            user=self.alice, tournament=self.tournament, match=self.match,
            predicted_home_score=2, predicted_away_score=0,
        )

    def kick_off(self, match, status=engine.IN_PLAY):
        match.status = status
        match.save()

    def test_missing_prediction_is_filled_at_kickoff(self):
        self.kick_off(self.match)

        default = Prediction.objects.get(user=self.bob, match=self.match)
        self.assertTrue(default.is_default_prediction)
        self.assertEqual((default.predicted_home_score, default.predicted_away_score), (0, 0))
        self.assertEqual(default.submitted_at, KICKOFF)
        self.assertFalse(Prediction.objects.get(user=self.alice, match=self.match).is_default_prediction)

    def test_saving_again_creates_no_duplicate(self):
        self.kick_off(self.match)
        self.match.status = engine.FINISHED
        self.match.home_score, self.match.away_score = 1, 1
        self.match.save()

        self.assertEqual(Prediction.objects.filter(match=self.match).count(), 2)
        self.assertEqual(backfill_default_predictions(self.match), 0)

    def test_scheduled_match_is_left_alone(self):
        self.kick_off(self.match, engine.TIMED)
        self.assertFalse(Prediction.objects.filter(user=self.bob).exists())

    def test_postponed_or_cancelled_match_gets_no_defaults(self):
        self.match.utc_date = timezone.now() + timedelta(days=5)
        self.kick_off(self.match, engine.POSTPONED)
        self.assertFalse(Prediction.objects.filter(user=self.bob).exists())

        self.kick_off(self.match, engine.CANCELLED)
        self.assertFalse(Prediction.objects.filter(user=self.bob).exists())

    def test_rescheduled_match_can_still_be_predicted(self):
        self.kick_off(self.match, engine.POSTPONED)
        Prediction.objects.create(
            user=self.bob, tournament=self.tournament, match=self.match,
            predicted_home_score=1, predicted_away_score=1,
        )
        self.match.status = engine.SCHEDULED
        self.match.save()

        self.kick_off(self.match, engine.PAUSED)
        self.assertFalse(Prediction.objects.get(user=self.bob, match=self.match).is_default_prediction)
        self.assertEqual(Prediction.objects.filter(match=self.match).count(), 2)


    def test_out_of_range_or_completed_tournaments_are_skipped(self):
        Tournament.objects.filter(pk=self.tournament.pk).update(ending_matchday=1)
        self.kick_off(self.match)
        self.assertFalse(Prediction.objects.filter(user=self.bob).exists())

        Tournament.objects.filter(pk=self.tournament.pk).update(ending_matchday=8, status=engine.COMPLETED)
        self.kick_off(self.match)
        self.assertFalse(Prediction.objects.filter(user=self.bob).exists())

    def test_knockout_rounds_use_virtual_matchday(self):
        playoff = Match.objects.create(
            competition=self.competition, home_team_name='Celtic', away_team_name='Milan',
            stage=engine.PLAYOFFS, matchday=1, utc_date=KICKOFF + timedelta(days=60),
        )
        bracket = Tournament.objects.create(
            name='Bracket Pool', organizer=self.organizer, competition=self.competition,
            starting_matchday=9, ending_matchday=17, status=engine.ACTIVE,
        )
        bracket.participants.add(self.bob)

        self.assertEqual(tournaments_covering(playoff), [bracket])
        self.assertEqual(tournaments_covering(self.match), [self.tournament])

    def test_custom_competition_participants_are_filled(self):
        custom = CustomCompetition.objects.create(name='Big games', created_by=self.organizer)
        day = CustomMatchday.objects.create(custom_competition=custom, matchday_number=1)
        CustomMatch.objects.create(custom_matchday=day, match=self.match, cached_utc_date=KICKOFF)
        custom_tournament = Tournament.objects.create(
            name='Big games pool', organizer=self.organizer, custom_competition=custom,
            ending_matchday=3, status=engine.ACTIVE,
        )
        custom_tournament.participants.add(self.alice)

        self.kick_off(self.match)

        self.assertTrue(
            Prediction.objects.filter(user=self.alice, tournament=custom_tournament, is_default_prediction=True).exists()
        )
        self.assertTrue(
            Prediction.objects.filter(user=self.bob, tournament=self.tournament, is_default_prediction=True).exists()
        )


class StandingModelTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='carol', password='pass')
        competition = Competition.objects.create(name='Serie A')
        self.tournament = Tournament.objects.create(
            name='Calcio', organizer=self.user, competition=competition, ending_matchday=38,
        )

    def test_str(self):
        standing = Standing.objects.create(tournament=self.tournament, user=self.user, rank=1, total_points=12)
        self.assertEqual(str(standing), '#1 carol (12 pts)')

    def test_one_row_per_participant(self):
        Standing.objects.create(tournament=self.tournament, user=self.user, rank=1)
        with self.assertRaises(IntegrityError):
            Standing.objects.create(tournament=self.tournament, user=self.user, rank=2)
