from datetime import datetime, timezone as dt_timezone

from django.contrib.auth.models import User
from django.db import IntegrityError
from django.test import TestCase
from django.urls import reverse

from engine.snapshot import TrophyUnlockEvent
from engine.trophies import TROPHY_TYPES, get_trophy_info
from tournaments.models import Competition, Tournament
from tournaments.snapshots import DjangoResultSink
from .models import UserTrophy

UNLOCKED_AT = datetime(2025, 5, 1, 20, 0, tzinfo=dt_timezone.utc)


class UserTrophyTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(username="dave", password="password")
        competition = Competition.objects.create(name="Ligue 1")
        cls.tournament = Tournament.objects.create(
            name="Ligue 1 pool", organizer=cls.user, competition=competition, ending_matchday=34,
        )

    def test_catalogue_has_every_trophy(self):
        self.assertEqual(len(TROPHY_TYPES), 16)
        self.assertEqual(get_trophy_info('legend').name, 'The Legend')
        self.assertEqual(get_trophy_info('no_such_trophy').name, 'Unknown trophy')

    def test_display_name(self):
        trophy = UserTrophy.objects.create(user=self.user, trophy_type='king_of_day', unlocked_at=UNLOCKED_AT)
        self.assertEqual(str(trophy), "dave: King of the Day")

    def test_a_trophy_type_is_unlocked_once_per_user(self):
        UserTrophy.objects.create(user=self.user, trophy_type='cursed', unlocked_at=UNLOCKED_AT)
        with self.assertRaises(IntegrityError):
            UserTrophy.objects.create(user=self.user, trophy_type='cursed', unlocked_at=UNLOCKED_AT)

    def test_recording_unlocks_keeps_the_first_one(self):
        sink = DjangoResultSink()
        event = TrophyUnlockEvent(self.user.pk, 'exact_score', UNLOCKED_AT, self.tournament.pk)
        later = TrophyUnlockEvent(self.user.pk, 'exact_score', datetime(2025, 6, 1, tzinfo=dt_timezone.utc), None)

        sink.record_trophy_unlocks(self.user.pk, [event])
        sink.record_trophy_unlocks(self.user.pk, [later])

        trophy = UserTrophy.objects.get(user=self.user, trophy_type='exact_score')
        self.assertEqual(trophy.unlocked_at, UNLOCKED_AT)
        self.assertEqual(trophy.tournament, self.tournament)

    def test_admin_changelist_loads(self):
        admin = User.objects.create_superuser(username="admin", password="password", email="admin@test.com")
        self.client.force_login(admin)
        response = self.client.get(reverse('admin:trophies_usertrophy_changelist'))
        self.assertEqual(response.status_code, 200)
