import logging

from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone

from engine import snapshot as engine
from engine.sequencer import virtual_matchday
from tournaments.models import Match, Tournament
from .models import Prediction

logger = logging.getLogger(__name__)

LOCKED = (engine.IN_PLAY, engine.PAUSED, engine.FINISHED, engine.AWARDED)


def competition_has_knockout(competition_id):
    return (
        Match.objects.filter(competition_id=competition_id, stage__isnull=False)
        .exclude(stage__in=engine.LEAGUE_STAGES)
        .exists()
    )


def tournaments_covering(match):
    """Open tournaments whose matchday range includes ``match``."""
    open_tournaments = Tournament.objects.exclude(status=engine.COMPLETED)
    covering = []

    order = virtual_matchday(match.stage, match.matchday, competition_has_knockout(match.competition_id))
    for tournament in open_tournaments.filter(competition_id=match.competition_id):
        if tournament.starting_matchday <= order <= tournament.ending_matchday:
            covering.append(tournament)

    for entry in match.custom_entries.select_related('custom_matchday'):
        number = entry.custom_matchday.matchday_number
        for tournament in open_tournaments.filter(custom_competition_id=entry.custom_matchday.custom_competition_id):
            if tournament.starting_matchday <= number <= tournament.ending_matchday and tournament not in covering:
                covering.append(tournament)
    return covering


def backfill_default_predictions(match):
    """Give a 0-0 default prediction to every participant who did not predict ``match``."""
    created = 0
    for tournament in tournaments_covering(match):
        predicted = set(
            Prediction.objects.filter(tournament=tournament, match=match).values_list('user_id', flat=True)
        )
        missing = list(tournament.participants.exclude(pk__in=predicted))
        Prediction.objects.bulk_create([
            Prediction(
                user=user,
                tournament=tournament,
                match=match,
                predicted_home_score=0,
                predicted_away_score=0,
                is_default_prediction=True,
                submitted_at=match.utc_date or timezone.now(),
            )
            for user in missing
        ])
        created += len(missing)
    if created:
        logger.info("Created %d default prediction(s) for match %s", created, match.pk)
    return created


@receiver(post_save, sender=Match)
def fill_default_predictions_after_kickoff(sender, instance, **kwargs):
    # postponed and cancelled fixtures never lock predictions
    if instance.status not in LOCKED:
        return
    backfill_default_predictions(instance)
