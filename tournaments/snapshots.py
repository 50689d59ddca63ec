"""
ORM-backed snapshot source and result sink for the scoring engine.
"""
import logging

from django.contrib.auth.models import User
from django.db import transaction
from django.utils.dateparse import parse_datetime

from engine import snapshot as engine
from engine.normalizer import CustomMatch as CustomRecord, LeagueMatch, normalize_matches
from engine.sweep import ResultSink, TournamentSource
from predictions.models import Prediction, Standing
from trophies.models import UserTrophy
from .models import BonusMatch, CustomMatch, Match, Tournament, TournamentDurationEvent

logger = logging.getLogger(__name__)


def league_record(match):
    return LeagueMatch(
        id=match.pk,
        competition_id=match.competition_id,
        matchday=match.matchday,
        stage=match.stage,
        utc_date=match.utc_date,
        status=match.status,
        home_score=match.home_score,
        away_score=match.away_score,
    )


def tournament_config(tournament):
    return engine.TournamentConfig(
        id=tournament.pk,
        competition_ref=tournament.competition_ref,
        starting_matchday=tournament.starting_matchday,
        ending_matchday=tournament.ending_matchday,
        status=tournament.status,
        bonus_match_enabled=tournament.bonus_match_enabled,
        early_prediction_bonus_enabled=tournament.early_prediction_bonus_enabled,
        scoring=engine.ScoringConfig(
            exact_score_points=tournament.scoring_exact_score,
            correct_winner_points=tournament.scoring_correct_winner,
            default_draw_points=tournament.scoring_default_draw,
        ),
        ending_date=tournament.ending_date,
    )


class DjangoTournamentSource(TournamentSource):

    def list_tournaments_to_check(self):
        return list(
            Tournament.objects.filter(status=engine.ACTIVE).order_by('pk').values_list('pk', flat=True)
        )

    def get_tournament_config(self, tournament_id):
        return tournament_config(Tournament.objects.get(pk=tournament_id))

    def list_match_records(self, tournament):
        ref = tournament.competition_ref
        if ref.kind == 'custom':
            entries = (
                CustomMatch.objects
                .filter(custom_matchday__custom_competition_id=ref.id)
                .select_related('custom_matchday', 'match')
                .order_by('custom_matchday__matchday_number', 'pk')
            )
            return [
                CustomRecord(
                    id=entry.pk,
                    custom_competition_id=ref.id,
                    matchday_number=entry.custom_matchday.matchday_number,
                    cached_utc_date=entry.cached_utc_date,
                    source=league_record(entry.match) if entry.match_id else None,
                )
                for entry in entries
            ]
        return [league_record(m) for m in Match.objects.filter(competition_id=ref.id)]

    def list_decided_and_scheduled_matches(self, tournament):
        bonus_ids = BonusMatch.objects.filter(tournament_id=tournament.id).values_list('match_id', flat=True)
        return normalize_matches(self.list_match_records(tournament), bonus_ids)

    def list_predictions(self, tournament):
        return [
            engine.Prediction(
                user_id=p.user_id,
                tournament_id=p.tournament_id,
                match_id=p.match_id,
                predicted_home_score=p.predicted_home_score,
                predicted_away_score=p.predicted_away_score,
                is_default_prediction=p.is_default_prediction,
                submitted_at=p.submitted_at,
            )
            for p in Prediction.objects.filter(tournament_id=tournament.id)
        ]

    def list_participants(self, tournament):
        return list(
            User.objects.filter(prediction_tournaments=tournament.id).order_by('pk').values_list('pk', flat=True)
        )

    def list_unlocked_trophies(self, participants):
        return UserTrophy.objects.filter(user_id__in=participants).values_list('user_id', 'trophy_type')


class DjangoResultSink(ResultSink):

    def commit(self, outcome):
        with transaction.atomic():
            super().commit(outcome)

    def apply_ranking_snapshot(self, tournament_id, standings):
        Standing.objects.filter(tournament_id=tournament_id).delete()
        Standing.objects.bulk_create([
            Standing(
                tournament_id=tournament_id,
                user_id=s.user_id,
                rank=s.rank,
                previous_rank=s.previous_rank,
                rank_change=s.rank_change,
                total_points=s.total_points,
                exact_scores=s.exact_scores,
                correct_results=s.correct_results,
                matches_played=s.matches_played,
                early_prediction_bonus=s.early_prediction_bonus,
            )
            for s in standings
        ])

    def record_trophy_unlocks(self, user_id, events):
        for event in events:
            trophy, created = UserTrophy.objects.get_or_create(
                user_id=user_id,
                trophy_type=event.trophy_type,
                defaults={'unlocked_at': event.unlocked_at, 'tournament_id': event.tournament_id},
            )
            if created:
                logger.info("User %s unlocked trophy %s", user_id, event.trophy_type)

    def update_ending_date(self, tournament_id, iso_date, estimation_used, details, event=None):
        new_date = parse_datetime(iso_date) if iso_date else None
        Tournament.objects.filter(pk=tournament_id).update(ending_date=new_date)

        if event is not None and event.changed:
            TournamentDurationEvent.objects.create(
                tournament_id=tournament_id,
                state=event.state,
                previous_ending_date=event.previous_ending_date,
                new_ending_date=new_date,
                estimation_used=estimation_used,
                moved_backward=event.moved_backward,
                details=details,
                reason=event.reason,
            )

    def finalize_tournament(self, tournament_id):
        updated = (
            Tournament.objects.filter(pk=tournament_id)
            .exclude(status=engine.COMPLETED)
            .update(status=engine.COMPLETED)
        )
        if updated:
            logger.info("Tournament %s finalized", tournament_id)
