from django.conf import settings
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.db import models

from engine import snapshot as engine


class Competition(models.Model):
    """Competition imported from the sports-data feed."""
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=20, blank=True)
    external_id = models.IntegerField(unique=True, null=True, blank=True)

    def __str__(self):
        return self.name


class CustomCompetition(models.Model):
    name = models.CharField(max_length=255)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='custom_competitions')

    def __str__(self):
        return self.name


class Match(models.Model):
    STAGE_CHOICES = (
        (engine.REGULAR_SEASON, 'Regular season'),
        (engine.LEAGUE_STAGE, 'League stage'),
        (engine.GROUP_STAGE, 'Group stage'),
        (engine.PRELIMINARY_ROUND, 'Preliminary round'),
        (engine.PLAYOFFS, 'Play-offs'),
        (engine.LAST_32, 'Round of 32'),
        (engine.LAST_16, 'Round of 16'),
        (engine.QUARTER_FINALS, 'Quarter-finals'),
        (engine.SEMI_FINALS, 'Semi-finals'),
        (engine.THIRD_PLACE, 'Third place'),
        (engine.FINAL, 'Final'),
    )
    STATUS_CHOICES = (
        (engine.SCHEDULED, 'Scheduled'),
        (engine.TIMED, 'Timed'),
        (engine.IN_PLAY, 'In play'),
        (engine.PAUSED, 'Paused'),
        (engine.FINISHED, 'Finished'),
        (engine.AWARDED, 'Awarded'),
        (engine.POSTPONED, 'Postponed'),
        (engine.CANCELLED, 'Cancelled'),
    )

    competition = models.ForeignKey(Competition, related_name='matches', on_delete=models.CASCADE)
    external_id = models.IntegerField(unique=True, null=True, blank=True)
    home_team_name = models.CharField(max_length=255)
    away_team_name = models.CharField(max_length=255)
    stage = models.CharField(max_length=30, choices=STAGE_CHOICES, null=True, blank=True)
    matchday = models.PositiveIntegerField(null=True, blank=True)
    utc_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=engine.SCHEDULED)
    home_score = models.IntegerField(null=True, blank=True)
    away_score = models.IntegerField(null=True, blank=True)

    class Meta:
        ordering = ['utc_date', 'id']

    def __str__(self):
        return f"{self.home_team_name} vs {self.away_team_name} ({self.competition.name})"

    @property
    def is_decided(self):
        return (
            self.status in engine.DECIDED_STATUSES
            and self.home_score is not None
            and self.away_score is not None
        )

    def clean(self):
        if self.status in engine.DECIDED_STATUSES and (self.home_score is None or self.away_score is None):
            raise ValidationError("A finished match needs both scores.")


class CustomMatchday(models.Model):
    custom_competition = models.ForeignKey(CustomCompetition, related_name='matchdays', on_delete=models.CASCADE)
    matchday_number = models.PositiveIntegerField()

    class Meta:
        unique_together = ('custom_competition', 'matchday_number')
        ordering = ['matchday_number']

    def __str__(self):
        return f"{self.custom_competition.name} - Matchday {self.matchday_number}"


class CustomMatch(models.Model):
    custom_matchday = models.ForeignKey(CustomMatchday, related_name='matches', on_delete=models.CASCADE)
    match = models.ForeignKey(Match, related_name='custom_entries', on_delete=models.SET_NULL, null=True, blank=True)
    cached_utc_date = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"{self.custom_matchday}: {self.match}"


class Tournament(models.Model):
    STATUS_CHOICES = (
        (engine.PENDING, 'Pending'),
        (engine.WARMUP, 'Warm-up'),
        (engine.ACTIVE, 'Active'),
        (engine.COMPLETED, 'Completed'),
    )

    name = models.CharField(max_length=255)
    organizer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='organized_tournaments')
    participants = models.ManyToManyField(User, related_name='prediction_tournaments', blank=True)
    competition = models.ForeignKey(Competition, related_name='tournaments', on_delete=models.PROTECT, null=True, blank=True)
    custom_competition = models.ForeignKey(CustomCompetition, related_name='tournaments', on_delete=models.PROTECT, null=True, blank=True)
    starting_matchday = models.PositiveIntegerField(default=1)
    ending_matchday = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=engine.PENDING)
    bonus_match_enabled = models.BooleanField(default=False)
    early_prediction_bonus_enabled = models.BooleanField(default=False)
    scoring_exact_score = models.PositiveIntegerField(default=3)
    scoring_correct_winner = models.PositiveIntegerField(default=1)
    scoring_default_draw = models.PositiveIntegerField(default=1)
    ending_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    def clean(self):
        if self.starting_matchday and self.ending_matchday and self.ending_matchday < self.starting_matchday:
            raise ValidationError("The ending matchday cannot be before the starting matchday.")
        if bool(self.competition_id) == bool(self.custom_competition_id):
            raise ValidationError("A tournament follows exactly one competition.")

    @property
    def competition_ref(self):
        if self.custom_competition_id:
            return engine.CompetitionRef('custom', self.custom_competition_id)
        return engine.CompetitionRef('imported', self.competition_id)


class BonusMatch(models.Model):
    """Match picked by the tournament owner to count double."""
    tournament = models.ForeignKey(Tournament, related_name='bonus_matches', on_delete=models.CASCADE)
    match = models.ForeignKey(Match, related_name='bonus_for', on_delete=models.CASCADE)
    matchday = models.PositiveIntegerField()

    class Meta:
        unique_together = ('tournament', 'match')

    def __str__(self):
        return f"Bonus {self.match} ({self.tournament.name})"

    def clean(self):
        limit = settings.PRONOHUB_ENGINE['MAX_BONUS_MATCHES_PER_MATCHDAY']
        others = BonusMatch.objects.filter(tournament_id=self.tournament_id, matchday=self.matchday).exclude(pk=self.pk)
        if others.count() >= limit:
            raise ValidationError(f"At most {limit} bonus match(es) per matchday.")


class TournamentDurationEvent(models.Model):
    tournament = models.ForeignKey(Tournament, related_name='duration_events', on_delete=models.CASCADE)
    event_type = models.CharField(max_length=30, default='recalculation')
    state = models.CharField(max_length=20)
    previous_ending_date = models.DateTimeField(null=True, blank=True)
    new_ending_date = models.DateTimeField(null=True, blank=True)
    estimation_used = models.BooleanField(default=False)
    moved_backward = models.BooleanField(default=False)
    details = models.TextField(blank=True)
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.tournament.name}: {self.previous_ending_date} -> {self.new_ending_date}"
