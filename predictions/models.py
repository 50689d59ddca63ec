from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone

class Prediction(models.Model):
    user = models.ForeignKey(User, related_name='predictions', on_delete=models.CASCADE)
    tournament = models.ForeignKey('tournaments.Tournament', related_name='predictions', on_delete=models.CASCADE)
    match = models.ForeignKey('tournaments.Match', related_name='predictions', on_delete=models.CASCADE)
    predicted_home_score = models.PositiveIntegerField()
    predicted_away_score = models.PositiveIntegerField()
    is_default_prediction = models.BooleanField(default=False)
    submitted_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ('user', 'tournament', 'match')

    def __str__(self):
        return f"{self.user.username}'s prediction for {self.match}"


class Standing(models.Model):
    """Last committed ranking of a tournament. Recomputable at any time."""
    tournament = models.ForeignKey('tournaments.Tournament', related_name='standings', on_delete=models.CASCADE)
    user = models.ForeignKey(User, related_name='standings', on_delete=models.CASCADE)
    rank = models.PositiveIntegerField()
    previous_rank = models.PositiveIntegerField(null=True, blank=True)
    rank_change = models.CharField(max_length=10, null=True, blank=True)
    total_points = models.IntegerField(default=0)
    exact_scores = models.PositiveIntegerField(default=0)
    correct_results = models.PositiveIntegerField(default=0)
    matches_played = models.PositiveIntegerField(default=0)
    early_prediction_bonus = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('tournament', 'user')
        ordering = ['rank', 'user__username']

    def __str__(self):
        return f"#{self.rank} {self.user.username} ({self.total_points} pts)"
