from django.db import models
from django.contrib.auth.models import User

from engine.trophies import TROPHY_INFO


class UserTrophy(models.Model):
    TROPHY_CHOICES = tuple((key, info.name) for key, info in TROPHY_INFO.items())

    user = models.ForeignKey(User, related_name='trophies', on_delete=models.CASCADE)
    trophy_type = models.CharField(max_length=40, choices=TROPHY_CHOICES)
    tournament = models.ForeignKey('tournaments.Tournament', related_name='trophies', on_delete=models.SET_NULL, null=True, blank=True)
    unlocked_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('user', 'trophy_type')
        ordering = ['unlocked_at']

    def __str__(self):
        return f"{self.user.username}: {self.get_trophy_type_display()}"
