from django import forms
from django.conf import settings

from .models import BonusMatch, Tournament

class TournamentForm(forms.ModelForm):
    class Meta:
        model = Tournament
        fields = [
            'name', 'organizer', 'participants', 'competition', 'custom_competition',
            'starting_matchday', 'ending_matchday', 'status', 'bonus_match_enabled',
            'early_prediction_bonus_enabled', 'scoring_exact_score', 'scoring_correct_winner',
            'scoring_default_draw',
        ]
        labels = {
            'scoring_exact_score': 'Points for an exact score',
            'scoring_correct_winner': 'Points for a correct result',
            'scoring_default_draw': 'Points for a default prediction on a draw',
        }

    def clean(self):
        cleaned_data = super().clean()
        starting = cleaned_data.get("starting_matchday")
        ending = cleaned_data.get("ending_matchday")

        if starting and ending and ending < starting:
            raise forms.ValidationError("The ending matchday cannot be before the starting matchday.")

        if bool(cleaned_data.get("competition")) == bool(cleaned_data.get("custom_competition")):
            raise forms.ValidationError("Pick either an imported competition or a custom one.")

        return cleaned_data


class BonusMatchForm(forms.ModelForm):
    class Meta:
        model = BonusMatch
        fields = ['tournament', 'match', 'matchday']

    def clean(self):
        cleaned_data = super().clean()
        tournament = cleaned_data.get("tournament")
        matchday = cleaned_data.get("matchday")

        if tournament and not tournament.bonus_match_enabled:
            raise forms.ValidationError("Bonus matches are disabled for this tournament.")

        if tournament and matchday:
            limit = settings.PRONOHUB_ENGINE['MAX_BONUS_MATCHES_PER_MATCHDAY']
            taken = BonusMatch.objects.filter(tournament=tournament, matchday=matchday)
            if self.instance.pk:
                taken = taken.exclude(pk=self.instance.pk)
            if taken.count() >= limit:
                raise forms.ValidationError(f"At most {limit} bonus match(es) per matchday.")

        return cleaned_data
