from django.contrib import admin
from .forms import BonusMatchForm, TournamentForm
from .models import (
    BonusMatch, Competition, CustomCompetition, CustomMatch, CustomMatchday, Match, Tournament,
    TournamentDurationEvent,
)

@admin.register(Tournament)
class TournamentAdmin(admin.ModelAdmin):
    form = TournamentForm
    list_display = ('name', 'organizer', 'status', 'starting_matchday', 'ending_matchday', 'ending_date')
    list_filter = ('status', 'bonus_match_enabled', 'early_prediction_bonus_enabled')
    search_fields = ('name', 'organizer__username')
    filter_horizontal = ('participants',)

@admin.register(Match)
class MatchAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'competition', 'stage', 'matchday', 'utc_date', 'status', 'home_score', 'away_score')
    list_filter = ('competition', 'stage', 'status')
    search_fields = ('home_team_name', 'away_team_name', 'competition__name')
    date_hierarchy = 'utc_date'

@admin.register(BonusMatch)
class BonusMatchAdmin(admin.ModelAdmin):
    form = BonusMatchForm
    list_display = ('tournament', 'match', 'matchday')
    list_filter = ('tournament',)

@admin.register(TournamentDurationEvent)
class TournamentDurationEventAdmin(admin.ModelAdmin):
    list_display = ('tournament', 'state', 'previous_ending_date', 'new_ending_date', 'estimation_used', 'moved_backward', 'created_at')
    list_filter = ('state', 'moved_backward', 'estimation_used')
    search_fields = ('tournament__name', 'reason')

admin.site.register(Competition)
admin.site.register(CustomCompetition)
admin.site.register(CustomMatchday)
admin.site.register(CustomMatch)
