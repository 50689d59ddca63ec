from django.contrib import admin
from predictions.models import Prediction, Standing

@admin.register(Prediction)
class PredictionAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'tournament', 'match', 'predicted_home_score', 'predicted_away_score', 'is_default_prediction', 'submitted_at']
    list_filter = ['tournament', 'is_default_prediction']
    search_fields = ['user__username', 'match__home_team_name', 'match__away_team_name']
    date_hierarchy = 'submitted_at'
    ordering = ['-submitted_at']

@admin.register(Standing)
class StandingAdmin(admin.ModelAdmin):
    list_display = ['tournament', 'rank', 'user', 'total_points', 'exact_scores', 'correct_results', 'rank_change', 'updated_at']
    list_filter = ['tournament']
    search_fields = ['user__username', 'tournament__name']
    ordering = ['tournament', 'rank']
