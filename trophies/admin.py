from django.contrib import admin
from .models import UserTrophy

@admin.register(UserTrophy)
class UserTrophyAdmin(admin.ModelAdmin):
    list_display = ('user', 'trophy_type', 'tournament', 'unlocked_at')
    list_filter = ('trophy_type',)
    search_fields = ('user__username', 'tournament__name')
    date_hierarchy = 'unlocked_at'
