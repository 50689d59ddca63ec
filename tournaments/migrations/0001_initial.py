import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Competition',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('code', models.CharField(blank=True, max_length=20)),
                ('external_id', models.IntegerField(blank=True, null=True, unique=True)),
            ],
        ),
        migrations.CreateModel(
            name='CustomCompetition',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='custom_competitions', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Match',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('external_id', models.IntegerField(blank=True, null=True, unique=True)),
                ('home_team_name', models.CharField(max_length=255)),
                ('away_team_name', models.CharField(max_length=255)),
                ('stage', models.CharField(blank=True, choices=[('REGULAR_SEASON', 'Regular season'), ('LEAGUE_STAGE', 'League stage'), ('GROUP_STAGE', 'Group stage'), ('PRELIMINARY_ROUND', 'Preliminary round'), ('PLAYOFFS', 'Play-offs'), ('LAST_32', 'Round of 32'), ('LAST_16', 'Round of 16'), ('QUARTER_FINALS', 'Quarter-finals'), ('SEMI_FINALS', 'Semi-finals'), ('THIRD_PLACE', 'Third place'), ('FINAL', 'Final')], max_length=30, null=True)),
                ('matchday', models.PositiveIntegerField(blank=True, null=True)),
                ('utc_date', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('SCHEDULED', 'Scheduled'), ('TIMED', 'Timed'), ('IN_PLAY', 'In play'), ('PAUSED', 'Paused'), ('FINISHED', 'Finished'), ('AWARDED', 'Awarded'), ('POSTPONED', 'Postponed'), ('CANCELLED', 'Cancelled')], default='SCHEDULED', max_length=20)),
                ('home_score', models.IntegerField(blank=True, null=True)),
                ('away_score', models.IntegerField(blank=True, null=True)),
                ('competition', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='matches', to='tournaments.competition')),
            ],
            options={
                'ordering': ['utc_date', 'id'],
            },
        ),
        migrations.CreateModel(
            name='CustomMatchday',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('matchday_number', models.PositiveIntegerField()),
                ('custom_competition', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='matchdays', to='tournaments.customcompetition')),
            ],
            options={
                'ordering': ['matchday_number'],
                'unique_together': {('custom_competition', 'matchday_number')},
            },
        ),
        migrations.CreateModel(
            name='CustomMatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('cached_utc_date', models.DateTimeField(blank=True, null=True)),
                ('custom_matchday', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='matches', to='tournaments.custommatchday')),
                ('match', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='custom_entries', to='tournaments.match')),
            ],
        ),
        migrations.CreateModel(
            name='Tournament',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('starting_matchday', models.PositiveIntegerField(default=1)),
                ('ending_matchday', models.PositiveIntegerField()),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('warmup', 'Warm-up'), ('active', 'Active'), ('completed', 'Completed')], default='pending', max_length=20)),
                ('bonus_match_enabled', models.BooleanField(default=False)),
                ('early_prediction_bonus_enabled', models.BooleanField(default=False)),
                ('scoring_exact_score', models.PositiveIntegerField(default=3)),
                ('scoring_correct_winner', models.PositiveIntegerField(default=1)),
                ('scoring_default_draw', models.PositiveIntegerField(default=1)),
                ('ending_date', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('competition', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='tournaments', to='tournaments.competition')),
                ('custom_competition', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='tournaments', to='tournaments.customcompetition')),
                ('organizer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='organized_tournaments', to=settings.AUTH_USER_MODEL)),
                ('participants', models.ManyToManyField(blank=True, related_name='prediction_tournaments', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='BonusMatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('matchday', models.PositiveIntegerField()),
                ('match', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bonus_for', to='tournaments.match')),
                ('tournament', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bonus_matches', to='tournaments.tournament')),
            ],
            options={
                'unique_together': {('tournament', 'match')},
            },
        ),
        migrations.CreateModel(
            name='TournamentDurationEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_type', models.CharField(default='recalculation', max_length=30)),
                ('state', models.CharField(max_length=20)),
                ('previous_ending_date', models.DateTimeField(blank=True, null=True)),
                ('new_ending_date', models.DateTimeField(blank=True, null=True)),
                ('estimation_used', models.BooleanField(default=False)),
                ('moved_backward', models.BooleanField(default=False)),
                ('details', models.TextField(blank=True)),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('tournament', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='duration_events', to='tournaments.tournament')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
