import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('tournaments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='UserTrophy',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('trophy_type', models.CharField(choices=[('correct_result', 'The Lucky One'), ('exact_score', 'The Analyst'), ('king_of_day', 'King of the Day'), ('double_king', 'Double King'), ('opportunist', 'The Opportunist'), ('nostradamus', 'Nostradamus'), ('lantern', 'Red Lantern'), ('downward_spiral', 'Downward Spiral'), ('bonus_profiteer', 'The Profiteer'), ('bonus_optimizer', 'The Optimizer'), ('ultra_dominator', 'Ultra Dominator'), ('poulidor', 'Eternal Runner-up'), ('cursed', 'The Cursed'), ('tournament_winner', "Ballon d'Or"), ('legend', 'The Legend'), ('abyssal', 'The Abyssal')], max_length=40)),
                ('unlocked_at', models.DateTimeField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('tournament', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trophies', to='tournaments.tournament')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='trophies', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['unlocked_at'],
                'unique_together': {('user', 'trophy_type')},
            },
        ),
    ]
