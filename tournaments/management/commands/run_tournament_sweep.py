import sys
import traceback
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from engine.sweep import OK, TIMEOUT, run_sweep
from tournaments.models import Tournament
from tournaments.snapshots import DjangoResultSink, DjangoTournamentSource

class Command(BaseCommand):
    help = 'Recomputes standings, trophies and ending dates of active tournaments, finalizing the ones that are over.'

    def add_arguments(self, parser):
        parser.add_argument('--tournament', type=int, action='append', dest='tournaments',
                            help='Only process this tournament id (repeatable).')
        parser.add_argument('--workers', type=int, help='Size of the computation pool.')
        parser.add_argument('--timeout', type=float, help='Per-tournament budget in seconds.')

    def handle(self, *args, **options):
        config = settings.PRONOHUB_ENGINE
        workers = options['workers'] if options.get('workers') is not None else config['MAX_WORKERS']
        timeout = options['timeout'] if options.get('timeout') is not None else config['TOURNAMENT_TIMEOUT']
        tournament_ids = options.get('tournaments')

        if tournament_ids:
            known = set(Tournament.objects.filter(pk__in=tournament_ids).values_list('pk', flat=True))
            unknown = sorted(set(tournament_ids) - known)
            if unknown:
                raise CommandError(f'Unknown tournament id(s): {", ".join(map(str, unknown))}')

        source = DjangoTournamentSource()
        if tournament_ids is None:
            tournament_ids = source.list_tournaments_to_check()

        if not tournament_ids:
            self.stdout.write(self.style.SUCCESS('No active tournaments found that need a recheck.'))
            return

        self.stdout.write(f'Found {len(tournament_ids)} tournaments to process...')

        try:
            report = run_sweep(
                source,
                DjangoResultSink(),
                tournament_ids=tournament_ids,
                max_workers=workers,
                timeout=timeout,
                early_bonus_points=config['EARLY_PREDICTION_BONUS_POINTS'],
            )
        except Exception as e:
            self.stderr.write(self.style.ERROR(f'Sweep failed: {e}'))
            traceback.print_exc(file=sys.stderr)
            raise CommandError('Sweep failed') from e

        for outcome in report.outcomes:
            if outcome.status == OK:
                message = f'Tournament {outcome.tournament_id}: {len(outcome.standings)} standings, {outcome.new_trophy_count} new trophies.'
                if outcome.is_final:
                    message += ' Finalized.'
                self.stdout.write(self.style.SUCCESS(message))
                for warning in outcome.warnings:
                    self.stdout.write(self.style.WARNING(f'Tournament {outcome.tournament_id}: {warning}'))
            elif outcome.status == TIMEOUT:
                self.stdout.write(self.style.WARNING(f'Skipping tournament {outcome.tournament_id}: {outcome.error}'))
            else:
                self.stderr.write(self.style.ERROR(f'Error processing tournament {outcome.tournament_id}: {outcome.error}'))

        self.stdout.write(self.style.SUCCESS(
            f'Finished processing. Committed {report.committed} tournaments, '
            f'finalized {report.finalized}, skipped {len(report.skipped)}.'
        ))
