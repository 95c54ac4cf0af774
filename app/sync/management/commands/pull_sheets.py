from django.core.management.base import BaseCommand, CommandError

from ingest.exceptions import SheetFeedError
from sync.models import SyncSettings
from sync.orchestrator import SyncOrchestrator
from sync.schedule import is_sync_due
from sync.sources import PublishedCsvSource, SheetsApiSource


class Command(BaseCommand):
    help = 'Pull the configured Google Sheet and merge new rows into the record store'

    def add_arguments(self, parser):
        parser.add_argument('--sheet', type=str, help='Spreadsheet ID or URL (defaults to the configured sheet)')
        parser.add_argument('--if-due', action='store_true',
                            help='Only pull when the daily schedule says a pull is due (for cron/heartbeat use)')
        parser.add_argument('--via-api', action='store_true',
                            help='Read every tab through the Sheets API using GOOGLE_APPLICATION_CREDENTIALS')

    def handle(self, *args, **options):
        state = SyncSettings.load()

        if options['if_due'] and not is_sync_due(state):
            self.stdout.write('No scheduled pull due.')
            return

        sheet_ref = options.get('sheet') or state.sheet_ref
        if not sheet_ref:
            self.stdout.write(self.style.WARNING('No sheet configured; use --sheet or sync_settings --sheet'))
            return

        source = SheetsApiSource() if options['via_api'] else PublishedCsvSource()
        trigger = 'Scheduled Auto-Sync' if options['if_due'] else 'Sync Success'

        self.stdout.write(f'Pulling {sheet_ref}...')
        try:
            outcome = SyncOrchestrator(state=state, source=source).run_sync(
                sheet_ref,
                trigger=trigger,
                scheduled=options['if_due'],
            )
        except SheetFeedError as e:
            raise CommandError(f'Error pulling {sheet_ref}: {e}')

        self.stdout.write(self.style.SUCCESS(
            f'  {outcome.total_inserted} inserted, {outcome.total_skipped} duplicates, '
            f'{outcome.total_errors} errors ({outcome.duration_ms}ms, snapshot {outcome.snapshot_code})'
        ))
