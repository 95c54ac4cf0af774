import re

from django.core.management.base import BaseCommand, CommandError

from sync.models import SyncLogEntry, SyncSettings

SYNC_TIME_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


class Command(BaseCommand):
    help = 'Show or update the sheet sync configuration'

    def add_arguments(self, parser):
        parser.add_argument('--sheet', type=str, help='Spreadsheet ID or published sheet URL')
        parser.add_argument('--sync-time', type=str, help='Daily pull time, HH:MM (24h)')
        parser.add_argument('--auto-sync', dest='auto_sync', action='store_true', default=None)
        parser.add_argument('--no-auto-sync', dest='auto_sync', action='store_false')
        parser.add_argument('--show-logs', action='store_true', help='Print recent sync log entries')

    def handle(self, *args, **options):
        state = SyncSettings.load()
        changed = []

        if options.get('sheet') is not None:
            state.sheet_ref = options['sheet'].strip()
            changed.append('sheet_ref')

        if options.get('sync_time') is not None:
            if not SYNC_TIME_RE.match(options['sync_time']):
                raise CommandError(f"Invalid sync time: {options['sync_time']} (expected HH:MM)")
            state.sync_time = options['sync_time']
            changed.append('sync_time')

        if options.get('auto_sync') is not None:
            state.auto_sync = options['auto_sync']
            changed.append('auto_sync')

        if changed:
            state.save()
            self.stdout.write(self.style.SUCCESS(f"Updated: {', '.join(changed)}"))

        self.stdout.write(f'Sheet:      {state.sheet_ref or "(none)"}')
        self.stdout.write(f'Auto sync:  {"on" if state.auto_sync else "off"} at {state.sync_time}')
        self.stdout.write(f'Last sync:  {state.last_sync.isoformat() if state.last_sync else "never"}')

        if options['show_logs']:
            entries = SyncLogEntry.objects.all()
            if not entries:
                self.stdout.write('No activity recorded.')
            for entry in entries:
                duration = f'{entry.duration_ms}ms · ' if entry.duration_ms else ''
                self.stdout.write(
                    f'[{entry.outcome}] {entry.message}  ({duration}{entry.timestamp:%Y-%m-%d %H:%M:%S})'
                )
