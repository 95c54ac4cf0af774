from django.core.management.base import BaseCommand, CommandError

from sync.models import Snapshot
from sync.snapshots import create_snapshot, restore_snapshot


class Command(BaseCommand):
    help = 'List, create or restore record-store snapshots'

    def add_arguments(self, parser):
        parser.add_argument('action', choices=['list', 'create', 'restore'])
        parser.add_argument('--id', dest='code', type=str, help='Snapshot ID to restore')
        parser.add_argument('--reason', type=str, default='Manual', help='Label for a new snapshot')

    def handle(self, *args, **options):
        action = options['action']

        if action == 'create':
            snapshot = create_snapshot(options['reason'])
            self.stdout.write(self.style.SUCCESS(
                f'Snapshot {snapshot.code} created: {snapshot.record_count} records'
            ))
            return

        if action == 'restore':
            code = options.get('code')
            if not code:
                raise CommandError('--id is required for restore')
            if not restore_snapshot(code):
                raise CommandError(f'Snapshot not found: {code}')
            self.stdout.write(self.style.SUCCESS(f'Restored snapshot {code}'))
            return

        snapshots = Snapshot.objects.all()
        if not snapshots:
            self.stdout.write('No snapshots available yet.')
            return
        for snapshot in snapshots:
            self.stdout.write(
                f'{snapshot.code}  {snapshot.taken_at:%Y-%m-%d %H:%M:%S}  '
                f'{snapshot.record_count:>6} records  {snapshot.reason}'
            )
