from django.core.management.base import BaseCommand, CommandError

from sync.snapshots import clear_records


class Command(BaseCommand):
    help = 'Delete every record from the store (take a snapshot first)'

    def add_arguments(self, parser):
        parser.add_argument('--yes', action='store_true', help='Confirm the wipe')

    def handle(self, *args, **options):
        if not options['yes']:
            raise CommandError('Refusing to wipe the record store without --yes')

        deleted = clear_records()
        self.stdout.write(self.style.WARNING(f'Cleared {deleted} record(s)'))
