import json

from django.core.management.base import BaseCommand, CommandError

from ingest.manual import add_manual_record


class Command(BaseCommand):
    help = 'Add one JSON object as a record (manual entry, never de-duplicated)'

    def add_arguments(self, parser):
        parser.add_argument('payload', type=str, help='JSON object, e.g. \'{"name": "value"}\'')

    def handle(self, *args, **options):
        try:
            record = add_manual_record(options['payload'])
        except json.JSONDecodeError as e:
            raise CommandError(f'Invalid JSON: {e}')
        except ValueError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(f'Added record {record.id} for {record.day}'))
