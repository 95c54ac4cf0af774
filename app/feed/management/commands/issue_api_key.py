from django.core.management.base import BaseCommand

from feed.keys import get_active_api_key, issue_api_key


class Command(BaseCommand):
    help = 'Issue a read API key (deactivates existing keys unless --keep-existing)'

    def add_arguments(self, parser):
        parser.add_argument('--owner', type=str, default='Admin Generated', help='Consumer the key is issued to')
        parser.add_argument('--keep-existing', action='store_true', help='Leave previously issued keys active')
        parser.add_argument('--show', action='store_true', help='Print the current active key instead of issuing one')

    def handle(self, *args, **options):
        if options['show']:
            api_key = get_active_api_key()
            if api_key is None:
                self.stdout.write(self.style.WARNING('No active API key'))
            else:
                self.stdout.write(f'{api_key.owner_name}: {api_key.key_value}')
            return

        api_key = issue_api_key(options['owner'], deactivate_existing=not options['keep_existing'])
        self.stdout.write(self.style.SUCCESS(f'Issued key for {api_key.owner_name}: {api_key.key_value}'))
