from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from feed.audit import record_audit
from feed.models import AuditLog
from ingest.commit import commit_rows
from ingest.exceptions import SheetFeedError
from ingest.models import Record
from ingest.normalize import normalize_workbook, read_workbook


class Command(BaseCommand):
    help = 'Ingest an uploaded workbook (XLSX or CSV) into the record store'

    def add_arguments(self, parser):
        parser.add_argument('--file', type=str, required=True, help='Workbook file path (.xlsx or .csv)')

    def handle(self, *args, **options):
        file_path = Path(options['file'])

        self.stdout.write(f'Ingesting {file_path}...')

        try:
            data = file_path.read_bytes()
        except FileNotFoundError:
            raise CommandError(f'File not found: {file_path}')

        try:
            rows = normalize_workbook(read_workbook(data))
        except SheetFeedError as e:
            record_audit(AuditLog.ACTION_UPLOAD, AuditLog.STATUS_ERROR, f'{file_path.name}: {e}')
            raise CommandError(str(e))

        day = timezone.now().date()
        result = commit_rows(day, rows, source=Record.SOURCE_UPLOAD)

        record_audit(
            AuditLog.ACTION_UPLOAD,
            AuditLog.STATUS_SUCCESS,
            f'{file_path.name}: {result.total_inserted} inserted of {result.total_seen}',
        )

        self.stdout.write(self.style.SUCCESS(
            f'{file_path.name}: {result.total_inserted} inserted, '
            f'{result.total_skipped} duplicates, {result.total_errors} errors'
        ))
