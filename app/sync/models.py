import secrets
import string

from django.conf import settings
from django.db import models
from django.utils import timezone


def _snapshot_code():
    alphabet = string.ascii_uppercase + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(5))


class Snapshot(models.Model):
    """
    Point-in-time copy of the whole record set.
    Only the newest SHEETFEED_SNAPSHOT_RETENTION snapshots are kept.
    """
    code = models.CharField(max_length=12, unique=True, default=_snapshot_code,
                            help_text="Short identifier shown to operators")
    taken_at = models.DateTimeField(default=timezone.now, db_index=True)
    reason = models.CharField(max_length=200, default='Manual')
    record_count = models.PositiveIntegerField(default=0)
    payload = models.JSONField(default=list, help_text="Serialized records as of taken_at")

    class Meta:
        db_table = 'snapshot'
        ordering = ['-taken_at', '-id']

    def __str__(self):
        return f"Snapshot {self.code} ({self.record_count} records)"


class SyncLogEntry(models.Model):
    """Ring buffer of recent sync outcomes."""
    OUTCOME_SUCCESS = 'SUCCESS'
    OUTCOME_ERROR = 'ERROR'
    OUTCOME_CHOICES = [
        (OUTCOME_SUCCESS, 'Success'),
        (OUTCOME_ERROR, 'Error'),
    ]

    timestamp = models.DateTimeField(default=timezone.now)
    outcome = models.CharField(max_length=10, choices=OUTCOME_CHOICES)
    message = models.TextField()
    duration_ms = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        db_table = 'sync_log_entry'
        ordering = ['-timestamp', '-id']

    def __str__(self):
        return f"[{self.outcome}] {self.message}"

    @classmethod
    def append(cls, outcome, message, duration_ms=None):
        """Add an entry and evict the oldest beyond SHEETFEED_SYNC_LOG_SIZE."""
        entry = cls.objects.create(outcome=outcome, message=message, duration_ms=duration_ms)
        keep = getattr(settings, 'SHEETFEED_SYNC_LOG_SIZE', 15)
        stale = list(cls.objects.order_by('-timestamp', '-id').values_list('id', flat=True)[keep:])
        if stale:
            cls.objects.filter(id__in=stale).delete()
        return entry


class SyncSettings(models.Model):
    """
    Operator sync configuration and scheduler state (singleton row).
    Load with SyncSettings.load(); every mutation is persisted with save().
    """
    sheet_ref = models.CharField(max_length=500, blank=True,
                                 help_text="Spreadsheet ID or published sheet URL")
    auto_sync = models.BooleanField(default=True)
    sync_time = models.CharField(max_length=5, default='13:00', help_text="Daily pull time, HH:MM (24h)")
    last_sync = models.DateTimeField(null=True, blank=True)
    last_scheduled_sync_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = 'sync_settings'
        verbose_name_plural = 'sync settings'

    def __str__(self):
        return f"Sync settings ({self.sheet_ref or 'no sheet'})"

    def save(self, *args, **kwargs):
        self.pk = 1
        super().save(*args, **kwargs)

    @classmethod
    def load(cls):
        obj, _created = cls.objects.get_or_create(pk=1)
        return obj
