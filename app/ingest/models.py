import hashlib
import json
import uuid
from django.db import models
from django.db.models import Q
from django.utils import timezone


class Record(models.Model):
    """
    Append-only store of spreadsheet rows.
    Idempotency enforced via unique constraint on (day, payload_hash) for every
    source except manual entries, which are never de-duplicated.
    """
    SOURCE_SHEET_SYNC = 'sheet_sync'
    SOURCE_UPLOAD = 'upload'
    SOURCE_MANUAL = 'manual'
    SOURCE_CHOICES = [
        (SOURCE_SHEET_SYNC, 'Sheet sync'),
        (SOURCE_UPLOAD, 'Workbook upload'),
        (SOURCE_MANUAL, 'Manual entry'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    day = models.DateField(db_index=True, help_text="Calendar day the row was ingested for (dedup partition)")
    payload = models.JSONField(help_text="Raw row dict")
    payload_hash = models.CharField(max_length=64, db_index=True,
                                    help_text="SHA256 of canonical JSON payload")
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default=SOURCE_SHEET_SYNC)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'record'
        constraints = [
            models.UniqueConstraint(
                fields=['day', 'payload_hash'],
                condition=~Q(source='manual'),
                name='unique_record_per_day'
            )
        ]
        indexes = [
            models.Index(fields=['day', '-created_at'], name='record_day_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.day}:{self.payload_hash[:12]}"

    def save(self, *args, **kwargs):
        if not self.payload_hash:
            self.payload_hash = self.compute_payload_hash(self.payload)
        super().save(*args, **kwargs)

    @staticmethod
    def compute_payload_hash(payload_dict):
        """Compute deterministic SHA256 hash of payload."""
        canonical_json = json.dumps(payload_dict, sort_keys=True, separators=(',', ':'),
                                    ensure_ascii=False, default=str)
        return hashlib.sha256(canonical_json.encode('utf-8')).hexdigest()

    def to_feed_dict(self):
        """Flattened shape served by the read API: id and date first, then the row."""
        data = {'id': str(self.id), 'date': self.day.isoformat()}
        data.update(self.payload)
        return data
