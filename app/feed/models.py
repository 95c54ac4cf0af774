import uuid
from django.db import models
from django.utils import timezone


class ApiKey(models.Model):
    """Bearer credential for an external consumer of the read API."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key_value = models.CharField(max_length=100, unique=True)
    owner_name = models.CharField(max_length=200, help_text="e.g. the consuming team or platform")
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'api_key'
        ordering = ['-created_at']

    def __str__(self):
        state = 'active' if self.is_active else 'inactive'
        return f"{self.owner_name} ({self.key_value[:7]}..., {state})"


class AuditLog(models.Model):
    """Audit trail of feed pulls and uploads."""
    ACTION_API_PULL = 'API_PULL'
    ACTION_UPLOAD = 'UPLOAD'
    ACTION_CHOICES = [
        (ACTION_API_PULL, 'API pull'),
        (ACTION_UPLOAD, 'Upload'),
    ]
    STATUS_SUCCESS = 'SUCCESS'
    STATUS_ERROR = 'ERROR'
    STATUS_CHOICES = [
        (STATUS_SUCCESS, 'Success'),
        (STATUS_ERROR, 'Error'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    details = models.TextField(blank=True)

    class Meta:
        db_table = 'audit_log'
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.action} {self.status} at {self.timestamp}"
