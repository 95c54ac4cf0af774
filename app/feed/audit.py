import logging

from django.db import DatabaseError, transaction

from .models import AuditLog

logger = logging.getLogger(__name__)


def record_audit(action, status, details=''):
    """
    Write an audit entry without letting a failure reach the caller.
    Runs in its own savepoint so a failed insert doesn't break an outer transaction.
    """
    try:
        with transaction.atomic():
            return AuditLog.objects.create(action=action, status=status, details=details)
    except DatabaseError as e:
        logger.warning('Audit write failed (%s %s): %s', action, status, e)
        return None
