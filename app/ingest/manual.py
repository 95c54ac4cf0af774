import json
import logging

from django.utils import timezone

from .models import Record

logger = logging.getLogger(__name__)


def add_manual_record(raw, day=None):
    """
    Store one operator-pasted JSON object as a record.

    Manual entries bypass the duplicate oracle: pasting the same object twice
    stores it twice.
    """
    payload = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    if not isinstance(payload, dict):
        raise ValueError('Manual entry must be a JSON object')

    record = Record.objects.create(
        day=day or timezone.now().date(),
        payload=payload,
        source=Record.SOURCE_MANUAL,
    )
    logger.info('Manual record %s added for %s', record.id, record.day)
    return record
