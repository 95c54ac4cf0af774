"""
Snapshot/restore of the record store.

Restore is a trusted bulk replace, not a merge: rows go back in without the
duplicate oracle. The clear and the re-insert run in one transaction, so a
failure part-way leaves the previous record set in place.
"""

import logging

from django.conf import settings
from django.db import transaction
from django.utils.dateparse import parse_date, parse_datetime

from ingest.commit import DEFAULT_CHUNK_SIZE, chunked
from ingest.models import Record
from sync.models import Snapshot

logger = logging.getLogger(__name__)


def serialize_record(record):
    return {
        'id': str(record.id),
        'day': record.day.isoformat(),
        'payload': record.payload,
        'payload_hash': record.payload_hash,
        'source': record.source,
        'created_at': record.created_at.isoformat(),
    }


def deserialize_record(data):
    payload = data['payload']
    return Record(
        id=data['id'],
        day=parse_date(data['day'][:10]),
        payload=payload,
        payload_hash=data.get('payload_hash') or Record.compute_payload_hash(payload),
        source=data.get('source') or Record.SOURCE_SHEET_SYNC,
        created_at=parse_datetime(data['created_at']),
    )


def create_snapshot(reason='Manual'):
    """Capture every record, newest first, then evict beyond the retention limit."""
    records = [serialize_record(r) for r in Record.objects.order_by('-created_at')]
    snapshot = Snapshot.objects.create(
        reason=reason,
        record_count=len(records),
        payload=records,
    )

    keep = getattr(settings, 'SHEETFEED_SNAPSHOT_RETENTION', 5)
    stale = list(Snapshot.objects.order_by('-taken_at', '-id').values_list('id', flat=True)[keep:])
    if stale:
        Snapshot.objects.filter(id__in=stale).delete()
        logger.info('Evicted %d old snapshot(s)', len(stale))

    logger.info('Snapshot %s taken (%s): %d records', snapshot.code, reason, snapshot.record_count)
    return snapshot


def clear_records():
    """Delete every record. Returns the number removed."""
    deleted, _ = Record.objects.all().delete()
    logger.warning('Cleared %d record(s)', deleted)
    return deleted


def restore_snapshot(code):
    """
    Replace the live record set with the contents of snapshot `code`.
    Returns False when no such snapshot exists.
    """
    snapshot = Snapshot.objects.filter(code=code).first()
    if snapshot is None:
        logger.info('Restore requested for unknown snapshot %s', code)
        return False

    records = [deserialize_record(data) for data in snapshot.payload]
    chunk_size = getattr(settings, 'SHEETFEED_CHUNK_SIZE', DEFAULT_CHUNK_SIZE)

    with transaction.atomic():
        clear_records()
        for chunk in chunked(records, chunk_size):
            Record.objects.bulk_create(chunk)

    logger.info('Restored snapshot %s: %d records', snapshot.code, len(records))
    return True
