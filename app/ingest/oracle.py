"""
Duplicate oracle: decides whether a candidate row is new for its day.

The check-then-insert pair is not transactional on its own; two runs racing on
the same day can both pass the existence check. The (day, payload_hash) unique
constraint on Record closes that window: the loser's insert raises
IntegrityError and is reported as SKIPPED.
"""

import enum
import logging

from django.db import DatabaseError, IntegrityError, transaction

from .models import Record

logger = logging.getLogger(__name__)


class Decision(enum.Enum):
    INSERTED = 'INSERTED'
    SKIPPED = 'SKIPPED'
    ORACLE_ERROR = 'ORACLE_ERROR'


def should_insert(day, payload, source=Record.SOURCE_SHEET_SYNC):
    """
    Insert `payload` for `day` unless a content-equal row is already recorded.

    Returns a Decision. Store failures come back as ORACLE_ERROR; the row is
    then undecided and must not be counted as inserted.
    """
    payload_hash = Record.compute_payload_hash(payload)

    try:
        if Record.objects.filter(day=day, payload_hash=payload_hash).exists():
            return Decision.SKIPPED
    except DatabaseError as e:
        logger.warning('Duplicate check failed for %s:%s: %s', day, payload_hash[:12], e)
        return Decision.ORACLE_ERROR

    try:
        with transaction.atomic():
            Record.objects.create(
                day=day,
                payload=payload,
                payload_hash=payload_hash,
                source=source,
            )
    except IntegrityError:
        # Duplicate - inserted by a concurrent run after our check
        return Decision.SKIPPED
    except DatabaseError as e:
        logger.warning('Insert failed for %s:%s: %s', day, payload_hash[:12], e)
        return Decision.ORACLE_ERROR

    return Decision.INSERTED
