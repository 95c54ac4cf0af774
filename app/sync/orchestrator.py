"""
Sync orchestration: sheet reference -> rows -> record store.

A run fetches the sheet, normalizes every tab, commits the rows under one
shared day (the UTC date at commit time), snapshots the result and appends a
sync log entry. Failed runs leave a single ERROR entry and no snapshot.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

from django.utils import timezone

from ingest.commit import commit_rows
from ingest.exceptions import SyncInProgressError
from ingest.models import Record
from ingest.normalize import normalize_workbook
from sync.models import SyncLogEntry, SyncSettings
from sync.snapshots import create_snapshot
from sync.sources import PublishedCsvSource

logger = logging.getLogger(__name__)

# One sync per process at a time; overlapping triggers are rejected, not queued.
_sync_lock = threading.Lock()


@dataclass
class SyncOutcome:
    day: object
    total_seen: int
    total_inserted: int
    total_skipped: int
    total_errors: int
    duration_ms: int
    snapshot_code: Optional[str] = None

    @property
    def message(self):
        return f'Synced {self.total_seen} rows. +{self.total_inserted} new.'


class SyncOrchestrator:
    def __init__(self, state: Optional[SyncSettings] = None, source=None,
                 commit=commit_rows, snapshot=create_snapshot):
        self.state = state if state is not None else SyncSettings.load()
        self.source = source if source is not None else PublishedCsvSource()
        self.commit = commit
        self.snapshot = snapshot

    def run_sync(self, source_ref: Optional[str] = None, trigger: str = 'Manual',
                 scheduled: bool = False) -> SyncOutcome:
        """
        Run one sync against `source_ref` (defaults to the configured sheet).
        Raises the failure after recording it; nothing is retried.
        """
        if not _sync_lock.acquire(blocking=False):
            error = SyncInProgressError()
            logger.warning('Sync rejected: %s', error)
            SyncLogEntry.append(SyncLogEntry.OUTCOME_ERROR, str(error))
            raise error
        try:
            return self._run(source_ref or self.state.sheet_ref, trigger, scheduled)
        finally:
            _sync_lock.release()

    def _run(self, ref, trigger, scheduled):
        started = time.monotonic()
        logger.info('Sync started (%s) for %s', trigger, ref)

        try:
            sheets = self.source.fetch_workbook(ref)
            rows = normalize_workbook(sheets)

            now = timezone.now()
            result = self.commit(now.date(), rows, source=Record.SOURCE_SHEET_SYNC)
            snapshot = self.snapshot(trigger)
        except Exception as e:
            message = str(e) or 'Unknown sync error'
            logger.error('Sync failed (%s): %s', trigger, message)
            SyncLogEntry.append(SyncLogEntry.OUTCOME_ERROR, message)
            raise

        outcome = SyncOutcome(
            day=now.date(),
            total_seen=result.total_seen,
            total_inserted=result.total_inserted,
            total_skipped=result.total_skipped,
            total_errors=result.total_errors,
            duration_ms=int((time.monotonic() - started) * 1000),
            snapshot_code=snapshot.code,
        )
        SyncLogEntry.append(SyncLogEntry.OUTCOME_SUCCESS, outcome.message, outcome.duration_ms)

        self.state.sheet_ref = ref
        self.state.last_sync = now
        if scheduled:
            self.state.last_scheduled_sync_date = timezone.localdate(now)
        self.state.save()

        logger.info('Sync finished (%s): %s in %dms', trigger, outcome.message, outcome.duration_ms)
        return outcome
