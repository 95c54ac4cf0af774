"""
Batch committer: drives normalized rows through the duplicate oracle in chunks.

Rows inside a chunk are decided concurrently (up to one thread per row); the
next chunk starts only once every decision of the current one has resolved.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from django.conf import settings
from django.db import connections

from .models import Record
from .oracle import Decision, should_insert

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50


@dataclass
class CommitResult:
    total_seen: int = 0
    total_inserted: int = 0
    total_skipped: int = 0
    total_errors: int = 0
    chunks: int = 0

    def add(self, decision: Decision) -> None:
        if decision is Decision.INSERTED:
            self.total_inserted += 1
        elif decision is Decision.SKIPPED:
            self.total_skipped += 1
        else:
            self.total_errors += 1


def chunked(rows: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    if size < 1:
        raise ValueError('chunk size must be positive')
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def _decide_safely(decide, day, payload, source) -> Decision:
    try:
        return decide(day, payload, source)
    except Exception:
        logger.exception('Unexpected failure deciding row for %s', day)
        return Decision.ORACLE_ERROR


def _decide_in_worker(decide, day, payload, source) -> Decision:
    try:
        return _decide_safely(decide, day, payload, source)
    finally:
        # Connections are per-thread; don't leak one per pool worker.
        connections.close_all()


def commit_rows(
    day,
    rows: Sequence[Dict[str, Any]],
    source: str = Record.SOURCE_SHEET_SYNC,
    chunk_size: Optional[int] = None,
    max_workers: Optional[int] = None,
    decide: Callable[..., Decision] = should_insert,
) -> CommitResult:
    """
    Commit `rows` for `day`.

    total_seen always equals len(rows). Rows the oracle could not decide are
    counted in total_errors only; they never abort the batch.
    """
    chunk_size = chunk_size or getattr(settings, 'SHEETFEED_CHUNK_SIZE', DEFAULT_CHUNK_SIZE)
    if max_workers is None:
        max_workers = getattr(settings, 'SHEETFEED_COMMIT_WORKERS', None) or chunk_size

    result = CommitResult(total_seen=len(rows))

    if max_workers <= 1:
        for chunk in chunked(rows, chunk_size):
            for payload in chunk:
                result.add(_decide_safely(decide, day, payload, source))
            result.chunks += 1
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, chunk_size)) as pool:
            for chunk in chunked(rows, chunk_size):
                futures = [
                    pool.submit(_decide_in_worker, decide, day, payload, source)
                    for payload in chunk
                ]
                for future in futures:
                    result.add(future.result())
                result.chunks += 1

    logger.info(
        'Committed %d row(s) for %s in %d chunk(s): %d inserted, %d skipped, %d error(s)',
        result.total_seen, day, result.chunks,
        result.total_inserted, result.total_skipped, result.total_errors,
    )
    return result
