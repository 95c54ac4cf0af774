"""
Where sync rows come from.

PublishedCsvSource
    Fetches the CSV export of a sheet that is "Published to Web", either
    directly or through the CORS relay (a dumb forwarder of status and body).

SheetsApiSource
    Reads every tab through the Google Sheets v4 API with a service account.
    Needed for private sheets and for multi-tab workbooks, since the CSV
    export only carries one tab.
"""

from __future__ import annotations

import contextlib
import logging
import os
import re
from typing import List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx
from django.conf import settings
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ingest.exceptions import FetchError, NotPublishedError
from ingest.normalize import Sheet, read_workbook

logger = logging.getLogger(__name__)

EXPORT_URL = 'https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv'
MIN_REF_LENGTH = 5
# Relay answers carrying this error_code refused an HTML body.
NOT_PUBLISHED_CODE = 'NOT_PUBLISHED'

_SHEET_ID_RE = re.compile(r'/spreadsheets/d/([A-Za-z0-9_-]+)')


def resolve_sheet_url(ref: str) -> str:
    """
    Turn a bare spreadsheet ID or a pasted sheet URL into a CSV endpoint.

    - bare ID            -> canonical export URL
    - .../pubhtml        -> .../pub?output=csv
    - .../edit[#gid=N]   -> .../export?format=csv[&gid=N]
    - any other URL containing "pub" without a CSV marker gets output=csv
    """
    ref = (ref or '').strip()
    if len(ref) < MIN_REF_LENGTH:
        raise FetchError('Invalid sheet reference.')

    if not ref.startswith('http'):
        return EXPORT_URL.format(sheet_id=ref)

    parts = urlsplit(ref)
    path = parts.path
    params = parse_qsl(parts.query, keep_blank_values=True)

    if path.endswith('/pubhtml'):
        path = path[:-len('html')]
        params.append(('output', 'csv'))
    elif '/edit' in path:
        path = path[:path.index('/edit')] + '/export'
        params.append(('format', 'csv'))
        if parts.fragment.startswith('gid='):
            params.append(('gid', parts.fragment[len('gid='):]))

    query = urlencode(params)
    if 'output=csv' not in query and 'format=csv' not in query and 'pub' in path:
        params.append(('output', 'csv'))
        query = urlencode(params)

    return urlunsplit((parts.scheme, parts.netloc, path, query, ''))


def is_html_document(body: bytes, content_type: str = '') -> bool:
    """True when a response is an HTML page rather than CSV data."""
    if 'text/html' in (content_type or '').lower():
        return True
    head = body[:1024].lstrip().lower()
    return head.startswith(b'<!doctype html') or b'<html' in head


def _relay_error_code(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get('error_code') if isinstance(body, dict) else None


class PublishedCsvSource:
    """Fetch a published sheet's CSV export, optionally through the relay."""

    def __init__(self, relay_url: Optional[str] = None, timeout: Optional[float] = None,
                 client: Optional[httpx.Client] = None):
        self.relay_url = relay_url if relay_url is not None else getattr(settings, 'SHEETFEED_RELAY_URL', None)
        self.timeout = timeout or getattr(settings, 'SHEETFEED_FETCH_TIMEOUT', 30.0)
        self._client = client

    def _client_context(self):
        if self._client is not None:
            return contextlib.nullcontext(self._client)
        return httpx.Client(timeout=self.timeout, follow_redirects=True)

    def fetch(self, url: str) -> bytes:
        try:
            with self._client_context() as client:
                if self.relay_url:
                    logger.info('Fetching %s via relay %s', url, self.relay_url)
                    response = client.post(self.relay_url, json={'url': url})
                else:
                    logger.info('Fetching %s', url)
                    response = client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(f'Fetch failed: {e}') from e

        if not response.is_success:
            if self.relay_url and _relay_error_code(response) == NOT_PUBLISHED_CODE:
                raise NotPublishedError()
            raise FetchError(f'Fetch failed: {response.status_code}')

        body = response.content
        if is_html_document(body, response.headers.get('content-type', '')):
            raise NotPublishedError()
        return body

    def fetch_workbook(self, ref: str) -> List[Sheet]:
        return read_workbook(self.fetch(resolve_sheet_url(ref)))


def extract_sheet_id(ref: str) -> str:
    ref = (ref or '').strip()
    if not ref.startswith('http'):
        if len(ref) < MIN_REF_LENGTH:
            raise FetchError('Invalid sheet reference.')
        return ref
    m = _SHEET_ID_RE.search(ref)
    if not m or m.group(1) == 'e':
        # /d/e/2PACX-... published links have no API-addressable ID
        raise FetchError(f'Cannot determine spreadsheet ID from {ref}')
    return m.group(1)


class SheetsApiSource:
    """Read every tab of a spreadsheet through the Sheets API."""

    SCOPES = ['https://www.googleapis.com/auth/spreadsheets.readonly']

    def __init__(self, credentials_path: Optional[str] = None, service=None):
        self.credentials_path = credentials_path or getattr(settings, 'GOOGLE_APPLICATION_CREDENTIALS', None)
        self._service = service

    def _get_service(self):
        if self._service is None:
            if not self.credentials_path or not os.path.exists(self.credentials_path):
                raise FetchError(f'Google credentials not found at: {self.credentials_path}')
            credentials = service_account.Credentials.from_service_account_file(
                self.credentials_path,
                scopes=self.SCOPES
            )
            self._service = build('sheets', 'v4', credentials=credentials)
        return self._service

    def fetch_workbook(self, ref: str) -> List[Sheet]:
        sheet_id = extract_sheet_id(ref)
        service = self._get_service()

        try:
            meta = service.spreadsheets().get(
                spreadsheetId=sheet_id,
                fields='sheets.properties.title'
            ).execute()

            sheets = []
            for tab in meta.get('sheets', []):
                title = tab['properties']['title']
                quoted = "'" + title.replace("'", "''") + "'"
                result = service.spreadsheets().values().get(
                    spreadsheetId=sheet_id,
                    range=quoted
                ).execute()
                sheets.append(Sheet(name=title, rows=result.get('values', [])))
        except HttpError as e:
            raise FetchError(f'Sheets API error: {e}') from e

        logger.info('Read %d tab(s) from %s via Sheets API', len(sheets), sheet_id)
        return sheets
