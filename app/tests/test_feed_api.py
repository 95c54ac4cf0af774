import datetime
import json

import httpx
import pytest
from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError
from django.db.models.query import QuerySet

from feed import views
from feed.auth import is_within_access_window
from feed.keys import get_active_api_key, issue_api_key
from feed.models import ApiKey, AuditLog
from ingest.commit import commit_rows
from ingest.exceptions import FetchError, NotPublishedError
from ingest.models import Record
from sheetfeed.settings import parse_access_window
from sync.sources import NOT_PUBLISHED_CODE, PublishedCsvSource

DAY = datetime.date(2026, 1, 7)


@pytest.fixture
def api_key(db):
    return issue_api_key(owner_name='District Office')


@pytest.fixture
def records(db):
    commit_rows(DAY, [{'Name': 'Asha', 'Qty': '3'}])
    commit_rows(DAY + datetime.timedelta(days=1), [{'Name': 'Vikram', 'Qty': '7'}])
    return list(Record.objects.all())


@pytest.mark.django_db
class TestDataFeedAuth:
    """Test credential handling on the read API."""

    def test_missing_key_is_401(self, client):
        response = client.get('/data')
        assert response.status_code == 401
        assert response.json() == {'error': 'Unauthorized: Missing API Key'}

    def test_unknown_key_is_403(self, client, api_key):
        response = client.get('/data', {'apiKey': 'sk_nope'})
        assert response.status_code == 403
        assert response.json() == {'error': 'Forbidden: Invalid or inactive API Key'}

    def test_inactive_key_is_403(self, client, api_key):
        api_key.is_active = False
        api_key.save()
        assert client.get('/data', {'apiKey': api_key.key_value}).status_code == 403

    def test_bearer_header(self, client, api_key):
        response = client.get('/data', HTTP_AUTHORIZATION=f'Bearer {api_key.key_value}')
        assert response.status_code == 200

    def test_versioned_path(self, client, api_key):
        assert client.get('/api/v1/data', {'apiKey': api_key.key_value}).status_code == 200

    def test_regenerated_key_revokes_old_one(self, client, api_key):
        new_key = issue_api_key()
        assert client.get('/data', {'apiKey': api_key.key_value}).status_code == 403
        assert client.get('/data', {'apiKey': new_key.key_value}).status_code == 200

    def test_key_lookup_store_error(self, client, api_key, monkeypatch):
        def broken(self):
            raise DatabaseError('connection reset')
        monkeypatch.setattr(QuerySet, 'first', broken)

        response = client.get('/data', {'apiKey': api_key.key_value})
        assert response.status_code == 500
        assert response.json() == {'error': 'Database error fetching records'}
        assert response['Access-Control-Allow-Origin'] == '*'

    def test_preflight(self, client):
        response = client.options('/data')
        assert response.status_code == 200
        assert response['Access-Control-Allow-Origin'] == '*'
        assert 'Authorization' in response['Access-Control-Allow-Headers']


@pytest.mark.django_db
class TestDataFeedResponse:
    """Test the feed payload shape, ordering, and filtering."""

    def test_response_shape(self, client, api_key, records):
        body = client.get('/data', {'apiKey': api_key.key_value}).json()

        assert body['status'] == 'success'
        assert body['requester'] == 'District Office'
        assert body['count'] == 2
        assert body['count'] == len(body['data'])

    def test_records_flattened_newest_first(self, client, api_key, records):
        data = client.get('/data', {'apiKey': api_key.key_value}).json()['data']

        newest = Record.objects.order_by('-created_at').first()
        assert data[0] == {'id': str(newest.id), 'date': newest.day.isoformat(), **newest.payload}
        assert [row['Name'] for row in data] == ['Vikram', 'Asha']

    def test_date_filter(self, client, api_key, records):
        body = client.get('/data', {'apiKey': api_key.key_value, 'date': '2026-01-07'}).json()
        assert body['count'] == 1
        assert body['data'][0]['Name'] == 'Asha'
        assert body['data'][0]['date'] == '2026-01-07'

    def test_invalid_date_is_400(self, client, api_key, records):
        for bad in ('yesterday', '2026-13-45'):
            response = client.get('/data', {'apiKey': api_key.key_value, 'date': bad})
            assert response.status_code == 400, f"{bad!r} should be rejected"

    def test_non_ascii_payload_kept(self, client, api_key):
        commit_rows(DAY, [{'Name': 'रमेश पाटील'}])
        response = client.get('/data', {'apiKey': api_key.key_value})
        assert 'रमेश पाटील' in response.content.decode('utf-8')

    def test_successful_pull_is_audited(self, client, api_key):
        client.get('/data', {'apiKey': api_key.key_value}, HTTP_X_FORWARDED_FOR='10.0.0.9')

        entry = AuditLog.objects.get()
        assert entry.action == AuditLog.ACTION_API_PULL
        assert entry.status == AuditLog.STATUS_SUCCESS
        assert entry.details == 'Remote pull by District Office (IP: 10.0.0.9)'

    def test_failed_auth_not_audited(self, client, api_key):
        client.get('/data', {'apiKey': 'sk_nope'})
        assert AuditLog.objects.count() == 0

    def test_outside_access_window(self, client, api_key, settings, monkeypatch):
        settings.SHEETFEED_ACCESS_WINDOW = ('03:30', '05:30')
        monkeypatch.setattr(views, 'is_within_access_window', lambda: False)

        response = client.get('/data', {'apiKey': api_key.key_value})
        assert response.status_code == 403
        assert response.json()['error'] == 'Access Denied: API available 03:30 - 05:30 UTC only.'


class TestAccessWindow:
    WINDOW = ('03:30', '05:30')

    def _at(self, hour, minute):
        return datetime.datetime(2026, 1, 7, hour, minute, tzinfo=datetime.timezone.utc)

    def test_inside_and_bounds(self):
        assert is_within_access_window(self._at(4, 0), self.WINDOW)
        assert is_within_access_window(self._at(3, 30), self.WINDOW)
        assert is_within_access_window(self._at(5, 30), self.WINDOW)

    def test_outside(self):
        assert not is_within_access_window(self._at(3, 29), self.WINDOW)
        assert not is_within_access_window(self._at(12, 0), self.WINDOW)

    def test_converts_to_utc(self):
        ist = datetime.timezone(datetime.timedelta(hours=5, minutes=30))
        # 09:30 IST is 04:00 UTC
        now = datetime.datetime(2026, 1, 7, 9, 30, tzinfo=ist)
        assert is_within_access_window(now, self.WINDOW)

    def test_window_past_midnight(self):
        window = ('23:00', '01:00')
        assert is_within_access_window(self._at(23, 30), window)
        assert is_within_access_window(self._at(0, 30), window)
        assert not is_within_access_window(self._at(12, 0), window)

    def test_no_window_always_open(self, settings):
        settings.SHEETFEED_ACCESS_WINDOW = None
        assert is_within_access_window(self._at(12, 0))

    def test_malformed_window_rejected(self):
        with pytest.raises(ImproperlyConfigured):
            is_within_access_window(self._at(4, 0), ('0330',))
        with pytest.raises(ImproperlyConfigured):
            is_within_access_window(self._at(4, 0), ('3h30', '05:30'))

    def test_window_setting_parsed(self):
        assert parse_access_window('03:30-05:30') == ('03:30', '05:30')
        assert parse_access_window(' 23:00 - 01:00 ') == ('23:00', '01:00')
        assert parse_access_window('') is None

    def test_window_setting_validated(self):
        for bad in ('0330', '03:30', '03:30-25:00', 'morning'):
            with pytest.raises(ImproperlyConfigured):
                parse_access_window(bad)


@pytest.mark.django_db
class TestApiKeys:
    def test_issue_deactivates_previous(self):
        first = issue_api_key()
        second = issue_api_key()

        first.refresh_from_db()
        assert not first.is_active
        assert second.is_active
        assert get_active_api_key() == second

    def test_keep_existing(self):
        issue_api_key()
        issue_api_key(deactivate_existing=False)
        assert ApiKey.objects.filter(is_active=True).count() == 2

    def test_key_format(self):
        key = issue_api_key()
        assert key.key_value.startswith('sk_')
        assert len(key.key_value) == 3 + 48


def _patch_relay(monkeypatch, handler):
    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(views, '_relay_client', lambda: httpx.Client(transport=transport))


class TestRelay:
    """Test the CORS relay view with a mocked upstream."""

    URL = 'https://docs.google.com/spreadsheets/d/e/2PACX-abc/pub?output=csv'

    def _post(self, client, body):
        return client.post('/proxy', data=json.dumps(body), content_type='application/json')

    def test_passes_body_through(self, client, monkeypatch):
        _patch_relay(monkeypatch, lambda r: httpx.Response(
            200, content=b'Name\nAsha\n', headers={'content-type': 'text/csv'}))

        response = self._post(client, {'url': self.URL})
        assert response.status_code == 200
        assert response.content == b'Name\nAsha\n'
        assert response['Content-Type'] == 'text/csv'
        assert response['Access-Control-Allow-Origin'] == '*'

    def test_missing_url(self, client):
        assert self._post(client, {}).status_code == 400
        assert self._post(client, {'url': 42}).status_code == 400

    def test_non_http_url(self, client):
        response = self._post(client, {'url': 'file:///etc/passwd'})
        assert response.status_code == 400

    def test_upstream_error(self, client, monkeypatch):
        _patch_relay(monkeypatch, lambda r: httpx.Response(404))

        response = self._post(client, {'url': self.URL})
        assert response.status_code == 500
        assert response.json()['error'] == 'Upstream error: 404 Not Found'

    def test_html_refused(self, client, monkeypatch):
        _patch_relay(monkeypatch, lambda r: httpx.Response(
            200, content=b'<!DOCTYPE html><html></html>', headers={'content-type': 'text/html'}))

        response = self._post(client, {'url': self.URL})
        assert response.status_code == 500
        assert response.json()['error'] == "Sheet not 'Published to Web' as CSV."

    def test_network_failure(self, client, monkeypatch):
        def handler(request):
            raise httpx.ConnectError('unreachable', request=request)
        _patch_relay(monkeypatch, handler)

        assert self._post(client, {'url': self.URL}).status_code == 500

    def test_get_not_allowed(self, client):
        assert client.get('/proxy').status_code == 405

    def test_html_refusal_is_tagged(self, client, monkeypatch):
        _patch_relay(monkeypatch, lambda r: httpx.Response(
            200, content=b'<!DOCTYPE html><html></html>', headers={'content-type': 'text/html'}))

        response = self._post(client, {'url': self.URL})
        assert response.json()['error_code'] == NOT_PUBLISHED_CODE


def _source_through_relay(client):
    """PublishedCsvSource whose relay calls are served by the /proxy view."""
    def forward(request):
        response = client.post(request.url.path, data=request.content, content_type='application/json')
        return httpx.Response(
            response.status_code,
            content=response.content,
            headers={'content-type': response['Content-Type']},
        )

    return PublishedCsvSource(
        relay_url='http://testserver/proxy',
        client=httpx.Client(transport=httpx.MockTransport(forward)),
    )


class TestSourceThroughRelay:
    """Test PublishedCsvSource against the project's own relay view."""

    URL = 'https://docs.google.com/spreadsheets/d/e/2PACX-abc/pub?output=csv'

    def test_csv_passes_through(self, client, monkeypatch):
        _patch_relay(monkeypatch, lambda r: httpx.Response(
            200, content=b'Name\nAsha\n', headers={'content-type': 'text/csv'}))

        assert _source_through_relay(client).fetch(self.URL) == b'Name\nAsha\n'

    def test_unpublished_sheet(self, client, monkeypatch):
        _patch_relay(monkeypatch, lambda r: httpx.Response(
            200, content=b'<!DOCTYPE html><html>Sign in</html>', headers={'content-type': 'text/html'}))

        with pytest.raises(NotPublishedError):
            _source_through_relay(client).fetch(self.URL)

    def test_other_upstream_errors_stay_generic(self, client, monkeypatch):
        _patch_relay(monkeypatch, lambda r: httpx.Response(404))

        with pytest.raises(FetchError) as exc_info:
            _source_through_relay(client).fetch(self.URL)
        assert not isinstance(exc_info.value, NotPublishedError)
