"""
Feed views

- data_feed: authenticated read-only JSON feed of stored records
- relay: server-side fetch of a sheet URL for browser clients blocked by CORS
"""

import json
import logging

import httpx
from django.conf import settings
from django.db import DatabaseError
from django.http import HttpResponse, JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from ingest.exceptions import AuthError, NotPublishedError
from ingest.models import Record
from sync.sources import NOT_PUBLISHED_CODE, is_html_document

from .audit import record_audit
from .auth import authenticate, is_within_access_window
from .models import AuditLog

logger = logging.getLogger(__name__)


def _with_cors(response, methods, headers='Content-Type'):
    response['Access-Control-Allow-Origin'] = '*'
    response['Access-Control-Allow-Methods'] = methods
    response['Access-Control-Allow-Headers'] = headers
    return response


def _json(data, status=200):
    return JsonResponse(data, status=status, json_dumps_params={'ensure_ascii': False})


@require_http_methods(["GET", "OPTIONS"])
def data_feed(request):
    """
    GET /data[?date=YYYY-MM-DD]

    Credential via `Authorization: Bearer <token>` or `?apiKey=`.
    Returns records newest-first, each flattened to {id, date, ...row}.
    """
    cors = 'GET,OPTIONS'
    cors_headers = 'Authorization, Content-Type'

    if request.method == 'OPTIONS':
        return _with_cors(HttpResponse(status=200), cors, cors_headers)

    try:
        api_key = authenticate(request)
    except AuthError as e:
        return _with_cors(_json({'error': str(e)}, status=e.status), cors, cors_headers)
    except DatabaseError:
        logger.exception('API key lookup failed')
        return _with_cors(_json({'error': 'Database error fetching records'}, status=500), cors, cors_headers)

    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR') or 'unknown'
    record_audit(
        AuditLog.ACTION_API_PULL,
        AuditLog.STATUS_SUCCESS,
        f'Remote pull by {api_key.owner_name} (IP: {forwarded_for})',
    )

    if not is_within_access_window():
        window = settings.SHEETFEED_ACCESS_WINDOW
        return _with_cors(_json(
            {'error': f'Access Denied: API available {window[0]} - {window[1]} UTC only.'},
            status=403,
        ), cors, cors_headers)

    records = Record.objects.order_by('-created_at')

    date_filter = request.GET.get('date')
    if date_filter:
        try:
            day = parse_date(date_filter)
        except ValueError:
            day = None
        if day is None:
            return _with_cors(_json({'error': 'Invalid date, expected YYYY-MM-DD'}, status=400), cors, cors_headers)
        records = records.filter(day=day)

    try:
        data = [record.to_feed_dict() for record in records]
    except DatabaseError:
        logger.exception('Feed query failed')
        return _with_cors(_json({'error': 'Database error fetching records'}, status=500), cors, cors_headers)

    return _with_cors(_json({
        'status': 'success',
        'requester': api_key.owner_name,
        'count': len(data),
        'data': data,
    }), cors, cors_headers)


def _relay_client():
    return httpx.Client(timeout=settings.SHEETFEED_FETCH_TIMEOUT, follow_redirects=True)


@csrf_exempt
@require_http_methods(["POST", "OPTIONS"])
def relay(request):
    """
    POST /proxy {"url": "..."}

    Fetches the URL server side and hands back the body with the upstream
    content type. HTML bodies are refused: they are error or sign-in pages,
    not sheet data.
    """
    cors = 'POST,OPTIONS'

    if request.method == 'OPTIONS':
        return _with_cors(HttpResponse(status=200), cors)

    try:
        body = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        body = {}
    url = body.get('url') if isinstance(body, dict) else None

    if not url or not isinstance(url, str):
        return _with_cors(_json({'error': 'Missing URL'}, status=400), cors)
    if not url.startswith(('http://', 'https://')):
        return _with_cors(_json({'error': 'Only http(s) URLs can be relayed'}, status=400), cors)

    logger.info('[Relay] Fetching: %s', url)
    try:
        with _relay_client() as client:
            upstream = client.get(url)
    except httpx.HTTPError as e:
        logger.error('Relay error for %s: %s', url, e)
        return _with_cors(_json({'error': str(e)}, status=500), cors)

    if not upstream.is_success:
        return _with_cors(_json(
            {'error': f'Upstream error: {upstream.status_code} {upstream.reason_phrase}'},
            status=500,
        ), cors)

    content_type = upstream.headers.get('content-type', 'text/csv')
    if is_html_document(upstream.content, content_type):
        return _with_cors(_json(
            {'error': str(NotPublishedError()), 'error_code': NOT_PUBLISHED_CODE},
            status=500,
        ), cors)

    return _with_cors(HttpResponse(upstream.content, status=upstream.status_code, content_type=content_type), cors)
