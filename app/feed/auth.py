"""
Read API access checks: credential lookup and the optional daily access window.
"""

import datetime

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from ingest.exceptions import AuthError

from .models import ApiKey


def extract_api_key(request):
    """Credential from ?apiKey=... or an `Authorization: Bearer <token>` header."""
    api_key = request.GET.get('apiKey')
    if not api_key:
        parts = request.headers.get('Authorization', '').split(' ')
        if len(parts) == 2 and parts[0] == 'Bearer':
            api_key = parts[1]
    return api_key or None


def authenticate(request):
    """Return the active ApiKey for this request or raise AuthError (401/403)."""
    value = extract_api_key(request)
    if not value:
        raise AuthError('Unauthorized: Missing API Key', status=401)

    api_key = ApiKey.objects.filter(key_value=value, is_active=True).first()
    if api_key is None:
        raise AuthError('Forbidden: Invalid or inactive API Key', status=403)
    return api_key


def _minutes(hhmm):
    try:
        hours, minutes = (int(part) for part in hhmm.split(':'))
    except (AttributeError, ValueError):
        raise ImproperlyConfigured(f'Access window bound must be HH:MM, got {hhmm!r}')
    return hours * 60 + minutes


def is_within_access_window(now=None, window=None):
    """
    True when `now` (UTC) falls inside the configured window, bounds inclusive.

    `window` is a ("HH:MM", "HH:MM") pair in UTC, defaulting to
    SHEETFEED_ACCESS_WINDOW; None disables the policy. A window whose start is
    after its end wraps past midnight.
    """
    if window is None:
        window = getattr(settings, 'SHEETFEED_ACCESS_WINDOW', None)
    if not window:
        return True

    now = now or timezone.now()
    utc_now = now.astimezone(datetime.timezone.utc) if timezone.is_aware(now) else now
    current = utc_now.hour * 60 + utc_now.minute
    if len(window) != 2:
        raise ImproperlyConfigured(f'Access window must be a (start, end) pair, got {window!r}')
    start, end = _minutes(window[0]), _minutes(window[1])

    if start <= end:
        return start <= current <= end
    return current >= start or current <= end
