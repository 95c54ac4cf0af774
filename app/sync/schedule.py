from django.utils import timezone


def is_sync_due(state, now=None):
    """
    Heartbeat predicate for the daily pull.

    Due when auto sync is on, a sheet is configured, no scheduled pull has run
    today, and the local clock has reached the configured HH:MM.
    """
    if not state.auto_sync or not state.sheet_ref:
        return False

    local_now = timezone.localtime(now or timezone.now())
    if state.last_scheduled_sync_date == local_now.date():
        return False

    return local_now.strftime('%H:%M') >= (state.sync_time or '13:00')
