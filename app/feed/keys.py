import logging
import secrets

from django.db import transaction

from .models import ApiKey

logger = logging.getLogger(__name__)

KEY_PREFIX = 'sk_'


def generate_key_value():
    return KEY_PREFIX + secrets.token_hex(24)


def issue_api_key(owner_name='Admin Generated', deactivate_existing=True):
    """
    Create a new active key for `owner_name`.

    By default every previously active key is deactivated in the same
    transaction, so regenerating a key revokes the old one.
    """
    with transaction.atomic():
        revoked = 0
        if deactivate_existing:
            revoked = ApiKey.objects.filter(is_active=True).update(is_active=False)
        api_key = ApiKey.objects.create(
            key_value=generate_key_value(),
            owner_name=owner_name,
            is_active=True,
        )

    logger.info('Issued API key for %s (%d previous key(s) deactivated)', owner_name, revoked)
    return api_key


def get_active_api_key():
    return ApiKey.objects.filter(is_active=True).order_by('-created_at').first()
