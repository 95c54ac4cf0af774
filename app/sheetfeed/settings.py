"""
Django settings for the sheetfeed project.

Everything deployment-specific comes from environment variables so the same
settings module serves local runs, the scheduled `pull_sheets` job and the
read API.
"""

import os
import re
from pathlib import Path

from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('SHEETFEED_SECRET_KEY', 'dev-only-insecure-key')
DEBUG = os.environ.get('SHEETFEED_DEBUG', '').lower() in ('1', 'true', 'yes')
ALLOWED_HOSTS = [h.strip() for h in os.environ.get('SHEETFEED_ALLOWED_HOSTS', '*').split(',') if h.strip()]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'ingest',
    'sync',
    'feed',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
]

ROOT_URLCONF = 'sheetfeed.urls'
WSGI_APPLICATION = 'sheetfeed.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

if os.environ.get('POSTGRES_DB'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ['POSTGRES_DB'],
            'USER': os.environ.get('POSTGRES_USER', 'postgres'),
            'PASSWORD': os.environ.get('POSTGRES_PASSWORD', ''),
            'HOST': os.environ.get('POSTGRES_HOST', 'localhost'),
            'PORT': os.environ.get('POSTGRES_PORT', '5432'),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.environ.get('SHEETFEED_DB_PATH', str(BASE_DIR / 'db.sqlite3')),
            # Commit workers each open their own connection; wait on the write lock.
            'OPTIONS': {'timeout': 20},
            # File-backed so threaded commits can share the test database.
            'TEST': {
                'NAME': os.environ.get('SHEETFEED_TEST_DB_PATH', str(BASE_DIR / 'test_db.sqlite3')),
            },
        }
    }

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('SHEETFEED_TIME_ZONE', 'UTC')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

# ------------------------------------------------------------
# Ingestion
# ------------------------------------------------------------

SHEETFEED_CHUNK_SIZE = int(os.environ.get('SHEETFEED_CHUNK_SIZE', '50'))
# Threads per chunk; None means one per row in the chunk.
_workers = os.environ.get('SHEETFEED_COMMIT_WORKERS')
SHEETFEED_COMMIT_WORKERS = int(_workers) if _workers else None

SHEETFEED_SNAPSHOT_RETENTION = int(os.environ.get('SHEETFEED_SNAPSHOT_RETENTION', '5'))
SHEETFEED_SYNC_LOG_SIZE = int(os.environ.get('SHEETFEED_SYNC_LOG_SIZE', '15'))

SHEETFEED_RELAY_URL = os.environ.get('SHEETFEED_RELAY_URL') or None
SHEETFEED_FETCH_TIMEOUT = float(os.environ.get('SHEETFEED_FETCH_TIMEOUT', '30'))

GOOGLE_APPLICATION_CREDENTIALS = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS')

# ------------------------------------------------------------
# Read API
# ------------------------------------------------------------

# "HH:MM-HH:MM" in UTC, e.g. "03:30-05:30". Unset disables the window.
_ACCESS_WINDOW_RE = re.compile(r'^\s*((?:[01]\d|2[0-3]):[0-5]\d)\s*-\s*((?:[01]\d|2[0-3]):[0-5]\d)\s*$')


def parse_access_window(value):
    """Parse "HH:MM-HH:MM" into a ("HH:MM", "HH:MM") pair; blank means no window."""
    if not value or not value.strip():
        return None
    m = _ACCESS_WINDOW_RE.match(value)
    if not m:
        raise ImproperlyConfigured(
            f'SHEETFEED_ACCESS_WINDOW must look like "03:30-05:30", got {value!r}'
        )
    return m.group(1), m.group(2)


SHEETFEED_ACCESS_WINDOW = parse_access_window(os.environ.get('SHEETFEED_ACCESS_WINDOW', ''))

# ------------------------------------------------------------
# Logging
# ------------------------------------------------------------

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'console': {
            'format': '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'console',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.environ.get('SHEETFEED_LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'django.db.backends': {
            'level': 'WARNING',
        },
    },
}
