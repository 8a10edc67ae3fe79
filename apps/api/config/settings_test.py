"""
Test settings: SQLite in-memory database, fast hashing, fake service endpoints.
"""
from .settings import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',  # In-memory database for speed
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

MINIO_ENDPOINT = 'minio.test:9000'

AI_SUMMARY_WEBHOOK_URL = 'http://n8n.test/webhook/ai-summary'
REPORT_CHAT_WEBHOOK_URL = 'http://n8n.test/webhook/report-chat'

LOGGING['root']['level'] = 'WARNING'  # noqa: F405
