"""
Test settings for Clinic Dashboard.
"""

from .base import *  # noqa: F401, F403

SECRET_KEY = 'django-insecure-test-key'
DEBUG = False
ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

DASHBOARD_API_KEY = 'test-key'
DASHBOARD_WEEK_START = 6
CLINIC_NAME = 'Clínica Teste'

# Never reach a real remote store from tests
REMOTE_STORE = {
    'URL': '',
    'API_KEY': '',
    'DAILY_TABLE': 'daily_records',
    'GOALS_TABLE': 'goals',
    'TIMEOUT': 1,
    'PAGE_SIZE': 1000,
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
