"""
Celery configuration for Clinic Dashboard.

Usage:
    # Run worker (dev)
    celery -A config worker -l info

    # Warm the local store from the remote tables
    celery -A config call integrations.tasks.pull_remote_records
"""

import os

from celery import Celery

# Set the default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

app = Celery('clinic_dashboard')

# Read config from Django settings, using CELERY_ prefix
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()

app.conf.beat_schedule = {
    'pull-remote-records': {
        'task': 'integrations.tasks.pull_remote_records',
        'schedule': 3600.0,  # Every hour
    },
}
