"""
Clinic Dashboard - daily metrics, goals and period reports for a small clinic.

This module makes Celery app available for Django.
"""

from .celery import app as celery_app

__all__ = ('celery_app',)
