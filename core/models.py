"""
Core models for the clinic dashboard.

StoredEntry is the on-device copy of every record: one row per calendar day
plus the two goal singletons. The remote store is the sync target, this table
is authoritative.
"""

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class StoredEntry(models.Model):
    """
    Key-addressed record cache.

    Keys: ``daily_data_<YYYY-MM-DD>``, ``daily_goals``, ``monthly_goals``.
    """
    key = models.CharField(max_length=100, unique=True)
    payload = models.JSONField(encoder=DjangoJSONEncoder, null=True, blank=True)

    # Local edit not yet acknowledged by the remote store
    is_dirty = models.BooleanField(default=False, db_index=True)
    last_pushed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['key']
        verbose_name_plural = 'Stored entries'

    def __str__(self):
        return self.key
