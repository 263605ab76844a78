"""
Local Record Store.

A thin key/value layer over StoredEntry. No record logic lives here; callers
decode payloads through core.records.
"""

import logging
from typing import List

from django.utils import timezone

from .models import StoredEntry

logger = logging.getLogger(__name__)


class StoreClosed(RuntimeError):
    """The store was used outside an open session."""


class LocalRecordStore:
    """
    Persistent key/value store for dashboard records.

    Usage:
        with LocalRecordStore() as store:
            store.set('daily_goals', {...})
            payload = store.get('daily_goals')
    """

    def __init__(self):
        self.is_open = False

    def open(self):
        self.is_open = True
        return self

    def close(self):
        self.is_open = False

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _check_open(self):
        if not self.is_open:
            raise StoreClosed("Local record store is not open")

    def get(self, key: str):
        """Return the raw stored payload, or None when the key was never written."""
        self._check_open()
        entry = StoredEntry.objects.filter(key=key).only('payload').first()
        return entry.payload if entry else None

    def set(self, key: str, payload, dirty: bool = True) -> StoredEntry:
        """Insert or replace ``key``. Local edits are dirty until pushed."""
        self._check_open()
        entry, _ = StoredEntry.objects.update_or_create(
            key=key,
            defaults={'payload': payload, 'is_dirty': dirty},
        )
        return entry

    def mark_pushed(self, key: str):
        self._check_open()
        StoredEntry.objects.filter(key=key).update(
            is_dirty=False,
            last_pushed_at=timezone.now(),
        )

    def is_dirty(self, key: str) -> bool:
        self._check_open()
        return StoredEntry.objects.filter(key=key, is_dirty=True).exists()

    def dirty_keys(self, prefix: str = '') -> List[str]:
        self._check_open()
        entries = StoredEntry.objects.filter(is_dirty=True)
        if prefix:
            entries = entries.filter(key__startswith=prefix)
        return list(entries.order_by('key').values_list('key', flat=True))

    def keys(self, prefix: str = '') -> List[str]:
        self._check_open()
        entries = StoredEntry.objects.all()
        if prefix:
            entries = entries.filter(key__startswith=prefix)
        return list(entries.order_by('key').values_list('key', flat=True))

