"""
Integration models for the remote record store.

SyncLog keeps one row per pull (per table) and per failed or successful push,
so a stale local view can be explained after the fact.
"""

from django.db import models


class SyncLog(models.Model):
    """
    Outcome of a single sync operation against the remote store.
    """
    DIRECTION_CHOICES = [
        ('pull', 'Pull'),
        ('push', 'Push'),
    ]

    STATUS_CHOICES = [
        ('ok', 'OK'),
        ('failed', 'Failed'),
    ]

    direction = models.CharField(max_length=10, choices=DIRECTION_CHOICES)
    table = models.CharField(max_length=100)
    key = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)

    # Pull counters
    rows_fetched = models.PositiveIntegerField(default=0)
    rows_applied = models.PositiveIntegerField(default=0)
    rows_preserved = models.PositiveIntegerField(default=0)

    error_message = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['direction', 'status', 'created_at'], name='synclog_direction_status_idx'),
        ]

    def __str__(self):
        target = f"{self.table}/{self.key}" if self.key else self.table
        return f"{self.direction} {target} ({self.status})"
