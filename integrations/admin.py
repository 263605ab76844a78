"""
Django admin configuration for integration models.
"""

from django.contrib import admin
from .models import SyncLog


@admin.register(SyncLog)
class SyncLogAdmin(admin.ModelAdmin):
    list_display = ['direction', 'table', 'key', 'status', 'rows_fetched',
                    'rows_applied', 'rows_preserved', 'created_at']
    list_filter = ['direction', 'status', 'table']
    search_fields = ['key', 'error_message']
    readonly_fields = ['created_at']
    date_hierarchy = 'created_at'
