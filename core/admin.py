"""
Django admin configuration for core models.
"""

from django.contrib import admin
from .models import StoredEntry


@admin.register(StoredEntry)
class StoredEntryAdmin(admin.ModelAdmin):
    list_display = ['key', 'is_dirty', 'last_pushed_at', 'updated_at']
    list_filter = ['is_dirty']
    search_fields = ['key']
    readonly_fields = ['created_at', 'updated_at', 'last_pushed_at']
