"""
URL configuration for Clinic Dashboard.
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # App URLs
    path('', include('core.urls')),
    path('analytics/', include('analytics.urls')),
]
