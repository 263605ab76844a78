"""
URL configuration for core app.
"""

from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    path('session/start/', views.session_start, name='session_start'),
    path('days/<str:day>/', views.day_record, name='day_record'),
    path('goals/<str:scope>/', views.goals, name='goals'),
]
