"""
URL configuration for analytics app.
"""

from django.urls import path
from . import views

app_name = 'analytics'

urlpatterns = [
    path('period/', views.period_summary, name='period_summary'),
    path('monthly/', views.monthly_goals, name='monthly_goals'),
    path('reports/daily/<str:day>/', views.daily_report, name='daily_report'),
    path('reports/period/', views.period_report, name='period_report'),
]
