"""
Analytics views - period summaries, monthly goals and report payloads.
"""

import logging

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET

from core.auth import api_key_required
from core.records import DailyRecord, MalformedRecord, parse_day
from core.session import DashboardSession
from .reports import build_daily_report, build_period_report
from .services import (
    latest_followers,
    load_range,
    monthly_progress,
    period_label,
    resolve_preset,
    sum_entries,
)

logger = logging.getLogger(__name__)


def _requested_range(request):
    """
    Resolve ?preset=&start=&end= into a (start, end) pair.

    Defaults to the current month. Explicit start/end without a preset
    means a custom range.
    """
    preset = request.GET.get('preset')
    start = request.GET.get('start')
    end = request.GET.get('end')
    if not preset:
        preset = 'custom' if (start or end) else 'month'
    return resolve_preset(preset, custom_start=start, custom_end=end)


def _period(session, request):
    start, end = _requested_range(request)
    entries = load_range(session.accessor, start, end)
    totals = sum_entries(entries)
    return start, end, entries, totals


@require_GET
@api_key_required
def period_summary(request):
    """
    Totals, daily averages and CAC for a period, plus the daily breakdown.
    """
    with DashboardSession() as session:
        try:
            start, end, entries, totals = _period(session, request)
        except ValueError as e:
            return JsonResponse({'error': str(e)}, status=400)

    data = {
        'start': start.isoformat(),
        'end': end.isoformat(),
        'label': period_label(start, end),
        'days_with_data': totals.days_with_data,
        'is_empty': totals.is_empty,
        'totals': totals.as_dict(),
        'averages': {
            DailyRecord.wire_name(attr): totals.average(attr)
            for attr in totals.metric_fields()
        },
        'cac': totals.cost_per_acquisition,
        'latest_followers': latest_followers(entries),
        'entries': [
            {'date': entry.date.isoformat(), 'data': entry.record.as_payload()}
            for entry in entries
        ],
    }
    return JsonResponse(data)


@require_GET
@api_key_required
def monthly_goals(request):
    """Month-to-date progress against the monthly goals (?date= picks the month)."""
    with DashboardSession() as session:
        try:
            day = parse_day(request.GET['date']) if request.GET.get('date') else None
            result = monthly_progress(day or timezone.localdate(), session.accessor)
        except MalformedRecord as e:
            return JsonResponse({'error': str(e)}, status=400)

    start, end = result['period']
    return JsonResponse({
        'start': start.isoformat(),
        'end': end.isoformat(),
        'totals': result['totals'].as_dict(),
        'progress': [p.as_dict() for p in result['progress']],
        'cac': result['cac'],
    })


@require_GET
@api_key_required
def daily_report(request, day):
    """Payload for the single-day document."""
    try:
        day = parse_day(day)
    except MalformedRecord as e:
        return JsonResponse({'error': str(e)}, status=400)

    with DashboardSession() as session:
        report = build_daily_report(
            day,
            session.accessor.load(day),
            session.accessor.load_goals('daily'),
            session.accessor.load_goals('monthly'),
        )
    return JsonResponse(report)


@require_GET
@api_key_required
def period_report(request):
    """Payload for the period document; empty periods are flagged, not rejected."""
    with DashboardSession() as session:
        try:
            start, end, entries, totals = _period(session, request)
        except ValueError as e:
            return JsonResponse({'error': str(e)}, status=400)
        daily_goals = session.accessor.load_goals('daily')

    report = build_period_report(period_label(start, end), entries, totals, daily_goals)
    return JsonResponse(report)
