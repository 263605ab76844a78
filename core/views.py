"""
Views for core app - session start, daily records and goals.

All endpoints speak JSON and require the dashboard API key.
Saves always succeed locally; the ``sync`` block of the response says
whether the remote store accepted the change.
"""

import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from .auth import api_key_required
from .records import MalformedRecord, parse_day
from .session import DashboardSession

logger = logging.getLogger(__name__)


def parse_json_body(request) -> dict:
    """Decode a JSON object body, raising ValueError on anything else."""
    try:
        data = json.loads(request.body) if request.body else {}
    except json.JSONDecodeError:
        raise ValueError('Invalid JSON')
    if not isinstance(data, dict):
        raise ValueError('Expected a JSON object')
    return data


def parse_record_body(request) -> dict:
    """The record object of a body, either bare or wrapped in {"data": ...}."""
    data = parse_json_body(request)
    data = data.get('data', data)
    if not isinstance(data, dict):
        raise ValueError('Expected a JSON object')
    return data


@csrf_exempt
@require_POST
@api_key_required
def session_start(request):
    """
    Pull the remote tables into the local store.

    Always 200: a failed table only means the dashboard runs on local data.
    """
    with DashboardSession() as session:
        result = session.start()
    return JsonResponse({'ready': True, 'sync': result.as_dict()})


@csrf_exempt
@require_http_methods(['GET', 'PUT', 'POST'])
@api_key_required
def day_record(request, day):
    """Read or replace one day's record."""
    try:
        day = parse_day(day)
    except MalformedRecord as e:
        return JsonResponse({'error': str(e)}, status=400)

    with DashboardSession() as session:
        if request.method == 'GET':
            record = session.accessor.load(day)
            return JsonResponse({
                'date': day.isoformat(),
                'data': record.as_payload(),
                'is_empty': record.is_empty,
            })

        try:
            data = parse_record_body(request)
        except ValueError as e:
            return JsonResponse({'error': str(e)}, status=400)

        status = session.accessor.save(day, data)
        record = session.accessor.load(day)

    return JsonResponse({
        'date': day.isoformat(),
        'data': record.as_payload(),
        'sync': status.as_dict(),
    })


@csrf_exempt
@require_http_methods(['GET', 'PUT', 'POST', 'PATCH'])
@api_key_required
def goals(request, scope):
    """
    Read or write a goal set.

    PUT/POST replace the whole set; PATCH changes only the supplied targets.
    """
    with DashboardSession() as session:
        try:
            if request.method == 'GET':
                goal_set = session.accessor.load_goals(scope)
                return JsonResponse({'scope': scope, 'data': goal_set.as_payload()})

            data = parse_record_body(request)
            if request.method == 'PATCH':
                status = session.accessor.update_goals(scope, data)
            else:
                status = session.accessor.save_goals(scope, data)
            goal_set = session.accessor.load_goals(scope)
        except ValueError as e:
            return JsonResponse({'error': str(e)}, status=400)

    return JsonResponse({
        'scope': scope,
        'data': goal_set.as_payload(),
        'sync': status.as_dict(),
    })
