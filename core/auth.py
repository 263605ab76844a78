"""
API key check for the dashboard endpoints.

The dashboard is single-user; the only credential is a shared key sent in
the ``X-API-Key`` header.
"""

import hmac
import logging
from functools import wraps

from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def validate_api_key(request) -> bool:
    """
    Check the request's API key against DASHBOARD_API_KEY.

    Returns False when no key is configured.
    """
    expected = getattr(settings, 'DASHBOARD_API_KEY', '')
    if not expected:
        logger.warning("DASHBOARD_API_KEY not configured")
        return False

    provided = request.META.get('HTTP_X_API_KEY', '')
    return hmac.compare_digest(provided.encode(), expected.encode())


def api_key_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not validate_api_key(request):
            logger.warning(f"Rejected request to {request.path}: invalid API key")
            return JsonResponse({'error': 'Invalid API key'}, status=403)
        return view(request, *args, **kwargs)
    return wrapper
