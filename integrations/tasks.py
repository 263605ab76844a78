"""
Celery tasks for remote syncing.

Run on demand (``celery -A config call integrations.tasks.pull_remote_records``)
or from a beat entry to keep the local store warm.
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def pull_remote_records():
    """
    Pull both remote tables into the local store.

    Returns the PullResult as a dict; a failed table is reported in the
    result, not raised.
    """
    from core.session import DashboardSession

    with DashboardSession() as session:
        result = session.start()

    if not result.ok:
        for message in result.messages:
            logger.warning(message)

    return result.as_dict()
