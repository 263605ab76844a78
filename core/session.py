"""
Dashboard session lifecycle.

A session owns the local store, the remote client, the synchronizer and the
accessor. ``start()`` pulls the remote tables once; the session is ready
afterwards whether or not the pull reached the remote store.
"""

import logging
from typing import Optional

from integrations.services.remote_store import RemoteRecordStore
from integrations.sync import Synchronizer

from .services import DailyRecordAccessor
from .store import LocalRecordStore

logger = logging.getLogger(__name__)


class DashboardSession:
    """
    Usage:
        with DashboardSession() as session:
            session.start()
            record = session.accessor.load('2025-03-01')
    """

    def __init__(self, store: Optional[LocalRecordStore] = None, remote=None):
        self.store = store or LocalRecordStore()
        self.remote = remote if remote is not None else RemoteRecordStore()
        self.synchronizer = Synchronizer(self.store, self.remote)
        self.accessor = DailyRecordAccessor(self.store, self.synchronizer)
        self.pull_result = None

    @property
    def is_ready(self) -> bool:
        return self.pull_result is not None

    def open(self):
        self.store.open()
        return self

    def close(self):
        self.store.close()
        http = getattr(self.remote, 'session', None)
        if http is not None:
            http.close()

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def start(self):
        """Pull the remote tables exactly once for this session."""
        if self.pull_result is not None:
            return self.pull_result

        self.pull_result = self.synchronizer.pull_all()
        if self.pull_result.ok:
            logger.info("Dashboard session ready with fresh remote data")
        else:
            logger.warning("Dashboard session ready with local data only")
        return self.pull_result
