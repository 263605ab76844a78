"""
Remote record store client (Supabase / PostgREST).

API Documentation: https://postgrest.org/en/stable/references/api.html

Two tables:
    daily records:  {"date": "YYYY-MM-DD", "data": {...}}   conflict key: date
    goals:          {"id": "daily" | "monthly", "data": {...}}  conflict key: id

Upserts are insert-or-replace (``Prefer: resolution=merge-duplicates``).
"""

import json
import logging
from typing import List, Optional

import requests
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

logger = logging.getLogger(__name__)

DAILY_PRIMARY_KEY = 'date'
GOALS_PRIMARY_KEY = 'id'


class RemoteUnavailable(Exception):
    """The remote store could not be reached or returned an unusable response."""

    def __init__(self, message: str, table: str = ''):
        super().__init__(message)
        self.table = table


class RemoteRecordStore:
    """
    Client for the remote record tables.

    Usage:
        remote = RemoteRecordStore()
        rows = remote.fetch_daily_records()
        remote.upsert_goals('daily', {...})

    Settings come from ``settings.REMOTE_STORE`` unless passed explicitly.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        daily_table: Optional[str] = None,
        goals_table: Optional[str] = None,
        timeout: Optional[float] = None,
        page_size: Optional[int] = None,
    ):
        config = getattr(settings, 'REMOTE_STORE', {})
        self.url = (url if url is not None else config.get('URL', '')).rstrip('/')
        self.api_key = api_key if api_key is not None else config.get('API_KEY', '')
        self.daily_table = daily_table or config.get('DAILY_TABLE', 'daily_records')
        self.goals_table = goals_table or config.get('GOALS_TABLE', 'goals')
        self.timeout = timeout or config.get('TIMEOUT', 10)
        self.page_size = page_size or config.get('PAGE_SIZE', 1000)

        self.session = requests.Session()
        self.session.headers.update({
            'apikey': self.api_key,
            'Authorization': f"Bearer {self.api_key}",
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        })

    @property
    def is_configured(self) -> bool:
        return bool(self.url)

    def primary_key(self, table: str) -> str:
        return GOALS_PRIMARY_KEY if table == self.goals_table else DAILY_PRIMARY_KEY

    def _request(self, method: str, table: str, **kwargs):
        """Make a REST request; every failure surfaces as RemoteUnavailable."""
        if not self.is_configured:
            raise RemoteUnavailable("Remote store URL is not configured", table=table)

        url = f"{self.url}/rest/v1/{table}"
        kwargs.setdefault('timeout', self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Remote store error on {table}: {e}")
            raise RemoteUnavailable(str(e), table=table) from e

        return response

    def fetch_all(self, table: str) -> List[dict]:
        """
        Read every row of ``table``.

        Pages with limit/offset ordered by primary key until a short page.
        """
        pk = self.primary_key(table)
        rows = []
        offset = 0

        while True:
            response = self._request('GET', table, params={
                'select': '*',
                'order': f"{pk}.asc",
                'limit': self.page_size,
                'offset': offset,
            })
            try:
                page = response.json()
            except ValueError as e:
                raise RemoteUnavailable(f"Invalid JSON from {table}: {e}", table=table) from e

            if not isinstance(page, list):
                raise RemoteUnavailable(f"Unexpected response shape from {table}", table=table)

            rows.extend(page)
            if len(page) < self.page_size:
                break
            offset += self.page_size

        logger.info(f"Fetched {len(rows)} rows from {table}")
        return rows

    def upsert(self, table: str, row: dict):
        """Insert or replace one row keyed by the table's primary key."""
        pk = self.primary_key(table)
        self._request(
            'POST',
            table,
            params={'on_conflict': pk},
            headers={'Prefer': 'resolution=merge-duplicates,return=minimal'},
            data=json.dumps(row, cls=DjangoJSONEncoder),
        )

    def fetch_daily_records(self) -> List[dict]:
        return self.fetch_all(self.daily_table)

    def fetch_goals(self) -> List[dict]:
        return self.fetch_all(self.goals_table)

    def upsert_daily_record(self, day: str, payload: dict):
        self.upsert(self.daily_table, {DAILY_PRIMARY_KEY: day, 'data': payload})

    def upsert_goals(self, scope: str, payload: dict):
        self.upsert(self.goals_table, {GOALS_PRIMARY_KEY: scope, 'data': payload})
