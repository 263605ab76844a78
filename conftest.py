"""
Pytest configuration and fixtures.
"""

from decimal import Decimal

import pytest

from integrations.services.remote_store import RemoteUnavailable

API_KEY = 'test-key'


class FakeRemoteStore:
    """
    In-memory stand-in for RemoteRecordStore.

    Rows live in ``tables``; set ``failing`` to a set of table names to make
    every call against them raise RemoteUnavailable.
    """

    def __init__(self, daily_table='daily_records', goals_table='goals'):
        self.daily_table = daily_table
        self.goals_table = goals_table
        self.tables = {daily_table: {}, goals_table: {}}
        self.failing = set()
        self.upserts = []

    def _check(self, table):
        if table in self.failing:
            raise RemoteUnavailable(f"{table} is down", table=table)

    def fetch_all(self, table):
        self._check(table)
        return [row for _, row in sorted(self.tables[table].items())]

    def upsert(self, table, row):
        self._check(table)
        pk = 'id' if table == self.goals_table else 'date'
        self.tables[table][row[pk]] = row
        self.upserts.append((table, row))

    def fetch_daily_records(self):
        return self.fetch_all(self.daily_table)

    def fetch_goals(self):
        return self.fetch_all(self.goals_table)

    def upsert_daily_record(self, day, payload):
        self.upsert(self.daily_table, {'date': day, 'data': payload})

    def upsert_goals(self, scope, payload):
        self.upsert(self.goals_table, {'id': scope, 'data': payload})


@pytest.fixture
def remote():
    """An empty, reachable fake remote store."""
    return FakeRemoteStore()


@pytest.fixture
def store(db):
    """An open local record store."""
    from core.store import LocalRecordStore
    with LocalRecordStore() as local:
        yield local


@pytest.fixture
def synchronizer(store, remote):
    from integrations.sync import Synchronizer
    return Synchronizer(store, remote)


@pytest.fixture
def accessor(store, synchronizer):
    from core.services import DailyRecordAccessor
    return DailyRecordAccessor(store, synchronizer)


@pytest.fixture
def session(db, remote):
    """An open dashboard session backed by the fake remote store."""
    from core.session import DashboardSession
    with DashboardSession(remote=remote) as dashboard:
        yield dashboard


@pytest.fixture
def api_client(client):
    """Django test client that sends the dashboard API key."""
    client.defaults['HTTP_X_API_KEY'] = API_KEY
    return client


@pytest.fixture
def daily_record():
    """A busy day at the clinic."""
    from core.records import DailyRecord
    return DailyRecord(
        total_patients=12,
        cancelled=1,
        new_patients=4,
        returning=8,
        revenue=Decimal('1850.00'),
        procedures='Limpeza, clareamento',
        leads_total=9,
        leads_campaign=5,
        leads_organic=3,
        leads_instagram=1,
        followers=1520,
        conversations_started=14,
        conversations_answered=11,
        appointments=6,
        ad_spend=Decimal('120.00'),
    )


@pytest.fixture
def daily_goals():
    from core.records import DailyGoalSet
    return DailyGoalSet(
        total_patients=10,
        revenue=Decimal('2000'),
        leads_total=8,
        conversations_started=10,
        conversations_answered=10,
        appointments=5,
        followers=1500,
    )


@pytest.fixture
def monthly_goals():
    from core.records import MonthlyGoalSet
    return MonthlyGoalSet(
        patients=200,
        revenue=Decimal('40000'),
        leads=150,
        appointments=100,
        followers=2000,
        cac_ceiling=Decimal('50'),
    )
