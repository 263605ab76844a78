"""
Synchronizer between the local record store and the remote store.

Rules:
- Local writes happen first and never depend on the network.
- A failed remote call is reported as a SyncResult, never raised.
- Each remote table is pulled in isolation; one table failing does not
  block the other.
- Local entries with unacknowledged edits are not overwritten by a pull;
  they are pushed again instead.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional, Tuple, Union

from django.db import DatabaseError, transaction

from core.records import (
    DAILY_KEY_PREFIX,
    GOAL_SCOPES,
    DailyRecord,
    MalformedRecord,
    daily_key,
    goal_set_type,
    goals_key,
    parse_day,
)
from core.store import LocalRecordStore
from .models import SyncLog
from .services.remote_store import RemoteRecordStore, RemoteUnavailable

logger = logging.getLogger(__name__)


@dataclass
class SyncError:
    """Typed failure returned to the caller instead of an exception."""
    kind: str
    message: str
    table: str = ''
    key: str = ''

    def as_dict(self) -> dict:
        return {
            'kind': self.kind,
            'message': self.message,
            'table': self.table,
            'key': self.key,
        }


@dataclass
class SyncResult:
    ok: bool
    table: str = ''
    key: str = ''
    error: Optional[SyncError] = None

    @classmethod
    def failure(cls, kind: str, message: str, table: str = '', key: str = ''):
        return cls(
            ok=False,
            table=table,
            key=key,
            error=SyncError(kind=kind, message=message, table=table, key=key),
        )

    def as_dict(self) -> dict:
        return {
            'ok': self.ok,
            'table': self.table,
            'key': self.key,
            'error': self.error.as_dict() if self.error else None,
        }


@dataclass
class TablePull(SyncResult):
    fetched: int = 0
    applied: int = 0
    preserved: int = 0
    skipped: int = 0
    repushed: int = 0

    def as_dict(self) -> dict:
        data = super().as_dict()
        data.update({
            'fetched': self.fetched,
            'applied': self.applied,
            'preserved': self.preserved,
            'skipped': self.skipped,
            'repushed': self.repushed,
        })
        return data


@dataclass
class PullResult:
    daily: TablePull
    goals: TablePull
    messages: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.daily.ok and self.goals.ok

    def as_dict(self) -> dict:
        return {
            'ok': self.ok,
            'daily': self.daily.as_dict(),
            'goals': self.goals.as_dict(),
            'messages': self.messages,
        }


REMOTE_UNAVAILABLE = 'remote_unavailable'
LOCAL_STORE_ERROR = 'local_store_error'


class Synchronizer:
    """
    Pulls the remote tables into the local store and pushes local saves.

    Usage:
        sync = Synchronizer(store, RemoteRecordStore())
        result = sync.pull_all()
        status = sync.push_record('2025-03-01', record)
    """

    def __init__(self, store: LocalRecordStore, remote: RemoteRecordStore):
        self.store = store
        self.remote = remote

    # Pull

    def pull_all(self) -> PullResult:
        """
        Fetch both remote tables and apply them to the local store.

        Keys only present locally are kept.
        """
        daily = self._pull_table(
            table=self.remote.daily_table,
            fetch=self.remote.fetch_daily_records,
            decode=self._decode_daily_row,
            dirty_keys=lambda: self.store.dirty_keys(DAILY_KEY_PREFIX),
            repush=self._repush_daily,
        )
        goals = self._pull_table(
            table=self.remote.goals_table,
            fetch=self.remote.fetch_goals,
            decode=self._decode_goals_row,
            dirty_keys=self._dirty_goal_keys,
            repush=self._repush_goals,
        )

        result = PullResult(daily=daily, goals=goals)
        for pull in (daily, goals):
            if not pull.ok:
                result.messages.append(
                    f"Could not refresh {pull.table} from the remote store; "
                    f"showing local data."
                )
        return result

    def _pull_table(
        self,
        table: str,
        fetch: Callable[[], list],
        decode: Callable[[dict], Tuple[str, object]],
        dirty_keys: Callable[[], List[str]],
        repush: Callable[[str], SyncResult],
    ) -> TablePull:
        try:
            rows = fetch()
        except RemoteUnavailable as e:
            logger.warning(f"Pull of {table} failed, keeping local data: {e}")
            self._log('pull', table, 'failed', error_message=str(e))
            return TablePull.failure(REMOTE_UNAVAILABLE, str(e), table=table)

        decoded = []
        skipped = 0
        for row in rows:
            try:
                decoded.append(decode(row))
            except MalformedRecord as e:
                logger.warning(f"Skipping malformed row from {table}: {e}")
                skipped += 1

        applied = 0
        preserved = 0
        try:
            with transaction.atomic():
                for key, record in decoded:
                    if self.store.is_dirty(key):
                        preserved += 1
                        continue
                    self.store.set(key, record.as_payload(), dirty=False)
                    applied += 1
        except (DatabaseError, ValueError) as e:
            logger.exception(f"Could not apply rows from {table}")
            self._log('pull', table, 'failed', rows_fetched=len(rows), error_message=str(e))
            return TablePull.failure(LOCAL_STORE_ERROR, str(e), table=table)

        repushed = 0
        for key in dirty_keys():
            if repush(key).ok:
                repushed += 1

        self._log(
            'pull', table, 'ok',
            rows_fetched=len(rows),
            rows_applied=applied,
            rows_preserved=preserved,
        )
        logger.info(
            f"Pulled {table}: {len(rows)} fetched, {applied} applied, "
            f"{preserved} kept local, {skipped} skipped, {repushed} re-pushed"
        )
        return TablePull(
            ok=True,
            table=table,
            fetched=len(rows),
            applied=applied,
            preserved=preserved,
            skipped=skipped,
            repushed=repushed,
        )

    def _decode_daily_row(self, row) -> Tuple[str, DailyRecord]:
        if not isinstance(row, dict) or 'date' not in row:
            raise MalformedRecord(f"Daily row without a date: {row!r}")
        key = daily_key(row['date'])
        return key, DailyRecord.from_payload(row.get('data'), key=key)

    def _decode_goals_row(self, row):
        if not isinstance(row, dict) or row.get('id') not in GOAL_SCOPES:
            raise MalformedRecord(f"Goal row with an unknown scope: {row!r}")
        scope = row['id']
        key = goals_key(scope)
        return key, goal_set_type(scope).from_payload(row.get('data'), key=key)

    def _dirty_goal_keys(self) -> List[str]:
        return [goals_key(scope) for scope in GOAL_SCOPES if self.store.is_dirty(goals_key(scope))]

    def _repush_daily(self, key: str) -> SyncResult:
        day = key[len(DAILY_KEY_PREFIX):]
        record = DailyRecord.from_payload(self.store.get(key), key=key)
        return self._push(
            self.remote.daily_table,
            key,
            lambda: self.remote.upsert_daily_record(day, record.as_payload()),
        )

    def _repush_goals(self, key: str) -> SyncResult:
        scope = next(s for s in GOAL_SCOPES if goals_key(s) == key)
        goals = goal_set_type(scope).from_payload(self.store.get(key), key=key)
        return self._push(
            self.remote.goals_table,
            key,
            lambda: self.remote.upsert_goals(scope, goals.as_payload()),
        )

    # Push

    def push_record(self, day: Union[date, str], record: DailyRecord) -> SyncResult:
        """
        Save a day locally, then upsert it remotely once.

        The local write is never rolled back.
        """
        day = parse_day(day)
        key = daily_key(day)
        payload = record.as_payload()
        self.store.set(key, payload, dirty=True)

        return self._push(
            self.remote.daily_table,
            key,
            lambda: self.remote.upsert_daily_record(day.isoformat(), payload),
        )

    def push_goals(self, scope: str, goals) -> SyncResult:
        """Save a goal set locally, then upsert it remotely once."""
        key = goals_key(scope)
        payload = goals.as_payload()
        self.store.set(key, payload, dirty=True)

        return self._push(
            self.remote.goals_table,
            key,
            lambda: self.remote.upsert_goals(scope, payload),
        )

    def _push(self, table: str, key: str, upsert: Callable[[], None]) -> SyncResult:
        try:
            upsert()
        except RemoteUnavailable as e:
            logger.warning(f"Push of {key} to {table} failed, local copy kept: {e}")
            self._log('push', table, 'failed', key=key, error_message=str(e))
            return SyncResult.failure(REMOTE_UNAVAILABLE, str(e), table=table, key=key)

        self.store.mark_pushed(key)
        self._log('push', table, 'ok', key=key)
        logger.info(f"Pushed {key} to {table}")
        return SyncResult(ok=True, table=table, key=key)

    def _log(self, direction: str, table: str, status: str, **fields):
        SyncLog.objects.create(direction=direction, table=table, status=status, **fields)
