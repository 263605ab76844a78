"""
Business logic services for core app.
Keep views thin, put logic here.
"""

import logging
from datetime import date
from typing import Union

from .records import (
    DailyRecord,
    RecordMixin,
    daily_key,
    goal_set_type,
    goals_key,
    parse_day,
)

logger = logging.getLogger(__name__)


class DailyRecordAccessor:
    """
    Reads and writes one day's record, or one goal set, through the local store.

    Reads never fail: whatever is stored is decoded over defaults.
    Writes go through the synchronizer, which stores locally first and then
    attempts a single remote upsert; the returned SyncResult says how that went.

    Usage:
        accessor = DailyRecordAccessor(store, synchronizer)
        record = accessor.load('2025-03-01')
        status = accessor.save('2025-03-01', record.replace(total_patients=4))
    """

    def __init__(self, store, synchronizer):
        self.store = store
        self.synchronizer = synchronizer

    def load(self, day: Union[date, str]) -> DailyRecord:
        key = daily_key(day)
        return DailyRecord.from_payload(self.store.get(key), key=key)

    def save(self, day: Union[date, str], record):
        if not isinstance(record, DailyRecord):
            record = DailyRecord.from_payload(record, key=daily_key(day))
        return self.synchronizer.push_record(parse_day(day), record)

    def load_goals(self, scope: str):
        goal_type = goal_set_type(scope)
        key = goals_key(scope)
        return goal_type.from_payload(self.store.get(key), key=key)

    def save_goals(self, scope: str, goals):
        goal_type = goal_set_type(scope)
        if isinstance(goals, RecordMixin) and not isinstance(goals, goal_type):
            raise ValueError(f"Expected {goal_type.__name__} for scope {scope!r}")
        if not isinstance(goals, goal_type):
            goals = goal_type.from_payload(goals, key=goals_key(scope))
        return self.synchronizer.push_goals(scope, goals)

    def update_goals(self, scope: str, changes: dict):
        """
        Change one or more targets, keyed by wire key or attribute name.

        Always a read-modify-write of the whole set.
        """
        goals = self.load_goals(scope)
        attrs = {goals.attr_name(name): value for name, value in changes.items()}
        logger.info(f"Updating {scope} goals: {', '.join(sorted(attrs))}")
        return self.save_goals(scope, goals.replace(**attrs))

    def update_goal(self, scope: str, field: str, value):
        return self.update_goals(scope, {field: value})
