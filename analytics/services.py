"""
Analytics calculation services.

Period totals are computed on demand from the daily records in the local
store. Derived metrics (CAC, percent of goal, averages) are never stored;
they are computed from the summed totals at the point of use.
"""

import calendar
import logging
from dataclasses import dataclass, fields
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, NamedTuple, Optional, Tuple, Union

from django.conf import settings
from django.utils import timezone

from core.records import DailyRecord, MonthlyGoalSet, parse_day, to_decimal

logger = logging.getLogger(__name__)

PRESETS = ('today', '7d', '15d', '30d', 'week', 'month', 'custom')

TRAILING_DAYS = {
    '7d': 7,
    '15d': 15,
    '30d': 30,
}

HUNDRED = Decimal('100')


class DayEntry(NamedTuple):
    date: date
    record: DailyRecord


@dataclass
class PeriodTotals:
    """
    Componentwise sum of the non-empty days of a period.

    ``days_with_data`` is the number of days that contributed.
    """
    total_patients: int = 0
    cancelled: int = 0
    new_patients: int = 0
    returning: int = 0
    revenue: Decimal = Decimal('0')
    leads_total: int = 0
    leads_campaign: int = 0
    leads_organic: int = 0
    leads_instagram: int = 0
    followers: int = 0
    conversations_started: int = 0
    conversations_answered: int = 0
    appointments: int = 0
    ad_spend: Decimal = Decimal('0')
    days_with_data: int = 0

    @classmethod
    def metric_fields(cls) -> List[str]:
        return [f.name for f in fields(cls) if f.name != 'days_with_data']

    @property
    def is_empty(self) -> bool:
        return self.days_with_data == 0

    @property
    def cost_per_acquisition(self) -> Decimal:
        return cost_per_acquisition(self.ad_spend, self.appointments)

    def average(self, field_name: str) -> Decimal:
        """Daily average over the days with data; 0 for an empty period."""
        if field_name not in self.metric_fields():
            raise ValueError(f"PeriodTotals has no field {field_name!r}")
        if not self.days_with_data:
            return Decimal('0')
        return Decimal(getattr(self, field_name)) / self.days_with_data

    def as_dict(self) -> dict:
        data = {
            DailyRecord.wire_name(name): getattr(self, name)
            for name in self.metric_fields()
        }
        data['diasComDados'] = self.days_with_data
        return data


def cost_per_acquisition(spend, appointments) -> Decimal:
    """Spend / appointments, 0 when there are no appointments."""
    spend = to_decimal(spend) or Decimal('0')
    appointments = to_decimal(appointments) or Decimal('0')
    if appointments == 0:
        return Decimal('0')
    return spend / appointments


def percent_of_goal(value, goal) -> Decimal:
    """value / goal × 100 clamped to [0, 100]; 0 when the goal is not positive."""
    goal = to_decimal(goal)
    if not goal:
        return Decimal('0')
    value = to_decimal(value) or Decimal('0')
    return min(value / goal * HUNDRED, HUNDRED)


def enumerate_dates(start: Union[date, str], end: Union[date, str]) -> List[date]:
    """
    Every calendar day from start to end, both inclusive.

    A reversed range gives an empty list; bounds are never swapped.
    """
    start = parse_day(start)
    end = parse_day(end)
    if start > end:
        logger.debug(f"Reversed range {start} > {end}, nothing to enumerate")
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def load_range(accessor, start: Union[date, str], end: Union[date, str]) -> List[DayEntry]:
    """
    Load each day of the range through the accessor, dropping empty days.

    Chronological order is kept; the daily breakdown tables rely on it.
    """
    entries = []
    for day in enumerate_dates(start, end):
        record = accessor.load(day)
        if not record.is_empty:
            entries.append(DayEntry(day, record))
    return entries


def _entry_record(entry):
    if isinstance(entry, DailyRecord):
        return entry
    if isinstance(entry, tuple) and len(entry) == 2:
        return entry[1]
    if isinstance(entry, dict) and 'data' in entry:
        return entry['data']
    return entry


def _field_value(record, name: str):
    if isinstance(record, DailyRecord):
        return getattr(record, name, None)
    if isinstance(record, dict):
        wire = DailyRecord.wire_name(name)
        return record.get(wire, record.get(name))
    return getattr(record, name, None)


def sum_entries(entries: Iterable) -> PeriodTotals:
    """
    Add up every metric across the entries.

    Entries may be DayEntry tuples, (date, record) pairs, {'date', 'data'}
    dicts or bare records; records may be DailyRecord instances or raw
    mappings. Missing or non-numeric values count as 0, so one bad entry
    never aborts the rest.
    """
    entries = list(entries)
    totals = PeriodTotals(days_with_data=len(entries))

    for entry in entries:
        record = _entry_record(entry)
        for name in PeriodTotals.metric_fields():
            number = to_decimal(_field_value(record, name))
            if number is None:
                continue
            current = getattr(totals, name)
            if isinstance(current, int):
                setattr(totals, name, current + int(number))
            else:
                setattr(totals, name, current + number)

    return totals


def latest_followers(entries: Iterable) -> int:
    """Last non-zero follower snapshot in the period, 0 when none."""
    latest = 0
    for entry in entries:
        number = to_decimal(_field_value(_entry_record(entry), 'followers'))
        if number:
            latest = int(number)
    return latest


def resolve_preset(
    preset: str,
    today: Optional[date] = None,
    custom_start: Optional[Union[date, str]] = None,
    custom_end: Optional[Union[date, str]] = None,
) -> Tuple[date, date]:
    """
    Turn a preset identifier into a (start, end) range.

    Presets:
    - today: just today
    - 7d / 15d / 30d: trailing N days including today
    - week: calendar week, first day from DASHBOARD_WEEK_START
    - month: calendar month
    - custom: custom_start and custom_end, both required
    """
    today = today or timezone.localdate()

    if preset == 'today':
        return today, today

    if preset in TRAILING_DAYS:
        return today - timedelta(days=TRAILING_DAYS[preset] - 1), today

    if preset == 'week':
        week_start = getattr(settings, 'DASHBOARD_WEEK_START', 6)
        start = today - timedelta(days=(today.weekday() - week_start) % 7)
        return start, start + timedelta(days=6)

    if preset == 'month':
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=1), today.replace(day=last_day)

    if preset == 'custom':
        if not custom_start or not custom_end:
            raise ValueError("Custom range needs both a start and an end date")
        return parse_day(custom_start), parse_day(custom_end)

    raise ValueError(f"Unknown period preset: {preset!r}")


def period_label(start: date, end: date) -> str:
    return f"{start:%d/%m/%Y} - {end:%d/%m/%Y}"


@dataclass
class GoalProgress:
    field: str
    label: str
    value: Decimal
    goal: Decimal

    @property
    def percent(self) -> Decimal:
        return percent_of_goal(self.value, self.goal)

    def as_dict(self) -> dict:
        return {
            'field': self.field,
            'label': self.label,
            'value': self.value,
            'goal': self.goal,
            'percent': self.percent.quantize(Decimal('1')),
        }


DAILY_GOAL_LABELS = {
    'total_patients': 'Total Pacientes',
    'revenue': 'Faturamento',
    'leads_total': 'Total de Leads',
    'conversations_started': 'Conversas Iniciadas',
    'conversations_answered': 'Conversas Respondidas',
    'appointments': 'Agendamentos',
    'followers': 'Seguidores',
}


def daily_progress(record: DailyRecord, goals) -> List[GoalProgress]:
    """Value against the daily target for every metric that has one."""
    return [
        GoalProgress(
            field=DailyRecord.wire_name(name),
            label=label,
            value=getattr(record, name),
            goal=getattr(goals, name),
        )
        for name, label in DAILY_GOAL_LABELS.items()
    ]


def monthly_progress(day: Union[date, str], accessor, goals: Optional[MonthlyGoalSet] = None) -> dict:
    """
    Month-to-date totals for the month containing ``day`` against the monthly goals.

    Returns dict with:
    - period: first and last day of the month
    - totals: PeriodTotals of the month
    - progress: list of GoalProgress
    - cac: current CAC, ceiling, percent and over_budget flag
    """
    day = parse_day(day)
    goals = goals or accessor.load_goals('monthly')
    start, end = resolve_preset('month', today=day)
    entries = load_range(accessor, start, end)
    totals = sum_entries(entries)

    progress = [
        GoalProgress('pacientes', 'Pacientes', totals.total_patients, goals.patients),
        GoalProgress('faturamento', 'Faturamento', totals.revenue, goals.revenue),
        GoalProgress('agendamentos', 'Agendamentos', totals.appointments, goals.appointments),
        GoalProgress('leads', 'Leads', totals.leads_total, goals.leads),
        GoalProgress('seguidores', 'Seguidores', latest_followers(entries), goals.followers),
    ]

    current_cac = totals.cost_per_acquisition
    return {
        'period': (start, end),
        'totals': totals,
        'progress': progress,
        'cac': {
            'current': current_cac,
            'ceiling': goals.cac_ceiling,
            'percent': percent_of_goal(current_cac, goals.cac_ceiling),
            'over_budget': goals.cac_ceiling > 0 and current_cac > goals.cac_ceiling,
        },
    }
