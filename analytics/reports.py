"""
Report payloads for the document formatter.

The formatter only lays out what it is given; every number here is already
aggregated and every ratio already computed.
"""

from decimal import Decimal
from typing import List, Optional

from django.conf import settings

from core.records import DailyGoalSet, DailyRecord, MonthlyGoalSet, parse_day
from .services import (
    DayEntry,
    PeriodTotals,
    cost_per_acquisition,
    daily_progress,
    percent_of_goal,
)

CENTS = Decimal('0.01')
TENTHS = Decimal('0.1')

# (attribute, label, is_currency) in display order
PERIOD_METRICS = [
    ('total_patients', 'Total Pacientes', False),
    ('cancelled', 'Desmarcaram', False),
    ('new_patients', 'Pacientes Novos', False),
    ('returning', 'Recorrentes', False),
    ('revenue', 'Faturamento (R$)', True),
    ('leads_total', 'Total de Leads', False),
    ('leads_campaign', 'Leads Campanha', False),
    ('leads_organic', 'Leads Orgânico', False),
    ('leads_instagram', 'Leads Instagram', False),
    ('followers', 'Seguidores', False),
    ('conversations_started', 'Conversas Iniciadas', False),
    ('conversations_answered', 'Conversas Respondidas', False),
    ('appointments', 'Agendamentos', False),
    ('ad_spend', 'Gasto Tráfego (R$)', True),
]

BREAKDOWN_COLUMNS = [
    'total_patients', 'new_patients', 'revenue', 'leads_total', 'leads_campaign',
    'leads_organic', 'followers', 'conversations_started', 'conversations_answered',
    'appointments', 'ad_spend',
]


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENTS)


def _goal_row(label: str, value, goal) -> dict:
    return {
        'metric': label,
        'value': value,
        'goal': goal if goal else None,
        'percent': percent_of_goal(value, goal).quantize(Decimal('1')) if goal else None,
    }


def build_daily_report(
    day,
    record: DailyRecord,
    daily_goals: DailyGoalSet,
    monthly_goals: Optional[MonthlyGoalSet] = None,
) -> dict:
    """
    Payload for the single-day report.

    Sections mirror the dashboard: attendance, revenue, commercial/traffic,
    and the monthly goals when given.
    """
    day = parse_day(day)
    progress = {p.field: p for p in daily_progress(record, daily_goals)}

    def goal_row(attr, label):
        p = progress.get(DailyRecord.wire_name(attr))
        if p is None:
            return _goal_row(label, getattr(record, attr), None)
        return _goal_row(label, p.value, p.goal)

    report = {
        'clinic': settings.CLINIC_NAME,
        'title': f"Relatório Diário - {day:%d/%m/%Y}",
        'date': day.isoformat(),
        'sections': [
            {
                'title': 'Atendimentos',
                'rows': [
                    goal_row('total_patients', 'Total Pacientes'),
                    goal_row('cancelled', 'Desmarcaram'),
                    goal_row('new_patients', 'Pacientes Novos'),
                    goal_row('returning', 'Recorrentes'),
                ],
            },
            {
                'title': 'Faturamento',
                'rows': [goal_row('revenue', 'Faturamento (R$)')],
                'procedures': record.procedures,
            },
            {
                'title': 'Comercial e Tráfego',
                'rows': [
                    goal_row('leads_total', 'Total de Leads'),
                    goal_row('leads_campaign', 'Leads Campanha'),
                    goal_row('leads_organic', 'Leads Orgânico'),
                    goal_row('leads_instagram', 'Leads Instagram'),
                    goal_row('followers', 'Seguidores'),
                    goal_row('conversations_started', 'Conversas Iniciadas'),
                    goal_row('conversations_answered', 'Conversas Respondidas'),
                    goal_row('appointments', 'Agendamentos'),
                    goal_row('ad_spend', 'Gasto Tráfego (R$)'),
                ],
                'cac': _money(cost_per_acquisition(record.ad_spend, record.appointments)),
            },
        ],
        'monthly_goals': monthly_goals.as_payload() if monthly_goals else None,
    }
    return report


def _breakdown_row(label: str, source) -> dict:
    """One table row from a DailyRecord or the PeriodTotals."""
    row = {'date': label}
    for attr in BREAKDOWN_COLUMNS:
        value = getattr(source, attr)
        row[DailyRecord.wire_name(attr)] = _money(value) if attr in ('revenue', 'ad_spend') else value
    row['cac'] = _money(cost_per_acquisition(source.ad_spend, source.appointments))
    return row


def build_period_report(
    label: str,
    entries: List[DayEntry],
    totals: PeriodTotals,
    daily_goals: DailyGoalSet,
) -> dict:
    """
    Payload for the period report.

    An empty period is a normal report with ``is_empty`` set; the caller
    decides whether to render it.
    """
    days = totals.days_with_data

    summary = []
    for attr, metric_label, currency in PERIOD_METRICS:
        value = getattr(totals, attr)
        average = totals.average(attr)
        summary.append({
            'metric': metric_label,
            'total': _money(value) if currency else value,
            'average': _money(average) if currency else average.quantize(TENTHS),
        })

    rows = [_breakdown_row(f"{entry.date:%d/%m/%Y}", entry.record) for entry in entries]
    totals_row = _breakdown_row('TOTAL', totals)

    return {
        'clinic': settings.CLINIC_NAME,
        'title': f"Relatório do Período - {label}",
        'period': label,
        'days_with_data': days,
        'is_empty': totals.is_empty,
        'summary': summary,
        'daily_breakdown': rows,
        'totals_row': totals_row,
        'daily_goals': daily_goals.as_payload(),
        'cac': _money(totals.cost_per_acquisition),
    }

