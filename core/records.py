"""
Record schemas for the daily dashboard.

DailyRecord, DailyGoalSet and MonthlyGoalSet are plain dataclasses.
Attribute names are Python-side; the wire keys (local JSON and remote payload)
keep the names the dashboard has always stored, so old data keeps decoding.

Every record read from either store goes through ``from_payload`` which
fills defaults for absent keys and degrades invalid values to zero/empty.
"""

import json
import logging
import math
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

logger = logging.getLogger(__name__)

DAILY_KEY_PREFIX = 'daily_data_'
DAILY_GOALS_KEY = 'daily_goals'
MONTHLY_GOALS_KEY = 'monthly_goals'

SCOPE_DAILY = 'daily'
SCOPE_MONTHLY = 'monthly'
GOAL_SCOPES = (SCOPE_DAILY, SCOPE_MONTHLY)

MAX_MAGNITUDE = 15


class MalformedRecord(ValueError):
    """A stored key or record could not be interpreted."""


def parse_day(value: Union[date, str]) -> date:
    """Accept a date, a datetime or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise MalformedRecord(f"Invalid ISO date: {value!r}")


def daily_key(day: Union[date, str]) -> str:
    return f"{DAILY_KEY_PREFIX}{parse_day(day).isoformat()}"


def goals_key(scope: str) -> str:
    if scope == SCOPE_DAILY:
        return DAILY_GOALS_KEY
    if scope == SCOPE_MONTHLY:
        return MONTHLY_GOALS_KEY
    raise ValueError(f"Unknown goal scope: {scope!r}")


def to_decimal(value) -> Optional[Decimal]:
    """
    Coerce a stored value to a finite, non-negative Decimal.

    Returns None when the value cannot be used as a number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite() or number < 0:
        return None
    # Beyond any real count or amount; would not survive JSON encoding
    if number.adjusted() > MAX_MAGNITUDE:
        return None
    return number


def _count(wire):
    return field(default=0, metadata={'wire': wire, 'kind': 'int'})


def _money(wire):
    return field(default=Decimal('0'), metadata={'wire': wire, 'kind': 'decimal'})


def _text(wire):
    return field(default='', metadata={'wire': wire, 'kind': 'text'})


class RecordMixin:
    """Decode/encode behaviour shared by the record dataclasses."""

    @classmethod
    def wire_fields(cls):
        return [(f.name, f.metadata['wire'], f.metadata['kind']) for f in fields(cls)]

    @classmethod
    def numeric_fields(cls):
        return [name for name, _, kind in cls.wire_fields() if kind != 'text']

    @classmethod
    def wire_name(cls, attr: str) -> str:
        for name, wire, _ in cls.wire_fields():
            if name == attr:
                return wire
        raise ValueError(f"{cls.__name__} has no field {attr!r}")

    @classmethod
    def attr_name(cls, key: str) -> str:
        """Resolve either a wire key or an attribute name to the attribute name."""
        for name, wire, _ in cls.wire_fields():
            if key in (name, wire):
                return name
        raise ValueError(f"{cls.__name__} has no field {key!r}")

    @classmethod
    def from_payload(cls, payload, key: str = ''):
        """
        Decode a stored payload, filling defaults.

        Never raises: a payload that isn't a mapping decodes to the
        all-defaults record, and every invalid field degrades on its own.
        Wire keys take precedence over attribute names when both are present.
        """
        label = key or cls.__name__
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError:
                logger.warning(f"Stored payload for {label} is not valid JSON")
                return cls()
        if not isinstance(payload, dict):
            if payload is not None:
                logger.warning(f"Discarding non-mapping payload for {label}")
            return cls()

        values = {}
        degraded = []
        for name, wire, kind in cls.wire_fields():
            if wire in payload:
                raw = payload[wire]
            elif name in payload:
                raw = payload[name]
            else:
                continue

            if kind == 'text':
                if isinstance(raw, str):
                    values[name] = raw
                elif raw is not None:
                    degraded.append(wire)
                continue

            number = to_decimal(raw)
            if number is None:
                if raw is not None:
                    degraded.append(wire)
                continue
            values[name] = int(number) if kind == 'int' else number

        if degraded:
            logger.warning(
                f"Degraded invalid fields to defaults for {label}: {', '.join(degraded)}"
            )
        return cls(**values)

    def as_payload(self) -> dict:
        """Field-complete wire dict."""
        return {wire: getattr(self, name) for name, wire, _ in self.wire_fields()}

    def replace(self, **changes):
        """Copy with ``changes`` applied, re-validated through the decoder."""
        data = {name: getattr(self, name) for name, _, _ in self.wire_fields()}
        data.update(changes)
        return type(self).from_payload(data)


@dataclass
class DailyRecord(RecordMixin):
    """One calendar day of clinic activity."""

    total_patients: int = _count('totalPacientes')
    cancelled: int = _count('desmarcaram')
    new_patients: int = _count('novos')
    returning: int = _count('recorrentes')
    revenue: Decimal = _money('faturamento')
    procedures: str = _text('procedimentos')
    leads_total: int = _count('leadsTotal')
    leads_campaign: int = _count('leadsCampanha')
    leads_organic: int = _count('leadsOrganico')
    leads_instagram: int = _count('leadsInstagram')
    followers: int = _count('seguidores')
    conversations_started: int = _count('conversasIniciadas')
    conversations_answered: int = _count('conversasRespondidas')
    appointments: int = _count('agendamentos')
    ad_spend: Decimal = _money('gastoTrafego')

    @property
    def is_empty(self) -> bool:
        """No numeric activity and no procedures note."""
        if self.procedures.strip():
            return False
        return not any(getattr(self, name) for name in self.numeric_fields())


@dataclass
class DailyGoalSet(RecordMixin):
    total_patients: int = _count('totalPacientes')
    revenue: Decimal = _money('faturamento')
    leads_total: int = _count('leadsTotal')
    conversations_started: int = _count('conversasIniciadas')
    conversations_answered: int = _count('conversasRespondidas')
    appointments: int = _count('agendamentos')
    followers: int = _count('seguidores')


@dataclass
class MonthlyGoalSet(RecordMixin):
    patients: int = _count('pacientes')
    revenue: Decimal = _money('faturamento')
    leads: int = _count('leads')
    appointments: int = _count('agendamentos')
    followers: int = _count('seguidores')
    cac_ceiling: Decimal = _money('cac')


GOAL_SET_TYPES = {
    SCOPE_DAILY: DailyGoalSet,
    SCOPE_MONTHLY: MonthlyGoalSet,
}


def goal_set_type(scope: str):
    try:
        return GOAL_SET_TYPES[scope]
    except KeyError:
        raise ValueError(f"Unknown goal scope: {scope!r}")
