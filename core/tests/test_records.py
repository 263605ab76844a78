import logging
from datetime import date, datetime
from decimal import Decimal

import pytest

from core.records import (
    DailyGoalSet,
    DailyRecord,
    MalformedRecord,
    MonthlyGoalSet,
    daily_key,
    goal_set_type,
    goals_key,
    parse_day,
    to_decimal,
)


def test_parse_day_accepts_dates_datetimes_and_iso_strings():
    assert parse_day(date(2025, 3, 1)) == date(2025, 3, 1)
    assert parse_day(datetime(2025, 3, 1, 18, 30)) == date(2025, 3, 1)
    assert parse_day('2025-03-01') == date(2025, 3, 1)


@pytest.mark.parametrize('value', ['01/03/2025', '2025-02-30', '', None])
def test_parse_day_rejects_garbage(value):
    with pytest.raises(MalformedRecord):
        parse_day(value)


def test_storage_keys():
    assert daily_key('2025-03-01') == 'daily_data_2025-03-01'
    assert goals_key('daily') == 'daily_goals'
    assert goals_key('monthly') == 'monthly_goals'
    with pytest.raises(ValueError):
        goals_key('weekly')


def test_goal_set_type():
    assert goal_set_type('daily') is DailyGoalSet
    assert goal_set_type('monthly') is MonthlyGoalSet
    with pytest.raises(ValueError):
        goal_set_type('yearly')


@pytest.mark.parametrize('value,expected', [
    (3, Decimal('3')),
    ('12.50', Decimal('12.50')),
    (' 7 ', Decimal('7')),
    (0.5, Decimal('0.5')),
    ('abc', None),
    ('', None),
    (None, None),
    (True, None),
    (-4, None),
    (float('nan'), None),
    (float('inf'), None),
    ([1], None),
])
def test_to_decimal(value, expected):
    assert to_decimal(value) == expected


def test_from_payload_fills_defaults_for_absent_keys():
    record = DailyRecord.from_payload({'totalPacientes': 3})

    assert record.total_patients == 3
    assert record.revenue == Decimal('0')
    assert record.procedures == ''
    assert record.ad_spend == Decimal('0')


def test_from_payload_degrades_invalid_fields_only(caplog):
    payload = {
        'totalPacientes': 'muitos',
        'faturamento': '250.75',
        'agendamentos': -2,
        'procedimentos': 42,
        'seguidores': 10,
    }

    with caplog.at_level(logging.WARNING, logger='core.records'):
        record = DailyRecord.from_payload(payload, key='daily_data_2025-03-01')

    assert record.total_patients == 0
    assert record.revenue == Decimal('250.75')
    assert record.appointments == 0
    assert record.procedures == ''
    assert record.followers == 10
    assert 'daily_data_2025-03-01' in caplog.text
    assert 'totalPacientes' in caplog.text


@pytest.mark.parametrize('payload', [None, [], 'not json', '[1, 2]', 17])
def test_from_payload_non_mapping_gives_all_defaults(payload):
    assert DailyRecord.from_payload(payload) == DailyRecord()


def test_from_payload_accepts_json_text():
    record = DailyRecord.from_payload('{"novos": 2, "gastoTrafego": "80.5"}')

    assert record.new_patients == 2
    assert record.ad_spend == Decimal('80.5')


def test_from_payload_prefers_wire_key_over_attribute_name():
    record = DailyRecord.from_payload({'novos': 5, 'new_patients': 1})
    assert record.new_patients == 5

    record = DailyRecord.from_payload({'new_patients': 1})
    assert record.new_patients == 1


def test_from_payload_truncates_fractional_counts():
    assert DailyRecord.from_payload({'totalPacientes': '4.9'}).total_patients == 4


def test_as_payload_is_field_complete(daily_record):
    payload = daily_record.as_payload()

    assert set(payload) == {wire for _, wire, _ in DailyRecord.wire_fields()}
    assert payload['totalPacientes'] == 12
    assert payload['procedimentos'] == 'Limpeza, clareamento'
    assert DailyRecord.from_payload(payload) == daily_record


def test_is_empty():
    assert DailyRecord().is_empty
    assert DailyRecord(procedures='   ').is_empty
    assert not DailyRecord(procedures='Consulta').is_empty
    assert not DailyRecord(followers=10).is_empty
    assert not DailyRecord(ad_spend=Decimal('0.01')).is_empty


def test_replace_revalidates(daily_goals):
    updated = daily_goals.replace(revenue='3000', appointments='lots')

    assert updated.revenue == Decimal('3000')
    assert updated.appointments == 0
    assert updated.total_patients == daily_goals.total_patients


def test_wire_and_attr_names():
    assert MonthlyGoalSet.wire_name('cac_ceiling') == 'cac'
    assert MonthlyGoalSet.attr_name('cac') == 'cac_ceiling'
    assert MonthlyGoalSet.attr_name('cac_ceiling') == 'cac_ceiling'
    with pytest.raises(ValueError):
        MonthlyGoalSet.attr_name('roas')


@pytest.mark.parametrize('value', ['1e5000', 10 ** 20, '9' * 17])
def test_to_decimal_rejects_unstorable_magnitudes(value):
    assert to_decimal(value) is None


def test_oversized_field_degrades_alone():
    record = DailyRecord.from_payload({'totalPacientes': '1e5000', 'faturamento': '10'})

    assert record.total_patients == 0
    assert record.revenue == Decimal('10')
