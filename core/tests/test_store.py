import pytest

from core.models import StoredEntry
from core.store import LocalRecordStore, StoreClosed


def test_get_missing_key_returns_none(store):
    assert store.get('daily_data_2025-03-01') is None


def test_set_replaces_whole_payload(store):
    store.set('daily_goals', {'totalPacientes': 10, 'leadsTotal': 5})
    store.set('daily_goals', {'totalPacientes': 12})

    assert store.get('daily_goals') == {'totalPacientes': 12}
    assert StoredEntry.objects.filter(key='daily_goals').count() == 1


def test_local_writes_are_dirty_until_pushed(store):
    store.set('daily_data_2025-03-01', {'novos': 1})
    assert store.is_dirty('daily_data_2025-03-01')

    store.mark_pushed('daily_data_2025-03-01')

    entry = StoredEntry.objects.get(key='daily_data_2025-03-01')
    assert not entry.is_dirty
    assert entry.last_pushed_at is not None


def test_clean_write(store):
    store.set('monthly_goals', {'cac': 40}, dirty=False)
    assert not store.is_dirty('monthly_goals')


def test_key_listings_filter_by_prefix(store):
    store.set('daily_data_2025-03-02', {})
    store.set('daily_data_2025-03-01', {}, dirty=False)
    store.set('daily_goals', {})

    assert store.keys('daily_data_') == ['daily_data_2025-03-01', 'daily_data_2025-03-02']
    assert store.dirty_keys('daily_data_') == ['daily_data_2025-03-02']
    assert store.dirty_keys() == ['daily_data_2025-03-02', 'daily_goals']


def test_closed_store_refuses_access(db):
    local = LocalRecordStore()
    with pytest.raises(StoreClosed):
        local.get('daily_goals')

    with local:
        local.set('daily_goals', {'totalPacientes': 1})

    with pytest.raises(StoreClosed):
        local.set('daily_goals', {})


def test_entries_survive_a_new_store(db):
    with LocalRecordStore() as first:
        first.set('daily_goals', {'totalPacientes': 7})

    with LocalRecordStore() as second:
        assert second.get('daily_goals') == {'totalPacientes': 7}
