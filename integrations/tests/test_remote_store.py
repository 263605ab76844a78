import json
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from integrations.services.remote_store import RemoteRecordStore, RemoteUnavailable


def make_client(**kwargs):
    options = {
        'url': 'https://example.supabase.co/',
        'api_key': 'secret',
        'daily_table': 'daily_records',
        'goals_table': 'goals',
        'page_size': 2,
    }
    options.update(kwargs)
    return RemoteRecordStore(**options)


def json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def test_client_init():
    client = make_client()

    assert client.url == 'https://example.supabase.co'
    assert client.session.headers['apikey'] == 'secret'
    assert client.session.headers['Authorization'] == 'Bearer secret'
    assert client.primary_key('daily_records') == 'date'
    assert client.primary_key('goals') == 'id'


def test_client_reads_settings(settings):
    settings.REMOTE_STORE = {
        'URL': 'https://configured.example',
        'API_KEY': 'k',
        'DAILY_TABLE': 'dias',
        'GOALS_TABLE': 'metas',
        'TIMEOUT': 3,
        'PAGE_SIZE': 50,
    }

    client = RemoteRecordStore()

    assert client.is_configured
    assert client.daily_table == 'dias'
    assert client.goals_table == 'metas'
    assert client.timeout == 3
    assert client.page_size == 50


def test_unconfigured_client_is_unavailable():
    client = make_client(url='')

    with pytest.raises(RemoteUnavailable) as exc_info:
        client.fetch_daily_records()

    assert exc_info.value.table == 'daily_records'


def test_fetch_all_pages_until_short_page():
    client = make_client()
    client.session = MagicMock()
    client.session.request.side_effect = [
        json_response([{'date': '2025-03-01'}, {'date': '2025-03-02'}]),
        json_response([{'date': '2025-03-03'}]),
    ]

    rows = client.fetch_daily_records()

    assert [row['date'] for row in rows] == ['2025-03-01', '2025-03-02', '2025-03-03']
    first, second = client.session.request.call_args_list
    assert first.args == ('GET', 'https://example.supabase.co/rest/v1/daily_records')
    assert first.kwargs['params'] == {
        'select': '*',
        'order': 'date.asc',
        'limit': 2,
        'offset': 0,
    }
    assert second.kwargs['params']['offset'] == 2


def test_transport_errors_become_remote_unavailable():
    client = make_client()
    client.session = MagicMock()
    client.session.request.side_effect = requests.exceptions.ConnectionError('no route')

    with pytest.raises(RemoteUnavailable):
        client.fetch_goals()


def test_http_errors_become_remote_unavailable():
    client = make_client()
    client.session = MagicMock()
    response = MagicMock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError('503 Server Error')
    client.session.request.return_value = response

    with pytest.raises(RemoteUnavailable):
        client.upsert_goals('daily', {})


@pytest.mark.parametrize('payload', [{'message': 'oops'}, None])
def test_unexpected_shape_is_remote_unavailable(payload):
    client = make_client()
    client.session = MagicMock()
    client.session.request.return_value = json_response(payload)

    with pytest.raises(RemoteUnavailable):
        client.fetch_goals()


def test_invalid_json_is_remote_unavailable():
    client = make_client()
    client.session = MagicMock()
    response = MagicMock()
    response.json.side_effect = ValueError('Expecting value')
    client.session.request.return_value = response

    with pytest.raises(RemoteUnavailable):
        client.fetch_daily_records()


@patch('integrations.services.remote_store.requests.Session')
def test_upsert_daily_record(mock_session_cls):
    client = make_client()
    session = mock_session_cls.return_value

    client.upsert_daily_record('2025-03-01', {'faturamento': Decimal('99.90')})

    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert method == 'POST'
    assert url == 'https://example.supabase.co/rest/v1/daily_records'
    assert kwargs['params'] == {'on_conflict': 'date'}
    assert kwargs['headers']['Prefer'] == 'resolution=merge-duplicates,return=minimal'
    assert json.loads(kwargs['data']) == {
        'date': '2025-03-01',
        'data': {'faturamento': '99.90'},
    }


@patch('integrations.services.remote_store.requests.Session')
def test_upsert_goals_keys_on_scope(mock_session_cls):
    client = make_client()
    session = mock_session_cls.return_value

    client.upsert_goals('monthly', {'cac': 50})

    kwargs = session.request.call_args.kwargs
    assert kwargs['params'] == {'on_conflict': 'id'}
    assert json.loads(kwargs['data']) == {'id': 'monthly', 'data': {'cac': 50}}
