from unittest import mock

import pytest
import requests

from ledger_audit.coda import CodaClient, column_query
from ledger_audit.exceptions import ConfigError, FetchError


def make_response(status_code=200, payload=None, headers=None, text=''):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    response.headers = headers or {}
    response.text = text
    return response


@pytest.fixture
def session():
    s = mock.Mock()
    s.headers = {}
    return s


@pytest.fixture
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr('ledger_audit.coda.time.sleep', sleeps.append)
    return sleeps


def make_client(session, max_retries=3):
    return CodaClient('secret', base_url='https://coda.test/apis/v1/', max_retries=max_retries,
                      retry_delay=1.0, session=session)


class TestCodaClient:
    """Test suite for the Coda row listing client"""

    def test_requires_api_key(self, session):
        with pytest.raises(ConfigError):
            CodaClient('', session=session)

    def test_sets_auth_header(self, session):
        make_client(session)
        assert session.headers['Authorization'] == 'Bearer secret'

    def test_from_settings(self, settings, session):
        client = CodaClient.from_settings(settings, session=session)
        assert client.base_url == 'https://coda.io/apis/v1'
        assert client.max_retries == settings.coda.max_retries

    def test_list_rows_follows_pages(self, session):
        session.get.side_effect = [
            make_response(payload={'items': [{'id': 'r1'}], 'nextPageToken': 'tok'}),
            make_response(payload={'items': [{'id': 'r2'}]}),
        ]
        client = make_client(session)

        rows = client.list_table_rows('doc', 'table', query='c-1:"x"', value_format='rich')

        assert [r['id'] for r in rows] == ['r1', 'r2']
        first_call, second_call = session.get.call_args_list
        assert first_call.args[0] == 'https://coda.test/apis/v1/docs/doc/tables/table/rows'
        assert first_call.kwargs['params'] == {'query': 'c-1:"x"', 'valueFormat': 'rich'}
        assert second_call.kwargs['params']['pageToken'] == 'tok'

    def test_retries_server_errors(self, session, no_sleep):
        session.get.side_effect = [
            make_response(status_code=503),
            make_response(status_code=500),
            make_response(payload={'items': [{'id': 'r1'}]}),
        ]
        client = make_client(session)

        rows = client.list_table_rows('doc', 'table')

        assert rows == [{'id': 'r1'}]
        assert no_sleep == [1.0, 2.0]

    def test_retries_network_errors(self, session, no_sleep):
        session.get.side_effect = [
            requests.ConnectionError("reset"),
            make_response(payload={'items': []}),
        ]
        assert make_client(session).list_table_rows('doc', 'table') == []
        assert len(no_sleep) == 1

    def test_respects_retry_after(self, session, no_sleep):
        session.get.side_effect = [
            make_response(status_code=429, headers={'Retry-After': '7'}),
            make_response(payload={'items': []}),
        ]
        make_client(session).list_table_rows('doc', 'table')
        assert no_sleep == [7.0]

    def test_gives_up_after_retries(self, session, no_sleep):
        session.get.return_value = make_response(status_code=502)
        with pytest.raises(FetchError):
            make_client(session, max_retries=2).list_table_rows('doc', 'table')
        assert session.get.call_count == 3

    def test_network_failure_exhausted(self, session, no_sleep):
        session.get.side_effect = requests.Timeout("slow")
        with pytest.raises(FetchError, match="Unable to reach Coda"):
            make_client(session, max_retries=1).list_table_rows('doc', 'table')

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    def test_client_errors_not_retried(self, session, no_sleep, status):
        session.get.return_value = make_response(status_code=status, text='nope')
        with pytest.raises(FetchError):
            make_client(session).list_table_rows('doc', 'table')
        assert session.get.call_count == 1
        assert no_sleep == []


def test_column_query():
    assert column_query('c-1', 'Checking') == 'c-1:"Checking"'
    assert column_query('c-1', 'say "hi"') == 'c-1:"say \\"hi\\""'
