#!/usr/bin/env python3

"""
Tests for the HTTP primitive and the TAP client
"""

import asyncio

import httpx
import pytest

from data_io.http import ERROR_BODY_LIMIT, HttpError, RequestTimeout, fetch_with_timeout
from data_io.tap import TapFormat, TapQueryRequest, build_tap_params, parse_tap_response, tap_query

ENDPOINT = 'https://tap.example.org/tap/sync'


class TestFetchWithTimeout:
    def test_returns_body_text_and_sends_user_agent(self, mock_client):
        seen = {}

        def handler(request):
            seen['request'] = request
            return httpx.Response(200, text="hello")

        text = asyncio.run(fetch_with_timeout(
            'https://api.example.org/q', params={'a': '1'}, client=mock_client(handler),
        ))

        assert text == "hello"
        assert seen['request'].url.params['a'] == '1'
        assert seen['request'].headers['User-Agent'].startswith('astroquery-mcp/')

    def test_non_2xx_raises_with_status_in_message(self, mock_client):
        client = mock_client(lambda request: httpx.Response(503, text="Service Unavailable"))

        with pytest.raises(HttpError) as excinfo:
            asyncio.run(fetch_with_timeout('https://api.example.org/q', client=client))

        assert excinfo.value.status_code == 503
        assert str(excinfo.value) == "Request failed (503): Service Unavailable"

    def test_error_body_is_truncated(self, mock_client):
        client = mock_client(lambda request: httpx.Response(400, text="x" * 2000))

        with pytest.raises(HttpError) as excinfo:
            asyncio.run(fetch_with_timeout('https://api.example.org/q', client=client))

        assert len(excinfo.value.body) == ERROR_BODY_LIMIT

    def test_slow_response_raises_request_timeout(self, mock_client):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, text="too late")

        with pytest.raises(RequestTimeout) as excinfo:
            asyncio.run(fetch_with_timeout(
                'https://api.example.org/slow', timeout=0.05, client=mock_client(handler),
            ))

        assert excinfo.value.timeout == 0.05
        assert "timed out" in str(excinfo.value)
        assert isinstance(excinfo.value, TimeoutError)

    def test_transport_timeout_maps_to_request_timeout(self, mock_client):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(RequestTimeout):
            asyncio.run(fetch_with_timeout('https://api.example.org/q', client=mock_client(handler)))

    def test_connection_errors_propagate(self, mock_client):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(httpx.ConnectError):
            asyncio.run(fetch_with_timeout('https://api.example.org/q', client=mock_client(handler)))


class TestTapRequest:
    def test_params_without_maxrec(self):
        params = build_tap_params(TapQueryRequest(endpoint=ENDPOINT, adql="SELECT 1"))
        assert params == {'REQUEST': 'doQuery', 'LANG': 'ADQL', 'FORMAT': 'json', 'QUERY': "SELECT 1"}

    def test_params_with_maxrec(self):
        params = build_tap_params(TapQueryRequest(endpoint=ENDPOINT, adql="SELECT 1", format='csv', maxrec=10))
        assert params['FORMAT'] == 'csv'
        assert params['MAXREC'] == '10'

    def test_string_format_is_coerced(self):
        assert TapQueryRequest(endpoint=ENDPOINT, adql="x", format='text').format is TapFormat.TEXT

    def test_unknown_format_is_rejected(self):
        with pytest.raises(ValueError):
            TapQueryRequest(endpoint=ENDPOINT, adql="x", format='fits')


class TestTapQuery:
    def test_posts_form_and_parses_json(self, mock_client, form_fields, tap_json):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, text=tap_json(['ra', 'dec'], [[10.5, 20.1]]))

        request = TapQueryRequest(endpoint=ENDPOINT, adql="SELECT TOP 1 ra, dec FROM basic", maxrec=1)
        result = asyncio.run(tap_query(request, client=mock_client(handler)))

        assert [dict(row) for row in result.rows] == [{'ra': 10.5, 'dec': 20.1}]
        sent = captured[0]
        assert sent.method == 'POST'
        assert str(sent.url) == ENDPOINT
        assert sent.headers['Content-Type'] == 'application/x-www-form-urlencoded'
        assert form_fields(sent) == {
            'REQUEST': 'doQuery', 'LANG': 'ADQL', 'FORMAT': 'json',
            'QUERY': "SELECT TOP 1 ra, dec FROM basic", 'MAXREC': '1',
        }

    def test_text_format_uses_pipe_parser(self, mock_client):
        client = mock_client(lambda request: httpx.Response(200, text="name|ra\n----|--\nCrab|83.63\n"))
        request = TapQueryRequest(endpoint=ENDPOINT, adql="SELECT name, ra FROM xmmmaster", format=TapFormat.TEXT)

        result = asyncio.run(tap_query(request, client=client))

        assert [dict(row) for row in result.rows] == [{'name': 'Crab', 'ra': 83.63}]

    def test_votable_format_returns_raw_document(self, mock_client):
        client = mock_client(lambda request: httpx.Response(200, text="<VOTABLE/>"))
        request = TapQueryRequest(endpoint=ENDPOINT, adql="SELECT 1", format=TapFormat.VOTABLE)

        result = asyncio.run(tap_query(request, client=client))

        assert [dict(row) for row in result.rows] == [{'votable': "<VOTABLE/>"}]

    def test_non_2xx_raises_http_error(self, mock_client):
        client = mock_client(lambda request: httpx.Response(500, text="ERROR: table not found"))
        request = TapQueryRequest(endpoint=ENDPOINT, adql="SELECT * FROM nowhere")

        with pytest.raises(HttpError, match=r"\(500\)"):
            asyncio.run(tap_query(request, client=client))

    def test_unparseable_body_is_empty_result(self, mock_client):
        client = mock_client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        request = TapQueryRequest(endpoint=ENDPOINT, adql="SELECT 1")

        assert asyncio.run(tap_query(request, client=client)).is_empty


def test_parse_tap_response_dispatches_on_format():
    assert [dict(r) for r in parse_tap_response("a,b\n1,2", 'csv').rows] == [{'a': '1', 'b': '2'}]
    assert [dict(r) for r in parse_tap_response("a|b\n1|2", TapFormat.TEXT).rows] == [{'a': 1, 'b': 2}]
