"""Shared pytest fixtures: an httpx client whose network is a handler function."""

import json
from urllib.parse import parse_qs

import httpx
import pytest


@pytest.fixture
def mock_client():
    """Build an AsyncClient that answers every request with handler(request)."""
    def factory(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return factory


@pytest.fixture
def form_fields():
    """Decode the url-encoded form body of a captured request."""
    def decode(request: httpx.Request):
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
    return decode


@pytest.fixture
def tap_json():
    """Encode columns and rows as a TAP-JSON response body."""
    def encode(columns, rows):
        return json.dumps({'metadata': [{'name': c} for c in columns], 'data': rows})
    return encode
