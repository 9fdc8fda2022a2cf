"""Fixtures for HTTP client tests."""

import json

import httpx
import pytest


def json_response(status_code: int, body) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body).encode(), headers={"content-type": "application/json"})


@pytest.fixture
def mock_client():
    """Build an AsyncClient whose requests are answered by a handler.

    The returned helper takes a handler ``request -> httpx.Response`` and
    gives back (client, requests) where requests collects every request.
    """

    def make(handler):
        requests = []

        def record(request):
            requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(record))
        return client, requests

    return make


@pytest.fixture
def no_backoff(configured_env):
    """Config with zero retry backoff."""
    return configured_env
