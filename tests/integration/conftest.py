"""Fixtures for integration tests."""

import json

import httpx
import pytest

from tests.client.conftest import json_response


@pytest.fixture
def fake_upstream():
    """Mock transport answering both the jar API and the Telegram Bot API.

    ``state`` can be tweaked by tests: jar amounts by id (missing id = HTTP
    500), whether Telegram accepts photos, and every request seen.
    """
    state = {
        "jars": {
            "jarAlpha": {"jarAmount": 80_000, "jarGoal": 100_000},
            "jarBeta": {"jarAmount": 12_000},
        },
        "photo_ok": True,
        "requests": [],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        if request.url.host == "send.monobank.ua":
            jar_id = json.loads(request.content)["clientId"]
            body = state["jars"].get(jar_id)
            if body is None:
                return httpx.Response(500, text="internal error")
            return json_response(200, body)
        if request.url.path.endswith("sendPhoto") and not state["photo_ok"]:
            return json_response(400, {"ok": False, "description": "rejected"})
        return json_response(200, {"ok": True, "result": {}})

    state["client"] = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return state


def telegram_methods(state) -> list[str]:
    return [
        r.url.path.rsplit("/", 1)[-1]
        for r in state["requests"]
        if r.url.host == "api.telegram.org"
    ]
