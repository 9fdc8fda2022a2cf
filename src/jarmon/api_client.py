"""Client for the public monobank jar endpoint.

The endpoint is the one the public jar page calls from the browser; it takes
the jar's public id and returns its current balance and goal in kopiykas.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .env import get_config
from .retry import with_retries
from . import log


API_URL = "https://send.monobank.ua/api/handler"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class FetchError(Exception):
    """Upstream answered with a non-200 status."""


@dataclass(frozen=True)
class JarResponse:
    """Balance information returned for one jar."""

    jar_amount: int
    jar_goal: Optional[int] = None
    name: Optional[str] = None
    jar_status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JarResponse":
        goal = data.get("jarGoal")
        return cls(
            jar_amount=int(data["jarAmount"]),
            jar_goal=int(goal) if goal is not None else None,
            name=data.get("name"),
            jar_status=data.get("jarStatus"),
        )


def _request_body(jar_id: str) -> dict[str, str]:
    return {"c": "hello", "clientId": jar_id, "referer": "", "Pc": "hello"}


async def fetch_jar_data(
    jar_id: str,
    client: Optional[httpx.AsyncClient] = None,
) -> tuple[bool, Optional[JarResponse], Optional[str]]:
    """
    Fetch the current balance of a jar, retrying with exponential backoff.

    Args:
        jar_id: Public jar id (the part after /jar/ in the jar link)
        client: Optional shared client; a temporary one is created otherwise

    Returns:
        (success, response, error message)
    """
    cfg = get_config()

    async def attempt(http: httpx.AsyncClient) -> JarResponse:
        response = await http.post(
            API_URL,
            json=_request_body(jar_id),
            headers={"User-Agent": USER_AGENT},
        )
        if response.status_code != 200:
            raise FetchError(f"HTTP {response.status_code}: {response.text}")
        return JarResponse.from_dict(response.json())

    async def run(http: httpx.AsyncClient):
        return await with_retries(
            lambda: attempt(http),
            attempts=cfg.fetch_retry_attempts,
            backoff_s=cfg.fetch_retry_backoff_s,
            name=f"fetch {jar_id}",
        )

    if client is None:
        async with httpx.AsyncClient(timeout=cfg.fetch_timeout_s) as http:
            ok, result, exc = await run(http)
    else:
        ok, result, exc = await run(client)

    if ok:
        log.debug(f"Jar {jar_id}: amount={result.jar_amount} goal={result.jar_goal}")
        return (True, result, None)

    if isinstance(exc, FetchError):
        return (False, None, str(exc))
    return (False, None, f"Request failed: {exc}")
