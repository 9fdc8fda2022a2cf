"""Telegram Bot API delivery of the daily report."""

from typing import Any, Optional

import httpx

from . import log


API_BASE = "https://api.telegram.org"
TIMEOUT_S = 30.0


def _method_url(bot_token: str, method: str) -> str:
    return f"{API_BASE}/bot{bot_token}/{method}"


def _result(response: httpx.Response) -> tuple[bool, Optional[str]]:
    """Map a Bot API response to (ok, error)."""
    try:
        body: Any = response.json()
    except ValueError:
        return (False, f"Telegram API error: HTTP {response.status_code}")
    if not isinstance(body, dict):
        return (False, f"Telegram API error: HTTP {response.status_code}")

    if response.status_code == 200 and body.get("ok"):
        return (True, None)
    description = body.get("description") or f"HTTP {response.status_code}"
    return (False, f"Telegram API error: {description}")


async def send_message(
    bot_token: str,
    chat_id: str,
    text: str,
    client: Optional[httpx.AsyncClient] = None,
) -> tuple[bool, Optional[str]]:
    """Send a MarkdownV2 text message."""
    payload = {"chat_id": chat_id, "text": text, "parse_mode": "MarkdownV2"}
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=TIMEOUT_S) as http:
                response = await http.post(_method_url(bot_token, "sendMessage"), json=payload)
        else:
            response = await client.post(_method_url(bot_token, "sendMessage"), json=payload)
    except httpx.HTTPError as e:
        return (False, f"Failed to send message: {e}")
    return _result(response)


async def send_photo(
    bot_token: str,
    chat_id: str,
    png: bytes,
    caption: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> tuple[bool, Optional[str]]:
    """Upload a PNG, optionally with a MarkdownV2 caption."""
    data = {"chat_id": chat_id}
    if caption is not None:
        data["caption"] = caption
        data["parse_mode"] = "MarkdownV2"
    files = {"photo": ("chart.png", png, "image/png")}
    url = _method_url(bot_token, "sendPhoto")

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=TIMEOUT_S) as http:
                response = await http.post(url, data=data, files=files)
        else:
            response = await client.post(url, data=data, files=files)
    except httpx.HTTPError as e:
        return (False, f"Failed to send photo: {e}")
    return _result(response)


async def send_report(
    bot_token: str,
    chat_id: str,
    text: str,
    png: bytes,
    client: Optional[httpx.AsyncClient] = None,
) -> tuple[bool, Optional[str]]:
    """Send the chart with the report as caption, or the text alone if that fails."""
    ok, err = await send_photo(bot_token, chat_id, png, caption=text, client=client)
    if ok:
        return (True, None)

    log.warn(f"Failed to send photo ({err}), sending text only")
    return await send_message(bot_token, chat_id, text, client=client)
