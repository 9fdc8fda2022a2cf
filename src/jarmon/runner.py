"""Daily report run: fetch, record, chart, deliver."""

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import httpx

from .api_client import fetch_jar_data
from .charts import generate_chart, generate_history_chart
from .env import Config
from .history import DailyRecord, add_record, get_previous_record, load, save
from .reports import format_console, format_telegram, generate_report
from .schedule import calculate_next_run, get_timezone
from .telegram import send_report
from . import log


# Pause after each scheduled run so a fast run cannot fire twice in a minute
POST_RUN_PAUSE_S = 60


def _write_chart(path: Path, png: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(png)
        log.debug(f"Wrote chart to {path}")
    except OSError as e:
        log.warn(f"Failed to write chart {path}: {e}")


async def run_report(
    cfg: Config,
    client: Optional[httpx.AsyncClient] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    Run one report cycle.

    Returns:
        Exit code (0 = report sent, 1 = nothing fetched or delivery failed)
    """
    log.info("Starting report generation...")

    tz = get_timezone(cfg.timezone)
    now = now or datetime.now(timezone.utc)
    local_now = now.astimezone(tz)
    today = local_now.strftime("%Y-%m-%d")

    history = load(cfg.history_path)

    async def fetch(jar):
        log.info(f"Fetching jar: {jar.name} ({jar.jar_id})")
        return jar, await fetch_jar_data(jar.jar_id, client=client)

    results = await asyncio.gather(*(fetch(jar) for jar in cfg.jars))

    # History updates are applied one by one after all fetches are done
    entries = []
    for jar, (ok, response, err) in results:
        if not ok:
            log.error(f"Error fetching {jar.name}: {err}")
            continue
        previous = get_previous_record(jar.jar_id, today, history)
        record = DailyRecord(date=today, amount=response.jar_amount, goal=response.jar_goal)
        history = add_record(jar.jar_id, jar.name, record, history, now=now)
        entries.append((jar, response, previous))

    if not entries:
        log.warn("No jar data available, skipping report")
        return 1

    saved, err = save(cfg.history_path, history)
    if saved:
        log.info("History saved")
    else:
        log.warn(err)

    report = generate_report(entries, local_now)
    log.info(f"Report generated:\n{format_console(report)}")

    chart_png = generate_chart(report.jars)
    log.info(f"Generated chart: {len(chart_png)} bytes")
    _write_chart(cfg.out_dir / "progress.png", chart_png)
    _write_chart(
        cfg.out_dir / "history.png",
        generate_history_chart(history, cfg.history_chart_days, now=now),
    )

    log.info("Sending to Telegram...")
    sent, err = await send_report(
        cfg.telegram_bot_token,
        cfg.telegram_channel_id,
        format_telegram(report),
        chart_png,
        client=client,
    )
    if sent:
        log.info("Report sent successfully!")
    else:
        log.error(f"Failed to send report: {err}")

    log.info("Report generation complete")
    return 0 if sent else 1


async def run(cfg: Config, run_now: bool) -> int:
    """Run once, or forever at the configured daily time."""
    log.info("Jar monitor starting...")
    log.info(f"Loaded {len(cfg.jars)} jar(s)")
    log.info(f"Schedule: {cfg.schedule_time} ({cfg.timezone})")

    if run_now:
        return await run_report(cfg)

    tz = get_timezone(cfg.timezone)
    while True:
        next_run = calculate_next_run(cfg.schedule_time, tz)
        delay = (next_run - datetime.now(timezone.utc)).total_seconds()
        if delay > 0:
            log.info(f"Next run scheduled for {next_run.astimezone(tz):%Y-%m-%d %H:%M %Z} (in {int(delay)}s)")
            await asyncio.sleep(delay)

        try:
            await run_report(cfg)
        except Exception as e:
            # Keep the daemon alive for the next scheduled day
            log.error(f"Report run failed: {e}")
        await asyncio.sleep(POST_RUN_PAUSE_S)
