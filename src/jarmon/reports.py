"""Daily report generation.

A report summarizes every successfully fetched jar: current amount, goal,
progress and the change since the previous stored day. It is rendered as
plain text for the log and as MarkdownV2 for Telegram.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .api_client import JarResponse
from .env import JarConfig
from .formatters import format_amount, format_change, progress_bar
from .history import DailyRecord


@dataclass
class JarReport:
    """Report line for one jar."""

    name: str
    jar_id: str
    current_amount: int
    goal: Optional[int]
    daily_change: int
    progress_percent: Optional[float]


@dataclass
class DailyReport:
    """Report for all jars on one day."""

    date: str
    jars: list[JarReport] = field(default_factory=list)
    total_amount: int = 0
    total_daily_change: int = 0


def daily_change(current: int, previous: Optional[DailyRecord]) -> int:
    """Change since the previous record; on the first run all of it is new."""
    if previous is None:
        return current
    return current - previous.amount


def progress_percent(current: int, goal: Optional[int]) -> Optional[float]:
    if goal is None:
        return None
    if goal <= 0:
        return 0.0
    return current / goal * 100.0


def generate_report(
    entries: list[tuple[JarConfig, JarResponse, Optional[DailyRecord]]],
    when: datetime,
) -> DailyReport:
    """Build the daily report.

    Args:
        entries: (jar config, fetched response, previous record) per jar
        when: Local time of the report

    Returns:
        DailyReport with per-jar lines and totals
    """
    jars = [
        JarReport(
            name=jar.name,
            jar_id=jar.jar_id,
            current_amount=response.jar_amount,
            goal=response.jar_goal,
            daily_change=daily_change(response.jar_amount, previous),
            progress_percent=progress_percent(response.jar_amount, response.jar_goal),
        )
        for jar, response, previous in entries
    ]

    return DailyReport(
        date=when.strftime("%d.%m.%Y"),
        jars=jars,
        total_amount=sum(j.current_amount for j in jars),
        total_daily_change=sum(j.daily_change for j in jars),
    )


def format_console(report: DailyReport) -> str:
    """Plain text report for the log."""
    lines = [f"=== Report for {report.date} ===", ""]

    for jar in report.jars:
        lines.append(f"📦 {jar.name}")
        lines.append(f"   Collected: {format_amount(jar.current_amount)}")
        if jar.goal is not None:
            lines.append(f"   Goal: {format_amount(jar.goal)}")
            if jar.progress_percent is not None:
                pct = jar.progress_percent
                lines.append(f"   Progress: [{progress_bar(pct)}] {pct:.1f}%")
        lines.append(f"   Last 24h: {format_change(jar.daily_change)}")
        lines.append("")

    lines.append(f"💰 Total: {format_amount(report.total_amount)}")
    lines.append(f"📈 Total last 24h: {format_change(report.total_daily_change)}")
    return "\n".join(lines) + "\n"


# Characters that must be escaped everywhere in Telegram MarkdownV2 text
MARKDOWN_V2_SPECIAL = "\\_*[]()~`>#+-=|{}.!"


def escape_markdown_v2(text: str) -> str:
    return "".join(f"\\{c}" if c in MARKDOWN_V2_SPECIAL else c for c in text)


def format_telegram(report: DailyReport) -> str:
    """MarkdownV2 report used as the Telegram photo caption."""
    esc = escape_markdown_v2
    lines = [f"*Report for {esc(report.date)}*", ""]

    for jar in report.jars:
        lines.append(f"📦 *{esc(jar.name)}*")
        lines.append(f"Collected: `{esc(format_amount(jar.current_amount))}`")
        if jar.goal is not None:
            lines.append(f"Goal: `{esc(format_amount(jar.goal))}`")
            if jar.progress_percent is not None:
                pct = jar.progress_percent
                lines.append(f"Progress: `\\[{progress_bar(pct)}\\]` {esc(f'{pct:.1f}')}%")
        lines.append(f"Last 24h: `{esc(format_change(jar.daily_change))}`")
        lines.append("")

    lines.append(f"💰 *Total:* `{esc(format_amount(report.total_amount))}`")
    lines.append(f"📈 *Last 24h:* `{esc(format_change(report.total_daily_change))}`")
    return "\n".join(lines) + "\n"
