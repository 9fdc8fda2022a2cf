"""SVG chart generation and PNG rasterization.

Charts are built as plain SVG strings with explicit pixel layout, then
painted onto a matplotlib Agg canvas to produce the PNG that is uploaded
to Telegram. Two chart types exist:

- a line chart of daily balances per jar (history)
- a stacked progress bar per jar showing yesterday's progress and today's
  gain towards the goal
"""

import html
import io
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for server-side rendering
import matplotlib.pyplot as plt
from matplotlib.lines import Line2D
from matplotlib.patches import Circle, FancyBboxPatch, PathPatch, Rectangle
from matplotlib.path import Path as MplPath

from .formatters import format_amount_label, format_date_label, format_delta_label
from .history import HistoryData, get_recent_records
from .reports import JarReport
from . import log


# Series colors, assigned round-robin by series index
PALETTE = ("#4CAF50", "#2196F3", "#FF9800", "#E91E63", "#9C27B0", "#00BCD4")

# Darker shade of each palette color for the "previous" part of a progress bar
DARK_SHADES = (
    ("#4CAF50", "#2E7D32"),
    ("#2196F3", "#1565C0"),
    ("#FF9800", "#E65100"),
    ("#E91E63", "#AD1457"),
    ("#9C27B0", "#6A1B9A"),
    ("#00BCD4", "#00838F"),
)
FALLBACK_DARK = "#444466"

BACKGROUND = "#1a1a2e"
GRID_COLOR = "#333355"
AXIS_TEXT = "#888888"
POSITIVE_COLOR = "#4CAF50"
NEGATIVE_COLOR = "#F44336"
FONT = "Arial"

NO_DATA_LABEL = "No data"

# Line chart layout
LINE_MARGIN = {"left": 70, "right": 20, "top": 30, "bottom": 60}
GRID_LINES = 5
MAX_DATE_LABELS = 7
LEGEND_Y = 15
LEGEND_SPACING = 120
AMOUNT_HEADROOM = 1.1

# Progress chart layout
BAR_HEIGHT = 32
BAR_SPACING = 20
BAR_MARGIN = {"left": 20, "right": 20, "top": 25, "bottom": 15}
BAR_LABEL_SPACE = 180
PROGRESS_CHART_WIDTH = 800

RASTER_DPI = 100


@dataclass
class ChartSeries:
    """Daily amounts of one jar for the line chart."""

    name: str
    points: list[tuple[date, int]] = field(default_factory=list)
    color: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return len(self.points) == 0


@dataclass
class ProgressBarData:
    """One progress bar: current amount, goal and today's change."""

    name: str
    current: int
    goal: int
    delta: int


def series_color(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def dark_shade(color: str) -> str:
    """Darker pair of a palette color, or a neutral gray for other colors."""
    for bright, dark in DARK_SHADES:
        if bright.lower() == color.lower():
            return dark
    return FALLBACK_DARK


# =============================================================================
# SVG building blocks
# =============================================================================


def _svg_open(width: int, height: int) -> str:
    return f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}">'


def _svg_rect(x, y, w, h, fill, rx=0) -> str:
    rx_attr = f' rx="{rx}"' if rx else ""
    return f'  <rect x="{x}" y="{y}" width="{w}" height="{h}" fill="{fill}"{rx_attr}/>'


def _svg_background() -> str:
    return f'  <rect width="100%" height="100%" fill="{BACKGROUND}"/>'


def _svg_text(x, y, text, fill, size, anchor="start", bold=False) -> str:
    weight = ' font-weight="bold"' if bold else ""
    anchor_attr = f' text-anchor="{anchor}"' if anchor != "start" else ""
    return (
        f'  <text x="{x}" y="{y}" fill="{fill}" font-family="{FONT}" '
        f'font-size="{size}"{anchor_attr}{weight}>{html.escape(str(text))}</text>'
    )


def _svg_line(x1, y1, x2, y2, stroke, stroke_width=1) -> str:
    return (
        f'  <line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" '
        f'stroke="{stroke}" stroke-width="{stroke_width}"/>'
    )


def _svg_path(d: str, stroke: str, stroke_width=2) -> str:
    return f'  <path d="{d}" fill="none" stroke="{stroke}" stroke-width="{stroke_width}"/>'


def _svg_circle(cx, cy, r, fill) -> str:
    return f'  <circle cx="{cx}" cy="{cy}" r="{r}" fill="{fill}"/>'


def render_placeholder_svg(width: int, height: int) -> str:
    """Background with a centered "No data" label."""
    return "\n".join([
        _svg_open(width, height),
        _svg_background(),
        _svg_text("50%", "50%", NO_DATA_LABEL, "#ffffff", 16, anchor="middle"),
        "</svg>",
    ])


# =============================================================================
# Line chart
# =============================================================================


def render_line_chart_svg(series: list[ChartSeries], width: int, height: int) -> str:
    """Render daily balances of one or more jars as an SVG line chart.

    The amount axis starts at zero and leaves 10% headroom above the
    largest amount. X labels are thinned so that roughly seven dates are
    shown whatever the number of days.
    """
    if not series or all(s.is_empty for s in series):
        return render_placeholder_svg(width, height)

    m = LINE_MARGIN
    chart_width = width - m["left"] - m["right"]
    chart_height = height - m["top"] - m["bottom"]

    all_points = [p for s in series for p in s.points]
    all_dates = sorted({d for d, _ in all_points})
    min_date, max_date = all_dates[0], all_dates[-1]
    min_amount = 0
    max_amount = int(max(a for _, a in all_points) * AMOUNT_HEADROOM)

    date_range = max(float((max_date - min_date).days), 1.0)
    amount_range = max(float(max_amount - min_amount), 1.0)

    def to_x(d: date) -> int:
        days = (d - min_date).days
        return m["left"] + int(days / date_range * chart_width)

    def to_y(amount: int) -> int:
        normalized = (amount - min_amount) / amount_range
        return m["top"] + chart_height - int(normalized * chart_height)

    parts = [_svg_open(width, height), _svg_background()]

    # Horizontal grid, top line is the headroom maximum
    for i in range(GRID_LINES + 1):
        y = m["top"] + (i * chart_height // GRID_LINES)
        amount = max_amount - int(i / GRID_LINES * (max_amount - min_amount))
        parts.append(_svg_line(m["left"], y, width - m["right"], y, GRID_COLOR))
        parts.append(_svg_text(
            m["left"] - 5, y + 4, format_amount_label(amount), AXIS_TEXT, 10, anchor="end"
        ))

    label_step = max(1, len(all_dates) // MAX_DATE_LABELS)
    label_y = height - m["bottom"] + 20
    for d in all_dates[::label_step]:
        parts.append(_svg_text(to_x(d), label_y, format_date_label(d), AXIS_TEXT, 10, anchor="middle"))

    for i, s in enumerate(series):
        if s.is_empty:
            continue
        color = s.color or series_color(i)
        points = sorted(s.points, key=lambda p: p[0])

        # A single point gets a marker but no line
        if len(points) > 1:
            d = "M " + " L ".join(f"{to_x(pd)},{to_y(pa)}" for pd, pa in points)
            parts.append(_svg_path(d, color))

        for pd, pa in points:
            parts.append(_svg_circle(to_x(pd), to_y(pa), 4, color))

    for i, s in enumerate(series):
        color = s.color or series_color(i)
        legend_x = m["left"] + i * LEGEND_SPACING
        parts.append(_svg_rect(legend_x, LEGEND_Y - 10, 12, 12, color))
        parts.append(_svg_text(legend_x + 16, LEGEND_Y, s.name, "#ffffff", 11))

    parts.append("</svg>")
    return "\n".join(parts)


# =============================================================================
# Progress bars
# =============================================================================


def _fraction(amount: int, goal: int) -> float:
    if goal <= 0:
        return 0.0
    return amount / goal


def render_progress_svg(bars: list[ProgressBarData], width: int, height: int) -> str:
    """Render one horizontal progress bar per jar.

    The filled part of each bar is split in two: what was collected before
    today in a darker shade, and today's gain in the bright series color.
    """
    if not bars:
        return render_placeholder_svg(width, height)

    m = BAR_MARGIN
    bar_width = width - m["left"] - m["right"] - BAR_LABEL_SPACE
    parts = [_svg_open(width, height), _svg_background()]

    for i, bar in enumerate(bars):
        y = m["top"] + i * (BAR_HEIGHT + BAR_SPACING)
        color = series_color(i)

        percent = _fraction(bar.current, bar.goal)
        previous_percent = _fraction(bar.current - bar.delta, bar.goal)
        filled_width = int(bar_width * min(1.0, max(0.0, percent)))
        previous_width = int(bar_width * min(1.0, max(0.0, previous_percent)))
        delta_width = filled_width - previous_width

        parts.append(_svg_text(m["left"], y - 5, bar.name, "#ffffff", 13, bold=True))
        parts.append(_svg_rect(m["left"], y, bar_width, BAR_HEIGHT, GRID_COLOR, rx=4))
        if previous_width > 0:
            parts.append(_svg_rect(m["left"], y, previous_width, BAR_HEIGHT, dark_shade(color), rx=4))
        if delta_width > 0:
            parts.append(_svg_rect(m["left"] + previous_width, y, delta_width, BAR_HEIGHT, color, rx=4))

        text_y = y + BAR_HEIGHT // 2 + 5
        pct_x = m["left"] + bar_width + 10
        amount_x = pct_x + 45
        delta_x = amount_x + 85
        delta_color = POSITIVE_COLOR if bar.delta >= 0 else NEGATIVE_COLOR

        parts.append(_svg_text(pct_x, text_y, f"{percent * 100:.0f}%", "#ffffff", 14, bold=True))
        parts.append(_svg_text(
            amount_x, text_y,
            f"{format_amount_label(bar.current)} / {format_amount_label(bar.goal)}",
            "#aaaaaa", 12,
        ))
        parts.append(_svg_text(delta_x, text_y, format_delta_label(bar.delta), delta_color, 12, bold=True))

    parts.append("</svg>")
    return "\n".join(parts)


# =============================================================================
# Rasterization
# =============================================================================

_PATH_TOKEN = re.compile(r"[A-Za-z]|-?\d+(?:\.\d+)?")


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _length(value: Optional[str], total: float, default: float = 0.0) -> float:
    """Parse an SVG length in pixels; percentages are relative to total."""
    if value is None or value == "":
        return default
    value = value.strip()
    if value.endswith("%"):
        return float(value[:-1]) / 100 * total
    if value.endswith("px"):
        value = value[:-2]
    return float(value)


def _points_to_size(px: float) -> float:
    return px * 72 / RASTER_DPI


def _parse_path(d: str) -> MplPath:
    """Parse absolute M/L path data into a matplotlib path."""
    vertices: list[tuple[float, float]] = []
    codes: list[int] = []
    command = None
    tokens = _PATH_TOKEN.findall(d)
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.isalpha():
            if token not in ("M", "L"):
                raise ValueError(f"Unsupported path command: {token}")
            command = token
            i += 1
            continue
        if command is None or i + 1 >= len(tokens):
            raise ValueError(f"Malformed path data: {d!r}")
        vertices.append((float(tokens[i]), float(tokens[i + 1])))
        codes.append(MplPath.MOVETO if command == "M" else MplPath.LINETO)
        # Coordinates following a moveto are implicit linetos
        if command == "M":
            command = "L"
        i += 2
    if not vertices:
        raise ValueError("Empty path data")
    return MplPath(vertices, codes)


def _draw_element(ax, elem: ET.Element, width: int, height: int) -> None:
    tag = _local(elem.tag)
    a = elem.attrib
    fill = a.get("fill", "#000000")
    stroke = a.get("stroke", "none")
    stroke_width = _points_to_size(float(a.get("stroke-width", "1")))

    if tag == "rect":
        x = _length(a.get("x"), width)
        y = _length(a.get("y"), height)
        w = _length(a.get("width"), width)
        h = _length(a.get("height"), height)
        rx = min(_length(a.get("rx"), width), w / 2, h / 2)
        if rx > 0:
            patch = FancyBboxPatch(
                (x, y), w, h,
                boxstyle=f"round,pad=0,rounding_size={rx}",
                facecolor=fill, edgecolor="none",
            )
        else:
            patch = Rectangle((x, y), w, h, facecolor=fill, edgecolor="none")
        ax.add_patch(patch)
    elif tag == "line":
        ax.add_line(Line2D(
            [_length(a.get("x1"), width), _length(a.get("x2"), width)],
            [_length(a.get("y1"), height), _length(a.get("y2"), height)],
            color=stroke, linewidth=stroke_width,
        ))
    elif tag == "circle":
        ax.add_patch(Circle(
            (_length(a.get("cx"), width), _length(a.get("cy"), height)),
            _length(a.get("r"), width),
            facecolor=fill, edgecolor="none",
        ))
    elif tag == "path":
        ax.add_patch(PathPatch(
            _parse_path(a.get("d", "")),
            facecolor=fill, edgecolor=stroke, linewidth=stroke_width,
        ))
    elif tag == "text":
        anchor = {"start": "left", "middle": "center", "end": "right"}
        ax.text(
            _length(a.get("x"), width),
            _length(a.get("y"), height),
            "".join(elem.itertext()),
            color=fill,
            fontsize=_points_to_size(float(a.get("font-size", "12"))),
            fontweight=a.get("font-weight", "normal"),
            fontfamily="sans-serif",
            ha=anchor.get(a.get("text-anchor", "start"), "left"),
            va="baseline",
            parse_math=False,
        )
    else:
        log.debug(f"Skipping unsupported SVG element <{tag}>")


def _render_png(width: int, height: int, draw) -> bytes:
    fig = plt.figure(figsize=(width / RASTER_DPI, height / RASTER_DPI), dpi=RASTER_DPI)
    try:
        fig.patch.set_alpha(0.0)
        ax = fig.add_axes((0, 0, 1, 1))
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)  # y grows downward like SVG
        ax.axis("off")
        draw(ax)

        buffer = io.BytesIO()
        fig.savefig(buffer, format="png", dpi=RASTER_DPI)
        return buffer.getvalue()
    finally:
        # Ensure figure is closed to prevent memory leaks
        plt.close(fig)


def render_error_png() -> bytes:
    """Fixed 400x100 dark red image used when a chart cannot be drawn."""
    def draw(ax):
        ax.add_patch(Rectangle((0, 0), 400, 100, facecolor="#8B0000", edgecolor="none"))
        ax.text(
            20, 50, "Error generating chart",
            color="#ffffff", fontsize=_points_to_size(16),
            fontfamily="sans-serif", va="baseline",
        )

    return _render_png(400, 100, draw)


def svg_to_png(svg: str) -> bytes:
    """Rasterize an SVG document at its natural pixel size.

    Only the elements the chart builders emit are understood (rect, line,
    circle, M/L paths and text). SVG that cannot be parsed produces the
    error image instead of raising.
    """
    try:
        root = ET.fromstring(svg)
        if _local(root.tag) != "svg":
            raise ValueError(f"Root element is <{_local(root.tag)}>, not <svg>")
        width = int(float(root.attrib["width"]))
        height = int(float(root.attrib["height"]))
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid canvas size {width}x{height}")

        def draw(ax):
            for elem in root:
                _draw_element(ax, elem, width, height)

        return _render_png(width, height, draw)
    except (ET.ParseError, KeyError, ValueError) as e:
        log.warn(f"Failed to rasterize chart SVG: {e}")
        return render_error_png()


# =============================================================================
# Report charts
# =============================================================================


def progress_chart_height(bar_count: int) -> int:
    return max(150, BAR_MARGIN["top"] + bar_count * (BAR_HEIGHT + BAR_SPACING) + BAR_MARGIN["bottom"])


def progress_bars_from_reports(reports: list[JarReport]) -> list[ProgressBarData]:
    """Progress bars for jars that have a positive goal."""
    return [
        ProgressBarData(
            name=r.name,
            current=r.current_amount,
            goal=r.goal,
            delta=r.daily_change,
        )
        for r in reports
        if r.goal is not None and r.goal > 0
    ]


def generate_chart(reports: list[JarReport]) -> bytes:
    """PNG progress chart for a day's report."""
    bars = progress_bars_from_reports(reports)
    height = progress_chart_height(len(bars))
    svg = render_progress_svg(bars, PROGRESS_CHART_WIDTH, height)
    return svg_to_png(svg)


def history_series(
    data: HistoryData,
    days: int,
    now: Optional[datetime] = None,
) -> list[ChartSeries]:
    """One line chart series per stored jar, limited to the last ``days``."""
    series = []
    for jar in data.jars:
        records = get_recent_records(jar.jar_id, days, data, now=now)
        points = [(date.fromisoformat(r.date), r.amount) for r in records]
        series.append(ChartSeries(name=jar.name, points=points))
    return series


def generate_history_chart(
    data: HistoryData,
    days: int,
    width: int = 800,
    height: int = 400,
    now: Optional[datetime] = None,
) -> bytes:
    """PNG line chart of recent balances for every stored jar."""
    svg = render_line_chart_svg(history_series(data, days, now=now), width, height)
    return svg_to_png(svg)
