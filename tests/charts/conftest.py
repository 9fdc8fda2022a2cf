"""Fixtures for chart tests."""

import xml.etree.ElementTree as ET
from datetime import date, timedelta

import pytest

from jarmon.charts import ChartSeries, ProgressBarData

SVG_NS = "{http://www.w3.org/2000/svg}"


def svg_elements(svg: str, tag: str) -> list[ET.Element]:
    """All elements with the given local tag name."""
    root = ET.fromstring(svg)
    return list(root.iter(f"{SVG_NS}{tag}"))


def svg_texts(svg: str) -> list[str]:
    return ["".join(t.itertext()) for t in svg_elements(svg, "text")]


@pytest.fixture
def base_date():
    """Fixed start date for deterministic charts."""
    return date(2024, 1, 1)


@pytest.fixture
def two_series(base_date):
    """Two jars over ten days."""
    alpha = ChartSeries(
        name="Alpha",
        points=[(base_date + timedelta(days=i), 10_000 * (i + 1)) for i in range(10)],
    )
    beta = ChartSeries(
        name="Beta",
        points=[(base_date + timedelta(days=i), 5_000 + 1_000 * i) for i in range(0, 10, 2)],
    )
    return [alpha, beta]


@pytest.fixture
def single_point_series(base_date):
    return [ChartSeries(name="Solo", points=[(base_date, 50_000)])]


@pytest.fixture
def progress_bars():
    """Three bars: partial progress, over goal, and a loss."""
    return [
        ProgressBarData(name="Alpha", current=800, goal=1000, delta=300),
        ProgressBarData(name="Beta", current=150_000, goal=100_000, delta=0),
        ProgressBarData(name="Gamma", current=40_000, goal=100_000, delta=-5_000),
    ]
