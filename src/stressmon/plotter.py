"""
Renders counter series as line charts.

Counters of very different magnitudes (cpu percentages, memory in bytes,
cumulative cpu time in ms) share one chart, so every line is rescaled to a
0..100 range and its label records the scale factor and the value that maps
to zero. Lines that never change are drawn flat at a random height between 1
and 50 so that several constant lines do not overlap.

Charts are built with Plotly Express from a Polars frame and rendered to
static images with Kaleido. If static rendering fails, an interactive HTML
version is written instead.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

# Third-party library imports
import polars as pl
import plotly.express as px
import plotly.graph_objects as go

logger = logging.getLogger(__name__)

# --- Module Constants ---

CHART_WIDTH = 1600  # px
CHART_HEIGHT = 900  # px

PALETTE = [
    "darkorange", "deeppink", "forestgreen", "brown", "blue", "darkgreen",
    "goldenrod", "darkcyan", "red", "darkmagenta", "black", "hotpink",
]


@dataclass
class LineData:
    label: str
    data: List[Optional[float]]


def image_format(file_type: str) -> str:
    """Map a file type to a Kaleido format; 'jpg' is a synonym of 'jpeg', default png."""
    file_type = (file_type or "png").lower()
    if file_type in ("jpeg", "jpg"):
        return "jpeg"
    return "png"


def to_date_time_string(ms_since_epoch: float = 0) -> str:
    return datetime.fromtimestamp(ms_since_epoch / 1000).strftime("%d %b %Y %H:%M:%S")


def normalize_line(line: LineData) -> Optional[Tuple[str, List[Optional[float]]]]:
    """
    Rescale a line to 0..100 and build its scale label.

    Returns None when the line has no numeric values.
    """
    present = [y for y in line.data if y is not None]
    if not present:
        return None
    low, high = min(present), max(present)
    if low == high:
        shift = random.randint(1, 50)
        label = f"{line.label}:{shift:#.3g}%={low} & zero at:0"
        return label, [shift if y is not None else None for y in line.data]
    label = f"{line.label}:1%={(high - low) / 100:#.3g} & zero at:{low:#.3g}"
    span = high - low
    return label, [(y - low) * 100 / span if y is not None else None for y in line.data]


def build_chart_figure(
    x_data: Sequence[float],
    lines: Sequence[LineData],
    start_timestamp: float = 0,
    x_axis_label: str = "elapsed(ms)",
    title: Optional[str] = None,
) -> go.Figure:
    """
    Build the chart figure for a set of lines sharing one x axis.

    x values are shifted so the first one is 0; the x axis label carries
    the start time.
    """
    x0 = x_data[0] if len(x_data) else 0
    xs = [x - x0 for x in x_data]
    frames = []
    for line in lines:
        normalized = normalize_line(line)
        if normalized is None:
            logger.debug(f"Skipping line '{line.label}' with no values")
            continue
        label, ys = normalized
        n = min(len(xs), len(ys))
        frames.append(pl.DataFrame(
            {"x": xs[:n], "y": ys[:n], "line": [label] * n},
            schema={"x": pl.Float64, "y": pl.Float64, "line": pl.Utf8},
            strict=False,
        ))

    axis_label = f"{x_axis_label}, Start time:{to_date_time_string(start_timestamp)}"
    if frames:
        df = pl.concat(frames)
        fig = px.line(
            df.to_pandas(),
            x="x",
            y="y",
            color="line",
            markers=True,
            color_discrete_sequence=PALETTE + px.colors.qualitative.Dark24,
        )
    else:
        fig = go.Figure()
    fig.update_traces(line={"width": 4})
    fig.update_layout(
        title={"text": title, "font": {"color": "red", "size": 40}} if title else None,
        xaxis_title=axis_label,
        yaxis_title="%",
        legend_title_text="",
        width=CHART_WIDTH,
        height=CHART_HEIGHT,
        font={"color": "black", "size": 16},
    )
    fig.update_yaxes(ticksuffix="%")
    return fig


def write_chart_to_file(
    x_data: Sequence[float],
    lines: Sequence[LineData],
    file_type: str = "png",
    start_timestamp: float = 0,
    x_axis_label: str = "elapsed(ms)",
    file: Optional[str] = None,
    title: Optional[str] = None,
) -> Optional[bytes]:
    """
    Render a chart to an image and optionally write it to a file.

    Args:
        x_data: x coordinates shared by all lines
        lines: labelled y sequences
        file_type: 'png' or 'jpeg' ('jpg' accepted)
        start_timestamp: ms since epoch shown in the x axis label
        x_axis_label: x axis label
        file: path to write the image to, if any
        title: chart title, if any

    Returns:
        The image bytes, or None if static rendering failed. In that case an
        HTML version is written next to file when one was given.
    """
    fig = build_chart_figure(x_data, lines, start_timestamp, x_axis_label, title)
    try:
        image = fig.to_image(
            format=image_format(file_type), width=CHART_WIDTH, height=CHART_HEIGHT
        )
    except Exception as e_kaleido:
        logger.warning(
            f"Failed to render static chart (Kaleido might be missing or misconfigured): {e_kaleido}"
        )
        if file:
            html_file = Path(file).with_suffix(".html")
            html_file.parent.mkdir(parents=True, exist_ok=True)
            fig.write_html(html_file)
            logger.info(f"Interactive chart saved to: {html_file}")
        return None

    if file:
        Path(file).parent.mkdir(parents=True, exist_ok=True)
        Path(file).write_bytes(image)
        logger.debug(f"Chart saved to: {file}")
    return image
