from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import matplotlib
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
import numpy as np
import pandas as pd
import seaborn as sns

from .errors import RenderError

LOGGER = logging.getLogger("searchbench.charts")

CHART_FILENAME = "run-output.png"
CHART_SIZE_PX = (1920, 1080)
CHART_DPI = 100
BAR_COLOR = "#C73E1D"

sns.set_style("whitegrid")
matplotlib.rcParams["font.size"] = 16
matplotlib.rcParams["axes.labelsize"] = 24
matplotlib.rcParams["axes.titlesize"] = 28
matplotlib.rcParams["xtick.labelsize"] = 16
matplotlib.rcParams["ytick.labelsize"] = 16


def length_profile(latencies_by_length: Sequence[Sequence[float]]) -> list[int]:
    """Average latency in whole milliseconds for each query length 1..max.

    Index 0 of ``latencies_by_length`` is the unused sentinel and is skipped;
    entry ``i`` of the result is the average for query length ``i + 1``.
    Lengths without samples report 0. Samples are truncated to whole
    milliseconds before averaging and the average is floored.
    """
    max_length = len(latencies_by_length) - 1
    if max_length < 1:
        return []

    rows = [
        (length, int(duration * 1000))
        for length, durations in enumerate(latencies_by_length)
        if length > 0
        for duration in durations
    ]
    if not rows:
        return [0] * max_length

    df = pd.DataFrame(rows, columns=["length", "latency_ms"])
    grouped = df.groupby("length")["latency_ms"].agg(["sum", "count"])
    averages = (grouped["sum"] // grouped["count"]).astype("int64")
    averages = averages.reindex(range(1, max_length + 1), fill_value=0)
    return [int(value) for value in averages.tolist()]


def render_length_chart(profile: Sequence[int], output_dir: Path) -> Path | None:
    """Render the average-latency-per-query-length bar chart."""
    chart_path = Path(output_dir) / CHART_FILENAME
    if not profile:
        LOGGER.warning("No per-length latency data available for %s", chart_path)
        return None

    lengths = np.arange(1, len(profile) + 1)
    values = np.asarray(profile, dtype=np.int64)
    max_latency = int(values.max())

    width, height = CHART_SIZE_PX
    fig = Figure(figsize=(width / CHART_DPI, height / CHART_DPI), dpi=CHART_DPI)
    FigureCanvasAgg(fig)
    ax = fig.subplots()
    try:
        ax.bar(lengths, values, width=0.9, color=BAR_COLOR, alpha=0.5, edgecolor="white")
        ax.set_xlim(0.5, len(profile) + 0.5)
        ax.set_ylim(0, max(max_latency, 1))
        ax.set_xticks(_length_ticks(len(profile)))
        ax.set_xlabel("Query Length", fontweight="semibold", labelpad=12)
        ax.set_ylabel("Avg Latency (ms)", fontweight="semibold", labelpad=12)
        ax.set_title("Searching Latency Graph", fontweight="bold", pad=15)
        ax.grid(False, axis="x")
        ax.grid(True, alpha=0.5, axis="y", linestyle="--")

        fig.savefig(chart_path, dpi=CHART_DPI, facecolor="white", edgecolor="none")
    except (OSError, ValueError) as exc:
        raise RenderError(f"failed to write chart {chart_path}: {exc}") from exc

    LOGGER.info("Result has been saved to %s", chart_path)
    return chart_path


def _length_ticks(max_length: int, max_ticks: int = 40) -> list[int]:
    step = max(1, -(-max_length // max_ticks))
    return list(range(1, max_length + 1, step))


__all__ = ["CHART_FILENAME", "length_profile", "render_length_chart"]
