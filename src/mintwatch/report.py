import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import plotly.graph_objects as go
import plotly.io as pio
import polars as pl

from .config import MAX_LOOKBACK_DAYS
from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class ProgressReport:
    """Mint progress of a fixed-supply collection."""

    minted_today: int  # mints in the most recent date bucket
    total_minted: int
    max_supply: int
    remaining: int
    percent: float


@dataclass
class ChartData:
    table: pl.DataFrame  # date, token_name, mint_sum
    title: str


# ---------------- PROGRESS MODE ----------------
def progress_report(mints: pl.DataFrame, max_supply: int) -> ProgressReport:
    if max_supply <= 0:
        raise ConfigError(f"max_supply must be positive, got {max_supply}")

    if mints.is_empty():
        minted_today = 0
        total_minted = 0
    else:
        latest = mints["date"].max()
        minted_today = int(mints.filter(pl.col("date") == latest)["mint_sum"].sum())
        total_minted = int(mints["mint_sum"].sum())

    return ProgressReport(
        minted_today=minted_today,
        total_minted=total_minted,
        max_supply=max_supply,
        remaining=max_supply - total_minted,
        percent=total_minted / max_supply * 100.0,
    )


def format_progress_status(report: ProgressReport, label: str) -> str:
    return (
        f"- {label} -\n"
        f"Progress: {report.percent:.2f}%\n"
        f"Migrated Today: {report.minted_today}\n"
        f"Supply: {report.total_minted}/{report.max_supply}\n"
        f"\n"
        f"Remaining: {report.remaining}"
    )


# ---------------- WINDOW MODE ----------------
def validate_lookback(lookback_days: int) -> int:
    if lookback_days < 0 or lookback_days > MAX_LOOKBACK_DAYS:
        raise ConfigError(
            f"lookback_days is invalid: {lookback_days} (allowed 0-{MAX_LOOKBACK_DAYS})"
        )
    return lookback_days


def select_window(mints: pl.DataFrame, lookback_days: int) -> pl.DataFrame:
    """0 keeps the whole history, N keeps the last N rows (most recent days)."""
    validate_lookback(lookback_days)
    if lookback_days == 0:
        return mints
    return mints.tail(lookback_days)


def project_name(mints: pl.DataFrame, default: str) -> str:
    """Token name of the first mint row; default when there is none."""
    if mints.is_empty():
        return default
    return mints["token_name"][0] or default


def chart_title(name: str, lookback_days: int) -> str:
    if lookback_days == 0:
        return f"{name} Historical Mint Activity"
    return f"{name} {lookback_days}D Mint Activity"


def build_chart(mints: pl.DataFrame, lookback_days: int, default_name: str,
                label: Optional[str] = None, log: Optional[logging.Logger] = None) -> ChartData:
    """
    Chart-ready table and title. The title uses label when given, otherwise
    the collection name from the data.
    """
    log = log or logger
    table = select_window(mints, lookback_days)
    name = label or project_name(mints, default_name)
    title = chart_title(name, lookback_days)
    log.info(f"Chart '{title}' with {len(table)} days (lookback={lookback_days})")
    return ChartData(table=table, title=title)


# ---------------- RENDERING ----------------
def chart_series(table: pl.DataFrame) -> List[Tuple[str, int]]:
    """(YYYY-MM-DD, mints) pairs in table order."""
    if table.is_empty():
        return []
    dates = table["date"].dt.strftime("%Y-%m-%d").to_list()
    counts = table["mint_sum"].to_list()
    return [(d, int(c)) for d, c in zip(dates, counts)]


def build_figure(chart: ChartData) -> go.Figure:
    series = chart_series(chart.table)

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=[d for d, _ in series],
        y=[c for _, c in series],
        name="Mints",
        marker_color='#f88',
    ))
    fig.update_layout(
        title=chart.title,
        xaxis=dict(title="Date"),
        yaxis=dict(title="Mint Activity"),
        template="plotly_dark",
    )
    return fig


def render_chart_html(chart: ChartData) -> str:
    return pio.to_html(build_figure(chart), full_html=True, include_plotlyjs='cdn')


def render_chart_png(chart: ChartData, width: int = 1200, height: int = 675) -> bytes:
    """PNG bytes for media upload (needs kaleido)."""
    return pio.to_image(build_figure(chart), format="png", width=width, height=height)
