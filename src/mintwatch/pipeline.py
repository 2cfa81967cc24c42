import logging
from typing import Dict, Optional

import polars as pl
import requests

from .config import ES_KEY, PROJECTS, ProjectDef, require
from .errors import ConfigError, PublishError
from .ingest import fetch_all_transfers
from .process import aggregate, normalize_records
from .publish import Publisher, TwitterClient
from .report import (
    ChartData,
    build_chart,
    format_progress_status,
    progress_report,
    render_chart_html,
    render_chart_png,
    validate_lookback,
)
from .utils import save_report

logger = logging.getLogger(__name__)


def mint_activity(contract_address: str, api_key: str,
                  session: Optional[requests.Session] = None,
                  log: Optional[logging.Logger] = None) -> pl.DataFrame:
    """Fetch -> normalize -> aggregate: daily mint counts for one contract."""
    log = log or logger
    log.info(f"mint_activity|starting {contract_address}")

    raw = fetch_all_transfers(contract_address, api_key, session=session, log=log)
    rows = normalize_records(raw)
    mints = aggregate(rows, log=log)

    log.info(f"mint_activity|completed {contract_address}: {len(mints)} day buckets")
    return mints


def resolve_address(project: ProjectDef, address: Optional[str]) -> str:
    target = address or project.address
    if not target:
        raise ConfigError(f"{project.command}: --address is required")
    return target


def run_progress(project: ProjectDef, config: Dict[str, str], address: Optional[str] = None,
                 post: bool = False, publisher: Optional[Publisher] = None,
                 session: Optional[requests.Session] = None,
                 log: Optional[logging.Logger] = None) -> str:
    """Progress report for a fixed-supply collection; posts the status text if asked."""
    log = log or logger
    api_key = require(config, ES_KEY)
    mints = mint_activity(resolve_address(project, address), api_key, session=session, log=log)

    report = progress_report(mints, project.max_supply)
    status = format_progress_status(report, project.label)
    print(status)

    if post:
        log.info(f"{project.command}|post_flg=1")
        publisher = publisher or Publisher(TwitterClient.from_config(config), log=log)
        publisher.publish(status)
    else:
        log.info(f"{project.command}|skipping status POST")

    return status


def _chart_png(chart: ChartData) -> bytes:
    try:
        return render_chart_png(chart)
    except Exception as e:
        raise PublishError(f"Chart render failed: {e}", stage="rendering") from e


def run_window(project: ProjectDef, config: Dict[str, str], address: Optional[str] = None,
               lookback_days: int = 0, output: Optional[str] = None, post: bool = False,
               publisher: Optional[Publisher] = None,
               session: Optional[requests.Session] = None,
               log: Optional[logging.Logger] = None) -> str:
    """Mint activity chart over the whole history or the last N days."""
    log = log or logger
    validate_lookback(lookback_days)
    api_key = require(config, ES_KEY)
    target = resolve_address(project, address)

    mints = mint_activity(target, api_key, session=session, log=log)
    chart = build_chart(mints, lookback_days, default_name=target, label=project.label, log=log)

    destination = output or f"{project.command}.html"
    save_report(render_chart_html(chart), destination, log=log)

    if post:
        log.info(f"{project.command}|post_flg=1")
        publisher = publisher or Publisher(TwitterClient.from_config(config), log=log)
        publisher.publish(chart.title, media=_chart_png(chart))
    else:
        log.info(f"{project.command}|skipping status POST")

    return chart.title


def run_command(command: str, config: Dict[str, str], address: Optional[str] = None,
                lookback_days: int = 0, output: Optional[str] = None, post: bool = False,
                publisher: Optional[Publisher] = None,
                session: Optional[requests.Session] = None,
                log: Optional[logging.Logger] = None) -> str:
    log = log or logger
    if command not in PROJECTS:
        raise ConfigError(f"Unknown command: {command}")
    project = PROJECTS[command]

    log.info(f"{command}|starting")
    if project.max_supply is not None:
        result = run_progress(project, config, address=address, post=post,
                              publisher=publisher, session=session, log=log)
    else:
        result = run_window(project, config, address=address, lookback_days=lookback_days,
                            output=output, post=post, publisher=publisher, session=session,
                            log=log)
    log.info(f"{command}|completed")
    return result
