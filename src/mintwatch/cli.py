#!/usr/bin/env python3
"""
Daily NFT mint activity reports from Etherscan transfer history.

Builds either a progress report for a fixed-supply collection or a mint
activity bar chart, and optionally posts the result to Twitter/X.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import DEFAULT_LOG_FILE, MAX_LOOKBACK_DAYS, PROJECTS, load_config
from .errors import ConfigError, MintwatchError
from .pipeline import run_command

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = DEFAULT_LOG_FILE) -> None:
    """Process-wide logging: stdout always, plus a log file when one is given."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mintwatch",
        description="Daily NFT mint activity from Etherscan ERC-721 transfers.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Bears Deluxe migration progress, print only
  %(prog)s -c config.yaml -i migration

  # Last 30 days of mints for any ERC-721 contract, posted with the chart
  %(prog)s -c config.yaml -i erc721_mint_act -a 0x... -l 30 -p 1
        """,
    )
    parser.add_argument("-c", "--config", required=True, help="YAML file with API keys")
    parser.add_argument("-i", "--command", required=True, choices=sorted(PROJECTS),
                        help="Report to run")
    parser.add_argument("-a", "--address", help="Token contract address")
    parser.add_argument("-l", "--lookback-days", type=int, default=0,
                        help=f"Days to chart, 0 = full history (max {MAX_LOOKBACK_DAYS})")
    parser.add_argument("-p", "--post", type=int, choices=[0, 1], default=0,
                        help="1 = publish the report to Twitter")
    parser.add_argument("-o", "--output",
                        help="Chart destination (local path or gs://bucket/path.html)")
    return parser


def main(args: Optional[List[str]] = None) -> int:
    parsed = build_parser().parse_args(args)

    try:
        config = load_config(parsed.config)
    except ConfigError as e:
        setup_logging(log_file=None)
        logger.error(f"main|{e}")
        return 1

    setup_logging(log_file=config.get("log_file") or DEFAULT_LOG_FILE)
    logger.info(f"main|starting {parsed.command}")

    try:
        run_command(
            parsed.command,
            config,
            address=parsed.address,
            lookback_days=parsed.lookback_days,
            output=parsed.output,
            post=parsed.post == 1,
        )
    except MintwatchError as e:
        logger.error(f"main|{type(e).__name__}: {e}")
        return 1

    logger.info("main|completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
