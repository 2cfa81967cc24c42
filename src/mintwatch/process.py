import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional

import polars as pl

from .config import ZERO_ADDRESS
from .errors import AggregationError, CastError

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"[0-9]+")
_DECIMAL = re.compile(r"[0-9]+(\.[0-9]+)?")
_MAX_EPOCH_SECONDS = 253402300799  # 9999-12-31T23:59:59Z


# --- FIELD PARSERS ---
def _text(field: str, value: str) -> str:
    return value


def _unsigned(bits: int) -> Callable[[str, str], int]:
    limit = 2**bits

    def parse(field: str, value: str) -> int:
        if not _DIGITS.fullmatch(value):
            raise CastError(field, f"'{value}' is not an unsigned integer")
        number = int(value)
        if number >= limit:
            raise CastError(field, f"{value} does not fit in {bits} bits")
        return number

    return parse


def _decimal(field: str, value: str) -> float:
    if not _DECIMAL.fullmatch(value):
        raise CastError(field, f"'{value}' is not a number")
    return float(value)


def _epoch_ms(field: str, value: str) -> int:
    """Unix seconds -> milliseconds. UTC, no timezone adjustment."""
    seconds = _unsigned(64)(field, value)
    if seconds > _MAX_EPOCH_SECONDS:
        raise CastError(field, f"{value} is out of the datetime range")
    return seconds * 1000


_u32 = _unsigned(32)
_u64 = _unsigned(64)

# (raw field, column, parser, dtype); order is the table column order
FIELDS = [
    ("blockNumber", "block_num", _u64, pl.UInt64),
    ("timeStamp", "timestamp", _epoch_ms, pl.Int64),
    ("hash", "hash", _text, pl.Utf8),
    ("nonce", "nonce", _u32, pl.UInt32),
    ("blockHash", "block_hash", _text, pl.Utf8),
    ("contractAddress", "contract_address", _text, pl.Utf8),
    ("to", "to_address", _text, pl.Utf8),
    ("from", "from_address", _text, pl.Utf8),
    ("tokenID", "token_id", _u32, pl.UInt32),
    ("tokenName", "token_name", _text, pl.Utf8),
    ("tokenSymbol", "token_symbol", _text, pl.Utf8),
    ("tokenDecimal", "token_decimal", _decimal, pl.Float64),
    ("transactionIndex", "transaction_index", _text, pl.Utf8),
    ("gas", "gas", _text, pl.Utf8),
    ("gasPrice", "gas_price", _decimal, pl.Float64),
    ("gasUsed", "gas_used", _u32, pl.UInt32),
    ("cumulativeGasUsed", "cumulative_gas_used", _u64, pl.UInt64),
    ("confirmations", "confirms", _u64, pl.UInt64),
]

# timestamp is built as epoch millis, then converted to Datetime("ms")
ROW_SCHEMA = {column: dtype for _, column, _, dtype in FIELDS}

MINT_SCHEMA = {"date": pl.Date, "token_name": pl.Utf8, "mint_sum": pl.UInt32}


# --- NORMALIZER ---
def normalize_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Casts one raw explorer transfer (all strings) into a typed row."""
    if not isinstance(raw, dict):
        raise CastError("<record>", f"expected an object, got {type(raw).__name__}")

    row = {}
    for field, column, parse, _ in FIELDS:
        if field not in raw:
            raise CastError(field, "missing")
        value = raw[field]
        if not isinstance(value, str):
            raise CastError(field, f"expected a string, got {type(value).__name__}")
        row[column] = parse(field, value)
    return row


def normalize_records(raws: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [normalize_record(raw) for raw in raws]


# --- AGGREGATOR ---
def dedup_transfers(df: pl.DataFrame) -> pl.DataFrame:
    """Drops rows identical on every column, keeping the first one in place."""
    return df.unique(keep="first", maintain_order=True)


def build_transfer_table(rows: List[Dict[str, Any]],
                         log: Optional[logging.Logger] = None) -> pl.DataFrame:
    """
    1. Typed DataFrame with a fixed schema (empty input -> empty typed frame)
    2. Epoch millis -> Datetime(ms)
    3. Exact-duplicate rows removed
    """
    log = log or logger

    df = pl.DataFrame(rows, schema=ROW_SCHEMA)
    df = df.with_columns(pl.from_epoch(pl.col("timestamp"), time_unit="ms").alias("timestamp"))

    initial_count = len(df)
    df = dedup_transfers(df)
    dropped = initial_count - len(df)
    if dropped > 0:
        log.info(f"Dropped {dropped} duplicate transfers (page overlap).")

    return df


def flag_mints(df: pl.DataFrame) -> pl.DataFrame:
    """Adds a boolean 'mint' column: sender is the zero address."""
    return df.with_columns((pl.col("from_address") == ZERO_ADDRESS).alias("mint"))


def aggregate_mints(df: pl.DataFrame, log: Optional[logging.Logger] = None) -> pl.DataFrame:
    """
    Daily mint counts per token: columns date, token_name, mint_sum,
    sorted by date. No mints gives an empty frame, not an error.
    """
    log = log or logger

    try:
        flagged = flag_mints(df)
        mints = flagged.filter(pl.col("mint")).select([
            pl.col("timestamp").dt.date().alias("date"),
            pl.col("token_name"),
            pl.col("from_address"),
            pl.col("to_address"),
            pl.lit(1, dtype=pl.UInt32).alias("mint"),
        ])

        out = (
            mints.group_by(["date", "token_name"])
            .agg(pl.col("mint").sum().cast(pl.UInt32).alias("mint_sum"))
            .sort(["date", "token_name"])
        )
    except pl.exceptions.PolarsError as e:
        raise AggregationError(f"Mint aggregation failed: {e}") from e

    counted = int(out["mint_sum"].sum()) if len(out) else 0
    if counted != len(mints):
        raise AggregationError(f"Daily mint sums ({counted}) do not match mint transfers ({len(mints)})")

    if out.is_empty():
        log.info("No mint transfers found.")
        return pl.DataFrame(schema=MINT_SCHEMA)

    log.info(f"Aggregated {len(mints)} mints over {out['date'].n_unique()} days")
    return out


def aggregate(rows: List[Dict[str, Any]], log: Optional[logging.Logger] = None) -> pl.DataFrame:
    """Typed rows -> deduplicated transfer table -> daily mint table."""
    return aggregate_mints(build_transfer_table(rows, log=log), log=log)
