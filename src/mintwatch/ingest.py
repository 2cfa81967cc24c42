import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import EmptyResultError, FetchError
from .utils import explorer_get

logger = logging.getLogger(__name__)


def fetch_transfer_page(contract_address: str, api_key: str, start_block: int,
                        session: Optional[requests.Session] = None,
                        log: Optional[logging.Logger] = None) -> List[Dict[str, Any]]:
    """Fetches one ascending page of ERC-721 transfers starting at start_block.
    # ?module=account
    # &action=tokennfttx
    # &contractaddress=0x...
    # &startblock=0
    # &sort=asc
    # &apikey=YourApiKeyToken
    """
    log = log or logger
    params = {
        "module": "account",
        "action": "tokennfttx",
        "contractaddress": contract_address,
        "startblock": start_block,
        "sort": "asc",
        "apikey": api_key,
    }

    data = explorer_get(params, session=session)
    if not isinstance(data, dict):
        raise FetchError("Explorer response is not a JSON object")

    status = data.get("status")
    message = data.get("message")
    log.info(f"Page from block {start_block}: status={status} message={message}")

    # "No transactions found" comes back as status 0 with an empty list
    result = data.get("result")
    if not isinstance(result, list):
        raise FetchError(f"API Error: {message} - {str(result)[:100]}")

    return result


def _block_number(record: Dict[str, Any]) -> int:
    try:
        return int(record["blockNumber"])
    except (KeyError, TypeError, ValueError) as e:
        raise FetchError(f"Transfer has no usable blockNumber: {record!r:.200}") from e


def _walk_pages(contract_address: str, api_key: str, http: requests.Session,
                log: logging.Logger) -> List[Dict[str, Any]]:
    transfers: List[Dict[str, Any]] = []
    start_block = 0
    pages = 0

    while True:
        log.info(f"{contract_address}: Fetching transfers from block {start_block}")
        batch = fetch_transfer_page(contract_address, api_key, start_block, session=http, log=log)

        if not batch:
            break

        transfers.extend(batch)
        pages += 1

        cur_block = _block_number(batch[-1])

        if cur_block == start_block:
            break

        # Regression guard: start_block must strictly increase or we never stop
        if cur_block < start_block:
            raise FetchError(
                f"Explorer went backwards: page starting at {start_block} ended at {cur_block}"
            )

        start_block = cur_block

    log.info(f"{contract_address}: Collected {len(transfers)} transfers over {pages} pages")
    return transfers


def fetch_all_transfers(contract_address: str, api_key: str,
                        session: Optional[requests.Session] = None,
                        log: Optional[logging.Logger] = None) -> List[Dict[str, Any]]:
    """
    Walks the whole transfer history of a contract, oldest first.

    Each page starts at the last block of the previous one, so the boundary
    block is fetched twice. Dedup in process.build_transfer_table removes
    the overlap. The walk ends on an empty page or when a page makes no
    forward progress. A session created here is closed before returning.
    """
    log = log or logger

    if session is not None:
        transfers = _walk_pages(contract_address, api_key, session, log)
    else:
        with requests.Session() as http:
            transfers = _walk_pages(contract_address, api_key, http, log)

    if not transfers:
        raise EmptyResultError(f"No transfers found for {contract_address}")
    return transfers
