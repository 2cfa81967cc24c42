"""
Pytest configuration and shared fixtures for mintwatch tests.
"""

import pytest

from mintwatch.config import ZERO_ADDRESS


@pytest.fixture
def api_key():
    """Mock Etherscan API key for testing."""
    return "test-es-key-12345"


@pytest.fixture
def contract_address():
    """Honey Hives Deluxe contract, used as a generic ERC-721 target."""
    return "0x5df89cC648a6bd179bB4Db68C7CBf8533e8d796e"


@pytest.fixture
def make_transfer():
    """Factory for raw explorer transfer records (all fields strings)."""

    def _make(block=100, ts=1650000000, token_id=1, sender=ZERO_ADDRESS,
              receiver="0xabc0000000000000000000000000000000000001",
              token_name="Honey Hives Deluxe", tx_hash=None):
        return {
            "blockNumber": str(block),
            "timeStamp": str(ts),
            "hash": tx_hash or f"0xhash{block}_{token_id}",
            "nonce": "7",
            "blockHash": f"0xblock{block}",
            "from": sender,
            "contractAddress": "0x5df89cc648a6bd179bb4db68c7cbf8533e8d796e",
            "to": receiver,
            "tokenID": str(token_id),
            "tokenName": token_name,
            "tokenSymbol": "HIVE",
            "tokenDecimal": "0",
            "transactionIndex": "12",
            "gas": "250000",
            "gasPrice": "45000000000",
            "gasUsed": "180000",
            "cumulativeGasUsed": "2100000",
            "input": "deprecated",
            "confirmations": "1500",
        }

    return _make
