"""Daily NFT mint activity from Etherscan ERC-721 transfer history."""

__version__ = "0.1.0"
