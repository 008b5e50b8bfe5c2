"""Chainswap - transaction building and signing for an ETH/BSC token bridge."""

__version__ = "0.1.0"
