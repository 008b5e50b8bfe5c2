"""Pytest configuration and fixtures."""

import os
from unittest.mock import MagicMock

import pytest
from eth_abi import encode

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["KEY_TYPE"] = "local_private_key"
os.environ["DEBUG"] = "true"

from chainswap.abi import BSC_SWAP_AGENT, ERC20, ETH_SWAP_AGENT, load_abi
from chainswap.utils.locks import clear_key_locks

# Well-known development key; never holds funds
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
OTHER_PRIVATE_KEY = "0x8da4ef21b864d2cc526dbdb2a120bd2874c36c9d0a1fb7f8c63d7f7a8b41de8f"

ERC20_TOKEN = "0x1111111111111111111111111111111111111111"
BEP20_TOKEN = "0x2222222222222222222222222222222222222222"
RECIPIENT = "0x3333333333333333333333333333333333333333"
SWAP_AGENT = "0x4444444444444444444444444444444444444444"
TX_HASH = "0x" + "ab" * 32


@pytest.fixture
def bsc_agent_abi():
    """Chain B swap agent descriptor."""
    return load_abi(BSC_SWAP_AGENT)


@pytest.fixture
def eth_agent_abi():
    """Chain A swap agent descriptor."""
    return load_abi(ETH_SWAP_AGENT)


@pytest.fixture
def erc20_abi():
    """ERC20 token descriptor."""
    return load_abi(ERC20)


@pytest.fixture
def chain_client():
    """Chain client returning fixed nonce, gas price and gas estimate."""
    client = MagicMock()
    client.pending_nonce.return_value = 7
    client.suggested_gas_price.return_value = 5_000_000_000
    client.estimate_gas.return_value = 65_000
    return client


@pytest.fixture(autouse=True)
def reset_key_locks():
    """Clear per-key locks between tests."""
    clear_key_locks()
    yield
    clear_key_locks()


def make_pair_created_log(abi, bep20_addr=BEP20_TOKEN, erc20_addr=ERC20_TOKEN, as_hex=True):
    """Build a SwapPairCreated log entry the way a node returns it."""
    topics = [
        abi.event_topic("SwapPairCreated"),
        bytes.fromhex(TX_HASH[2:]),
        encode(["address"], [bep20_addr]),
        encode(["address"], [erc20_addr]),
    ]
    data = encode(["string", "string", "uint8"], ["TKN", "Token", 18])
    if as_hex:
        return {
            "address": SWAP_AGENT,
            "topics": ["0x" + t.hex() for t in topics],
            "data": "0x" + data.hex(),
        }
    return {"address": SWAP_AGENT, "topics": topics, "data": data}


def make_ownership_log():
    """Log emitted by the new token before SwapPairCreated."""
    return {
        "address": BEP20_TOKEN,
        "topics": [
            "0x8be0079c531659141344cd1fd0a4f28419497f9722a3daafe3b4186f6b6457e0",
            "0x" + "00" * 32,
            "0x" + encode(["address"], [SWAP_AGENT]).hex(),
        ],
        "data": "0x",
    }
