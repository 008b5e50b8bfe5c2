"""Tests for transaction building and signing."""

import time
from unittest.mock import MagicMock

import pytest
from eth_account import Account

from chainswap.abi import encode_fill_a_to_b
from chainswap.builder import SignedTransaction, TransactionBuilder
from chainswap.errors import (
    BuildTimeoutError,
    ConfigError,
    GasEstimationError,
    RpcError,
    SigningError,
)
from chainswap.signing import build_keys

from conftest import ERC20_TOKEN, RECIPIENT, SWAP_AGENT, TEST_PRIVATE_KEY, TX_HASH

SENDER = Account.from_key(TEST_PRIVATE_KEY).address


class TestBuildContractCall:
    """Tests for TransactionBuilder.build_contract_call."""

    def test_builds_signed_transaction(self, chain_client, bsc_agent_abi):
        """Test a contract call is assembled from chain state and signed."""
        payload = encode_fill_a_to_b(bsc_agent_abi, TX_HASH, ERC20_TOKEN, RECIPIENT, 10**18)
        private_key, _ = build_keys(TEST_PRIVATE_KEY)

        tx = TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, payload, private_key)

        assert isinstance(tx, SignedTransaction)
        assert tx.nonce == 7
        assert tx.gas_price == 5_000_000_000
        assert tx.gas_limit == 65_000
        assert tx.value == 0
        assert tx.to == SWAP_AGENT
        assert tx.data == payload
        assert tx.sender == SENDER

    def test_queries_chain_state_for_sender(self, chain_client):
        """Test nonce and gas estimate are requested for the derived sender."""
        TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, b"\x01\x02", TEST_PRIVATE_KEY)

        assert chain_client.pending_nonce.call_args.args[0] == SENDER
        call = chain_client.estimate_gas.call_args.args[0]
        assert call == {
            "from": SENDER,
            "to": SWAP_AGENT,
            "gasPrice": 5_000_000_000,
            "value": 0,
            "data": b"\x01\x02",
        }

    def test_legacy_signature_recovers_sender(self, chain_client):
        """Test the signature is unprotected legacy and recovers the sender."""
        tx = TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)

        assert tx.v in (27, 28)
        assert Account.recover_transaction(tx.raw_transaction) == SENDER
        assert tx.tx_hash.startswith("0x") and len(tx.tx_hash) == 66
        assert tx.raw_hex == "0x" + tx.raw_transaction.hex()

    def test_deterministic_for_same_state(self, chain_client):
        """Test the same chain state and payload give the same transaction."""
        builder = TransactionBuilder(chain_client)

        first = builder.build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)
        second = builder.build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)

        assert first.raw_transaction == second.raw_transaction

    def test_hex_and_prefixless_keys_sign_alike(self, chain_client):
        """Test 0x-prefixed and bare hex keys produce the same transaction."""
        builder = TransactionBuilder(chain_client)

        first = builder.build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)
        second = builder.build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY[2:])

        assert first.hash == second.hash

    def test_gas_estimation_failure(self, chain_client):
        """Test a reverting simulation aborts the build."""
        chain_client.estimate_gas.side_effect = RpcError(
            "execution reverted", operation="eth_estimateGas", code=3
        )

        with pytest.raises(GasEstimationError) as exc_info:
            TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)

        assert exc_info.value.operation == "build_contract_call"
        assert isinstance(exc_info.value.cause, RpcError)

    def test_gas_estimation_failure_from_other_clients(self, chain_client):
        """Test non-chainswap client errors also become GasEstimationError."""
        chain_client.estimate_gas.side_effect = ValueError({"message": "execution reverted"})

        with pytest.raises(GasEstimationError):
            TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)

    def test_malformed_key(self, chain_client):
        """Test a malformed key raises SigningError before any network call."""
        with pytest.raises(SigningError):
            TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, b"\x01", "0x1234")

        chain_client.pending_nonce.assert_not_called()

    def test_bad_recipient(self, chain_client):
        """Test a malformed contract address raises ConfigError."""
        with pytest.raises(ConfigError):
            TransactionBuilder(chain_client).build_contract_call("0xnope", b"\x01", TEST_PRIVATE_KEY)

    def test_nonce_failure(self, chain_client):
        """Test nonce query failures are reported as RpcError."""
        chain_client.pending_nonce.side_effect = ConnectionError("refused")

        with pytest.raises(RpcError) as exc_info:
            TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)

        assert exc_info.value.operation == "pending_nonce"
        chain_client.estimate_gas.assert_not_called()

    def test_gas_price_failure(self, chain_client):
        """Test gas price failures propagate unchanged."""
        error = RpcError("boom", operation="eth_gasPrice")
        chain_client.suggested_gas_price.side_effect = error

        with pytest.raises(RpcError) as exc_info:
            TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)

        assert exc_info.value is error


class TestBuildValueTransfer:
    """Tests for TransactionBuilder.build_value_transfer."""

    def test_value_transfer(self, chain_client):
        """Test a native transfer carries the value and no data."""
        chain_client.estimate_gas.return_value = 21_000

        tx = TransactionBuilder(chain_client).build_value_transfer(RECIPIENT, 10**17, TEST_PRIVATE_KEY)

        assert tx.value == 10**17
        assert tx.data == b""
        assert tx.gas_limit == 21_000
        call = chain_client.estimate_gas.call_args.args[0]
        assert call["value"] == 10**17
        assert "data" not in call

    @pytest.mark.parametrize("value", [-1, 1.5, "10"])
    def test_invalid_value(self, chain_client, value):
        """Test negative or non-integer values are rejected before any network call."""
        with pytest.raises(ConfigError) as exc_info:
            TransactionBuilder(chain_client).build_value_transfer(RECIPIENT, value, TEST_PRIVATE_KEY)

        assert exc_info.value.operation == "build_value_transfer"
        chain_client.pending_nonce.assert_not_called()

    def test_gas_estimation_failure(self, chain_client):
        """Test value transfers also fail closed on estimation errors."""
        chain_client.estimate_gas.side_effect = RpcError("insufficient funds")

        with pytest.raises(GasEstimationError):
            TransactionBuilder(chain_client).build_value_transfer(RECIPIENT, 1, TEST_PRIVATE_KEY)


class TestBuildTimeouts:
    """Tests for deadline handling."""

    def test_remaining_budget_passed_to_client(self, chain_client):
        """Test each call receives the remaining budget."""
        TransactionBuilder(chain_client).build_contract_call(
            SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY, timeout=10.0
        )

        for method in (chain_client.pending_nonce, chain_client.suggested_gas_price, chain_client.estimate_gas):
            timeout = method.call_args.kwargs["timeout"]
            assert 0 < timeout <= 10.0

    def test_no_deadline(self, chain_client):
        """Test calls get no timeout when the caller sets none."""
        TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)

        assert chain_client.pending_nonce.call_args.kwargs["timeout"] is None

    def test_deadline_exhausted(self, chain_client):
        """Test an exhausted deadline stops the build before signing."""
        def slow_gas_price(timeout=None):
            time.sleep(0.05)
            return 1

        chain_client.suggested_gas_price.side_effect = slow_gas_price

        with pytest.raises(BuildTimeoutError) as exc_info:
            TransactionBuilder(chain_client).build_contract_call(
                SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY, timeout=0.01
            )

        assert exc_info.value.operation == "estimate_gas"
        chain_client.estimate_gas.assert_not_called()

    def test_client_timeout(self, chain_client):
        """Test client timeouts surface as BuildTimeoutError, not estimation errors."""
        chain_client.estimate_gas.side_effect = BuildTimeoutError("slow", operation="eth_estimateGas")

        with pytest.raises(BuildTimeoutError):
            TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)

    def test_builtin_timeout(self, chain_client):
        """Test builtin TimeoutError from a client is normalized."""
        chain_client.pending_nonce.side_effect = TimeoutError()

        with pytest.raises(BuildTimeoutError):
            TransactionBuilder(chain_client).build_contract_call(SWAP_AGENT, b"\x01", TEST_PRIVATE_KEY)

    def test_timeout_is_builtin_timeout(self):
        """Test callers can catch the builtin TimeoutError."""
        assert issubclass(BuildTimeoutError, TimeoutError)


def test_client_protocol():
    """Test the JSON-RPC client satisfies the ChainClient protocol."""
    from chainswap.rpc import ChainClient, JsonRpcClient

    client = JsonRpcClient("http://localhost:8545", client=MagicMock())
    assert isinstance(client, ChainClient)
