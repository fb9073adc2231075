"""Tests for deposits and withdrawals."""

import logging
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from zkbridge.bridge import deposit_to_layer2, withdraw_to_base_chain
from zkbridge.exceptions import ProviderError, ReceiptTimeoutError, TransactionRejectedError
from zkbridge.registration import ensure_registered
from zkbridge.result import OperationStatus
from zkbridge.types import ETH_TOKEN
from zkbridge.units import parse_units
from zkbridge.wallet import Layer2Wallet

from tests.conftest import FAKE_PUBKEY_HASH, TEST_ADDRESS, account_payload

CONTRACTS = {"mainContract": "0x82F67958A5474e40E1485742d648C0b0686b6e5D", "govContract": "0xgov"}


def _block(committed: bool, verified: bool) -> dict:
    return {"blockNumber": 30, "committed": committed, "verified": verified}


class TestDeposit:
    def _wallet(self, make_provider, eth_signer, fake_signer, ethop_info, eth_provider=None):
        provider, recorder = make_provider({
            "contract_address": CONTRACTS,
            "ethop_info": ethop_info,
        })
        if eth_provider is None:
            eth_provider = MagicMock()
            eth_provider.send_deposit = AsyncMock(return_value="0xethhash")
            eth_provider.confirm_deposit = AsyncMock(return_value=55)
        return Layer2Wallet(eth_signer, fake_signer, provider, eth_provider), recorder

    @pytest.mark.asyncio
    async def test_deposit_committed(self, make_provider, eth_signer, fake_signer):
        wallet, recorder = self._wallet(
            make_provider, eth_signer, fake_signer,
            {"executed": True, "block": _block(True, False)},
        )

        result = await deposit_to_layer2(wallet, "ETH", "0.1")

        assert result.status == OperationStatus.SUCCESS
        assert result.tx_hash == "0xethhash"
        assert result.amount == parse_units("0.1")
        assert result.details["serial_id"] == 55
        wallet.eth_provider.send_deposit.assert_awaited_once_with(
            eth_signer, CONTRACTS["mainContract"], TEST_ADDRESS, ETH_TOKEN, 10**17
        )
        wallet.eth_provider.confirm_deposit.assert_awaited_once_with(
            "0xethhash", CONTRACTS["mainContract"]
        )
        assert ("ethop_info", [55]) in recorder.calls

    @pytest.mark.asyncio
    async def test_confirmation_timeout_is_swallowed(self, make_provider, eth_signer, fake_signer, caplog):
        wallet, _ = self._wallet(
            make_provider, eth_signer, fake_signer,
            {"executed": False, "block": None},
        )

        with caplog.at_level(logging.WARNING):
            result = await deposit_to_layer2(wallet, "ETH", "0.1")

        assert result.status == OperationStatus.INDETERMINATE
        assert result.tx_hash == "0xethhash"
        assert "awaiting confirmation" in caplog.text

    @pytest.mark.asyncio
    async def test_broadcast_failure_is_failed(self, make_provider, eth_signer, fake_signer):
        eth_provider = MagicMock()
        eth_provider.send_deposit = AsyncMock(side_effect=ValueError("insufficient funds for gas"))
        eth_provider.confirm_deposit = AsyncMock()
        wallet, recorder = self._wallet(
            make_provider, eth_signer, fake_signer, {}, eth_provider=eth_provider
        )

        result = await deposit_to_layer2(wallet, "ETH", "0.1")

        assert result.status == OperationStatus.FAILED
        assert "insufficient funds" in result.error
        eth_provider.confirm_deposit.assert_not_awaited()
        assert "ethop_info" not in recorder.methods()

    @pytest.mark.parametrize(
        "error",
        [
            ReceiptTimeoutError("0xethhash", "inclusion", 300),
            ProviderError("Deposit receipt 0xethhash has no NewPriorityRequest event"),
        ],
    )
    @pytest.mark.asyncio
    async def test_unconfirmed_broadcast_is_indeterminate(
        self, make_provider, eth_signer, fake_signer, error
    ):
        eth_provider = MagicMock()
        eth_provider.send_deposit = AsyncMock(return_value="0xethhash")
        eth_provider.confirm_deposit = AsyncMock(side_effect=error)
        wallet, recorder = self._wallet(
            make_provider, eth_signer, fake_signer, {}, eth_provider=eth_provider
        )

        result = await deposit_to_layer2(wallet, "ETH", "0.1")

        assert result.status == OperationStatus.INDETERMINATE
        assert result.tx_hash == "0xethhash"
        assert result.details["serial_id"] is None
        assert "ethop_info" not in recorder.methods()

    @pytest.mark.asyncio
    async def test_reverted_deposit_is_failed(self, make_provider, eth_signer, fake_signer):
        eth_provider = MagicMock()
        eth_provider.send_deposit = AsyncMock(return_value="0xethhash")
        eth_provider.confirm_deposit = AsyncMock(
            side_effect=TransactionRejectedError("0xethhash", "reverted on the base chain")
        )
        wallet, _ = self._wallet(
            make_provider, eth_signer, fake_signer, {}, eth_provider=eth_provider
        )

        result = await deposit_to_layer2(wallet, "ETH", "0.1")

        assert result.status == OperationStatus.FAILED
        assert result.tx_hash == "0xethhash"

    @pytest.mark.asyncio
    async def test_missing_base_chain_provider_is_failed(self, make_provider, eth_signer, fake_signer):
        provider, _ = make_provider({"contract_address": CONTRACTS})
        wallet = Layer2Wallet(eth_signer, fake_signer, provider)

        result = await deposit_to_layer2(wallet, "ETH", "0.1")

        assert result.status == OperationStatus.FAILED

    @pytest.mark.asyncio
    async def test_invalid_amount_raises(self, make_provider, eth_signer, fake_signer):
        wallet, _ = self._wallet(make_provider, eth_signer, fake_signer, {})

        with pytest.raises(ValueError):
            await deposit_to_layer2(wallet, "ETH", "lots")


class TestWithdraw:
    async def _session(self, make_provider, eth_signer, fake_signer, tx_info):
        provider, recorder = make_provider({
            "account_info": account_payload(pub_key_hash=FAKE_PUBKEY_HASH),
            "tx_submit": "sync-tx:withdraw",
            "tx_info": tx_info,
        })
        session = await ensure_registered(Layer2Wallet(eth_signer, fake_signer, provider))
        return session, recorder

    @pytest.mark.asyncio
    async def test_withdraw_waits_for_verification(self, make_provider, eth_signer, fake_signer):
        session, recorder = await self._session(
            make_provider, eth_signer, fake_signer,
            {"executed": True, "success": True, "failReason": None, "block": _block(True, True)},
        )

        result = await withdraw_to_base_chain(session, "ETH", "0.05", "0.0012345")

        assert result.status == OperationStatus.SUCCESS
        assert result.receipt.verified
        assert result.message == "ZKP verification is complete"

        [tx] = [params[0] for method, params in recorder.calls if method == "tx_submit"]
        assert tx["type"] == "Withdraw"
        assert tx["to"] == TEST_ADDRESS
        assert int(tx["fee"]) == 1234 * 10**12
        assert int(tx["amount"]) == parse_units("0.05")

    @pytest.mark.asyncio
    async def test_committed_only_is_not_success(self, make_provider, eth_signer, fake_signer):
        session, _ = await self._session(
            make_provider, eth_signer, fake_signer,
            {"executed": True, "success": True, "failReason": None, "block": _block(True, False)},
        )

        result = await withdraw_to_base_chain(session, "ETH", "0.05", "0.001")

        assert result.status == OperationStatus.INDETERMINATE

    @pytest.mark.asyncio
    async def test_rejected_withdraw_is_failed(self, make_provider, eth_signer, fake_signer, caplog):
        session, _ = await self._session(
            make_provider, eth_signer, fake_signer,
            {"executed": True, "success": False, "failReason": "Not enough balance", "block": None},
        )

        with caplog.at_level(logging.ERROR):
            result = await withdraw_to_base_chain(session, "ETH", "500", "0.001")

        assert result.status == OperationStatus.FAILED
        assert "Not enough balance" in caplog.text

    @pytest.mark.asyncio
    async def test_lost_submit_response_is_indeterminate(self, make_provider, eth_signer, fake_signer):
        def read_timeout(params):
            raise httpx.ReadTimeout("server accepted request, response lost")

        provider, _ = make_provider({
            "account_info": account_payload(pub_key_hash=FAKE_PUBKEY_HASH),
            "tx_submit": read_timeout,
        })
        session = await ensure_registered(Layer2Wallet(eth_signer, fake_signer, provider))

        result = await withdraw_to_base_chain(session, "ETH", "0.05", "0.001")

        assert result.status == OperationStatus.INDETERMINATE
