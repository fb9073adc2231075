"""Tests for account binding and signing key registration."""

import pytest

from zkbridge.exceptions import RegistrationError, UnregisteredAccountError
from zkbridge.packing import is_packable_fee
from zkbridge.registration import AccountSession, ensure_registered
from zkbridge.wallet import Layer2Wallet, bind_account

from tests.conftest import FAKE_PUBKEY_HASH, TEST_ADDRESS, account_payload

COMMITTED = {
    "executed": True,
    "success": True,
    "failReason": None,
    "block": {"blockNumber": 12, "committed": True, "verified": False},
}


class TestBindAccount:
    @pytest.mark.asyncio
    async def test_binds_account_id(self, make_provider, eth_signer, fake_signer):
        provider, recorder = make_provider({"account_info": account_payload(account_id=138)})

        wallet = await bind_account(eth_signer, provider, signer=fake_signer)

        assert isinstance(wallet, Layer2Wallet)
        assert wallet.address == TEST_ADDRESS
        assert wallet.account_id == 138
        assert recorder.calls == [("account_info", [TEST_ADDRESS])]

    @pytest.mark.asyncio
    async def test_binding_errors_propagate(self, make_provider, eth_signer, fake_signer):
        provider, _ = make_provider({"account_info": {"error": {"code": -32000, "message": "boom"}}})

        with pytest.raises(Exception, match="boom"):
            await bind_account(eth_signer, provider, signer=fake_signer)


class TestEnsureRegistered:
    @pytest.mark.asyncio
    async def test_already_registered_is_noop(self, make_provider, eth_signer, fake_signer):
        provider, recorder = make_provider({
            "account_info": account_payload(pub_key_hash=FAKE_PUBKEY_HASH),
        })
        wallet = Layer2Wallet(eth_signer, fake_signer, provider)

        first = await ensure_registered(wallet)
        second = await ensure_registered(wallet)

        assert first.account_id == second.account_id == 138
        assert "tx_submit" not in recorder.methods()
        assert fake_signer.signed == []

    @pytest.mark.asyncio
    async def test_unknown_account_never_submits(self, make_provider, eth_signer, fake_signer):
        provider, recorder = make_provider({"account_info": account_payload(account_id=None)})
        wallet = Layer2Wallet(eth_signer, fake_signer, provider)

        with pytest.raises(UnregisteredAccountError):
            await ensure_registered(wallet)

        assert "tx_submit" not in recorder.methods()
        assert "get_tx_fee" not in recorder.methods()

    @pytest.mark.asyncio
    async def test_sets_signing_key(self, make_provider, eth_signer, fake_signer):
        provider, recorder = make_provider({
            "account_info": account_payload(nonce=3),
            "get_tx_fee": {"feeType": {"ChangePubKey": "ECDSA"}, "totalFee": "204812345"},
            "tx_submit": "sync-tx:cpk",
            "tx_info": COMMITTED,
        })
        wallet = Layer2Wallet(eth_signer, fake_signer, provider)

        session = await ensure_registered(wallet)

        assert isinstance(session, AccountSession)
        assert session.account_id == 138

        submits = [params for method, params in recorder.calls if method == "tx_submit"]
        assert len(submits) == 1
        tx, eth_signature, _ = submits[0]
        assert tx["type"] == "ChangePubKey"
        assert tx["newPkHash"] == FAKE_PUBKEY_HASH
        assert tx["accountId"] == 138
        assert tx["nonce"] == 3
        assert int(tx["fee"]) >= 204812345
        assert is_packable_fee(int(tx["fee"]))
        assert tx["ethAuthData"]["type"] == "ECDSA"
        assert tx["ethAuthData"]["ethSignature"].startswith("0x")
        assert len(tx["ethAuthData"]["ethSignature"]) == 132
        assert tx["signature"] == {"pubKey": "ab" * 32, "signature": "cd" * 64}
        assert eth_signature is None

    @pytest.mark.asyncio
    async def test_explicit_fee_skips_quote(self, make_provider, eth_signer, fake_signer):
        provider, recorder = make_provider({
            "account_info": account_payload(),
            "tx_submit": "sync-tx:cpk",
            "tx_info": COMMITTED,
        })
        wallet = Layer2Wallet(eth_signer, fake_signer, provider)

        await ensure_registered(wallet, fee=0)

        assert "get_tx_fee" not in recorder.methods()

    @pytest.mark.asyncio
    async def test_rejected_change_raises(self, make_provider, eth_signer, fake_signer):
        provider, _ = make_provider({
            "account_info": account_payload(),
            "tx_submit": "sync-tx:cpk",
            "tx_info": {"executed": True, "success": False, "failReason": "Wrong signature", "block": None},
        })
        wallet = Layer2Wallet(eth_signer, fake_signer, provider)

        with pytest.raises(RegistrationError, match="Wrong signature"):
            await ensure_registered(wallet, fee=0)


def test_session_cannot_be_built_directly(eth_signer, fake_signer):
    wallet = Layer2Wallet(eth_signer, fake_signer, provider=None)

    with pytest.raises(TypeError):
        AccountSession(wallet, 1)
