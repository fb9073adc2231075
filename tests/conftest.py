"""Pytest configuration and fixtures."""

import json
import os
from typing import Callable

import httpx
import pytest
import pytest_asyncio
from eth_account import Account

# Set test environment
os.environ["ZKSYNC_NETWORK"] = "rinkeby"
os.environ["DEBUG"] = "true"

from zkbridge.config import Settings
from zkbridge.providers.zksync import ZkSyncProvider
from zkbridge.signing.base import Layer2Signer

# Well-known test key (hardhat account #0), never holds real funds
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
RECIPIENT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

FAKE_PUBKEY_HASH = "sync:" + "11" * 20


class FakeSigner(Layer2Signer):
    """Layer2Signer that records what it signs."""

    def __init__(self, pubkey_hash: str = FAKE_PUBKEY_HASH):
        self._pubkey_hash = pubkey_hash
        self.signed: list[dict] = []

    def pubkey_hash(self) -> str:
        return self._pubkey_hash

    def sign_transaction(self, tx: dict, token) -> dict:
        self.signed.append(dict(tx))
        return {"pubKey": "ab" * 32, "signature": "cd" * 64}


def account_payload(
    address: str = TEST_ADDRESS,
    account_id=138,
    committed=None,
    verified=None,
    pub_key_hash: str = "sync:" + "00" * 20,
    nonce: int = 1,
) -> dict:
    """Build an ``account_info`` result."""
    return {
        "address": address.lower(),
        "id": account_id,
        "committed": {
            "balances": committed if committed is not None else {},
            "nonce": nonce,
            "pubKeyHash": pub_key_hash,
        },
        "depositing": {"balances": {}},
        "verified": {
            "balances": verified if verified is not None else {},
            "nonce": nonce,
            "pubKeyHash": pub_key_hash,
        },
    }


class RpcRecorder:
    """httpx MockTransport handler that answers JSON-RPC calls from a table."""

    def __init__(self, responses: dict):
        self.responses = responses
        self.calls: list[tuple[str, list]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method = body["method"]
        self.calls.append((method, body["params"]))

        answer = self.responses.get(method)
        if callable(answer):
            answer = answer(body["params"])
        if isinstance(answer, httpx.Response):
            return answer
        if isinstance(answer, dict) and "error" in answer:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": answer["error"]})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": answer})

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        receipt_poll_interval=0.01,
        receipt_timeout=0.05,
        http_timeout=1.0,
    )


@pytest.fixture
def eth_signer():
    return Account.from_key(TEST_PRIVATE_KEY)


@pytest.fixture
def fake_signer() -> FakeSigner:
    return FakeSigner()


@pytest_asyncio.fixture
async def make_provider() -> Callable[[dict], tuple[ZkSyncProvider, RpcRecorder]]:
    """Factory for providers backed by a mocked JSON-RPC endpoint."""
    providers = []

    def factory(responses: dict) -> tuple[ZkSyncProvider, RpcRecorder]:
        recorder = RpcRecorder(responses)
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        provider = ZkSyncProvider(
            "http://zksync.test/jsrpc",
            network="rinkeby",
            poll_interval=0.01,
            receipt_timeout=0.05,
            client=client,
        )
        providers.append(provider)
        return provider, recorder

    yield factory

    for provider in providers:
        await provider.aclose()
