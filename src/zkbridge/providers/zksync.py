"""zkSync layer-2 JSON-RPC provider.

Uses httpx for all calls. Receipts are awaited by polling ``tx_info`` /
``ethop_info`` until the requested block state (COMMIT or VERIFY) is reached.
"""

import asyncio
import logging
from typing import Any, Optional, Union

import httpx

from zkbridge.exceptions import (
    ProviderError,
    ReceiptTimeoutError,
    ResponseLostError,
    RpcError,
    UnsupportedNetworkError,
)
from zkbridge.types import (
    ETH_TOKEN,
    AccountState,
    ContractAddress,
    Token,
    TransactionFee,
    TransactionReceipt,
)

logger = logging.getLogger(__name__)

# JSON-RPC endpoints
ZKSYNC_RPC_URLS = {
    "mainnet": "https://api.zksync.io/jsrpc",
    "rinkeby": "https://rinkeby-api.zksync.io/jsrpc",
    "ropsten": "https://ropsten-api.zksync.io/jsrpc",
    "goerli": "https://goerli-api.zksync.io/jsrpc",
    "localhost": "http://127.0.0.1:3030",
}

CHAIN_IDS = {
    "mainnet": 1,
    "ropsten": 3,
    "rinkeby": 4,
    "goerli": 5,
    "localhost": 9,
}

COMMIT = "COMMIT"
VERIFY = "VERIFY"

FEE_KINDS = ("Withdraw", "FastWithdraw", "Transfer", "ChangePubKey")

# Failures raised before the request left the client
_NOT_SENT_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.PoolTimeout,
    httpx.ProxyError,
    httpx.UnsupportedProtocol,
    httpx.LocalProtocolError,
)


def get_rpc_url(network: str) -> str:
    """Get the default JSON-RPC URL for a network name."""
    try:
        return ZKSYNC_RPC_URLS[network.lower()]
    except KeyError:
        raise UnsupportedNetworkError(network)


class ZkSyncProvider:
    """Client for the zkSync JSON-RPC API.

    Example:
        async with ZkSyncProvider.for_network("rinkeby") as provider:
            state = await provider.get_state(address)
    """

    def __init__(
        self,
        rpc_url: str,
        network: str = "rinkeby",
        timeout: float = 30.0,
        poll_interval: float = 5.0,
        receipt_timeout: float = 600.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize provider.

        Args:
            rpc_url: JSON-RPC endpoint
            network: Network name, used for the chain id
            timeout: HTTP request timeout in seconds
            poll_interval: Delay between receipt polls in seconds
            receipt_timeout: Maximum time to wait for a receipt in seconds
            client: Optional pre-built httpx client (tests inject a mock transport)
        """
        self.rpc_url = rpc_url
        self.network = network.lower()
        self.poll_interval = poll_interval
        self.receipt_timeout = receipt_timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._request_id = 0
        self._tokens: Optional[dict[str, Token]] = None
        self._contract_address: Optional[ContractAddress] = None

    @classmethod
    def for_network(cls, network: str, **kwargs) -> "ZkSyncProvider":
        """Build a provider for a known network name."""
        return cls(get_rpc_url(network), network=network, **kwargs)

    @property
    def chain_id(self) -> int:
        return CHAIN_IDS.get(self.network, 0)

    async def __aenter__(self) -> "ZkSyncProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, params: Optional[list] = None) -> Any:
        """Make a JSON-RPC call and return its ``result``."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except _NOT_SENT_ERRORS as e:
            raise ProviderError(f"{method} request to {self.rpc_url} failed: {e}") from e
        except httpx.TransportError as e:
            raise ResponseLostError(method, str(e) or type(e).__name__) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"{method} request to {self.rpc_url} failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"{method} returned invalid JSON: {e}") from e

        if data.get("error"):
            error = data["error"]
            raise RpcError(
                method,
                error.get("code"),
                error.get("message", "unknown error"),
                error.get("data"),
            )

        return data.get("result")

    # ======================
    # Network metadata
    # ======================

    async def get_contract_address(self) -> ContractAddress:
        """Get addresses of the zkSync contracts on the base chain."""
        if self._contract_address is None:
            result = await self._call("contract_address")
            self._contract_address = ContractAddress.from_payload(result)
        return self._contract_address

    async def get_tokens(self) -> dict[str, Token]:
        """Get tokens supported by the network, keyed by symbol."""
        if self._tokens is None:
            result = await self._call("tokens") or {}
            self._tokens = {
                symbol: Token.from_payload(info) for symbol, info in result.items()
            }
        return self._tokens

    async def resolve_token(self, token_like: Union[str, Token]) -> Token:
        """Resolve a symbol or token address to a known token."""
        if isinstance(token_like, Token):
            return token_like
        if token_like.upper() == ETH_TOKEN.symbol or token_like == ETH_TOKEN.address:
            return ETH_TOKEN

        tokens = await self.get_tokens()
        for token in tokens.values():
            if token.symbol.upper() == token_like.upper():
                return token
            if token.address.lower() == token_like.lower():
                return token

        raise ValueError(f"Token {token_like} is not supported on zkSync {self.network}")

    # ======================
    # Accounts and fees
    # ======================

    async def get_state(self, address: str) -> AccountState:
        """Get committed, verified and depositing state for an account."""
        result = await self._call("account_info", [address])
        return AccountState.from_payload(result)

    async def get_transaction_fee(
        self, tx_type: Any, address: str, token_like: Union[str, Token]
    ) -> TransactionFee:
        """Get the fee the network currently asks for an operation.

        Args:
            tx_type: One of Withdraw, FastWithdraw, Transfer, ChangePubKey
            address: Recipient (transfers/withdrawals) or account address
            token_like: Token symbol or address the fee is paid in
        """
        if isinstance(tx_type, str) and tx_type == "ChangePubKey":
            tx_type = {"ChangePubKey": "ECDSA"}
        elif isinstance(tx_type, str) and tx_type not in FEE_KINDS:
            raise ValueError(f"Unknown fee type {tx_type}, expected one of {', '.join(FEE_KINDS)}")

        token = token_like.symbol if isinstance(token_like, Token) else token_like
        result = await self._call("get_tx_fee", [tx_type, address, token])
        return TransactionFee.from_payload(result)

    # ======================
    # Transactions
    # ======================

    async def submit_tx(
        self,
        tx: dict,
        eth_signature: Optional[str] = None,
        fast_processing: bool = False,
    ) -> str:
        """Submit a signed layer-2 transaction and return its hash."""
        signature = (
            {"type": "EthereumSignature", "signature": eth_signature}
            if eth_signature
            else None
        )
        tx_hash = await self._call("tx_submit", [tx, signature, fast_processing])
        logger.info(f"Submitted {tx.get('type')} transaction {tx_hash}")
        return tx_hash

    async def get_tx_receipt(self, tx_hash: str) -> TransactionReceipt:
        result = await self._call("tx_info", [tx_hash])
        return TransactionReceipt.from_payload(result)

    async def get_priority_op_status(self, serial_id: int) -> TransactionReceipt:
        result = await self._call("ethop_info", [serial_id])
        return TransactionReceipt.from_payload(result)

    async def notify_transaction(self, tx_hash: str, action: str = COMMIT) -> TransactionReceipt:
        """Poll until a transaction is committed/verified or rejected."""
        return await self._poll(lambda: self.get_tx_receipt(tx_hash), tx_hash, action)

    async def notify_priority_op(self, serial_id: int, action: str = COMMIT) -> TransactionReceipt:
        """Poll until a priority operation (deposit) is committed/verified."""
        return await self._poll(
            lambda: self.get_priority_op_status(serial_id),
            f"priority op #{serial_id}",
            action,
        )

    async def _poll(self, fetch, reference: str, action: str) -> TransactionReceipt:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.receipt_timeout

        while True:
            receipt = await fetch()
            if receipt.rejected or receipt.reached(action):
                return receipt

            if loop.time() + self.poll_interval > deadline:
                raise ReceiptTimeoutError(reference, action, self.receipt_timeout)

            logger.debug(f"Waiting for {action} of {reference}")
            await asyncio.sleep(self.poll_interval)
