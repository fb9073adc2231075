"""Base-chain (Ethereum) provider.

Wraps a web3.py HTTP provider. web3 calls block, so every call is run in the
default executor to keep the event loop responsive.
"""

import asyncio
import logging
from functools import partial
from typing import Optional

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import TimeExhausted
from web3.logs import DISCARD

from zkbridge.exceptions import (
    ProviderError,
    ReceiptTimeoutError,
    TransactionRejectedError,
    UnsupportedNetworkError,
)
from zkbridge.types import Token

logger = logging.getLogger(__name__)

# RPC endpoints
INFURA_URL = "https://{network}.infura.io/v3/{api_key}"

# Public RPC (rate limited)
PUBLIC_RPC_URLS = {
    "mainnet": "https://eth.llamarpc.com",
    "goerli": "https://rpc.ankr.com/eth_goerli",
    "sepolia": "https://rpc.sepolia.org",
    "localhost": "http://127.0.0.1:8545",
}

INFURA_NETWORKS = ("mainnet", "ropsten", "rinkeby", "goerli", "sepolia")

# Main contract gas limits
DEPOSIT_ETH_GAS_LIMIT = 200_000
DEPOSIT_ERC20_GAS_LIMIT = 300_000
APPROVE_GAS_LIMIT = 100_000

MAX_ERC20_APPROVE_AMOUNT = 2**256 - 1

ZKSYNC_MAIN_ABI = [
    {
        "inputs": [{"name": "_zkSyncAddress", "type": "address"}],
        "name": "depositETH",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "_token", "type": "address"},
            {"name": "_amount", "type": "uint104"},
            {"name": "_zkSyncAddress", "type": "address"},
        ],
        "name": "depositERC20",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": False, "name": "sender", "type": "address"},
            {"indexed": False, "name": "serialId", "type": "uint64"},
            {"indexed": False, "name": "opType", "type": "uint8"},
            {"indexed": False, "name": "pubData", "type": "bytes"},
            {"indexed": False, "name": "expirationBlock", "type": "uint256"},
        ],
        "name": "NewPriorityRequest",
        "type": "event",
    },
]

ERC20_ABI = [
    {
        "constant": False,
        "inputs": [
            {"name": "_spender", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [
            {"name": "_owner", "type": "address"},
            {"name": "_spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
]


def get_rpc_url(network: str, infura_api_key: str = "") -> str:
    """Get the RPC URL for a base-chain network name.

    An Infura key takes priority over public endpoints.
    """
    network = network.lower()
    if infura_api_key and network in INFURA_NETWORKS:
        return INFURA_URL.format(network=network, api_key=infura_api_key)
    try:
        return PUBLIC_RPC_URLS[network]
    except KeyError:
        raise UnsupportedNetworkError(network, layer="Ethereum")


class EthereumProvider:
    """Async facade over a web3.py HTTP provider."""

    def __init__(
        self,
        rpc_url: str,
        network: str = "mainnet",
        timeout: float = 30.0,
        receipt_timeout: float = 300.0,
        web3: Optional[Web3] = None,
    ):
        self.rpc_url = rpc_url
        self.network = network.lower()
        self.receipt_timeout = receipt_timeout
        self.web3 = web3 or Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout})
        )

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def get_chain_id(self) -> int:
        return await self._run(lambda: self.web3.eth.chain_id)

    async def _broadcast(self, eth_signer: LocalAccount, tx: dict) -> str:
        """Sign and broadcast a base-chain transaction, returning its hash."""
        signed = eth_signer.sign_transaction(tx)
        tx_hash = await self._run(self.web3.eth.send_raw_transaction, signed.raw_transaction)
        tx_hash = Web3.to_hex(tx_hash)
        logger.info(f"Broadcast base-chain transaction {tx_hash}")
        return tx_hash

    async def _wait_for_receipt(self, tx_hash: str) -> dict:
        """Wait for a broadcast transaction to be mined.

        Raises:
            ReceiptTimeoutError: if it is not mined within ``receipt_timeout``
            ProviderError: if the node could not be asked for the receipt
            TransactionRejectedError: if the transaction reverted
        """
        try:
            receipt = await self._run(
                self.web3.eth.wait_for_transaction_receipt,
                tx_hash,
                timeout=self.receipt_timeout,
            )
        except TimeExhausted as e:
            raise ReceiptTimeoutError(tx_hash, "inclusion", self.receipt_timeout) from e
        except Exception as e:
            raise ProviderError(f"Could not fetch receipt for {tx_hash}: {e}") from e

        if receipt["status"] != 1:
            raise TransactionRejectedError(tx_hash, "reverted on the base chain")
        return receipt

    async def _base_tx(self, eth_signer: LocalAccount, gas: int, value: int = 0) -> dict:
        nonce = await self._run(self.web3.eth.get_transaction_count, eth_signer.address, "pending")
        gas_price = await self._run(lambda: self.web3.eth.gas_price)
        chain_id = await self.get_chain_id()
        return {
            "from": eth_signer.address,
            "nonce": nonce,
            "gas": gas,
            "gasPrice": gas_price,
            "value": value,
            "chainId": chain_id,
        }

    async def approve_erc20(
        self, eth_signer: LocalAccount, token: Token, spender: str, amount: int
    ) -> None:
        """Approve ``spender`` to move ``amount`` of an ERC20 token if needed."""
        contract = self.web3.eth.contract(
            address=Web3.to_checksum_address(token.address), abi=ERC20_ABI
        )
        allowance = await self._run(
            contract.functions.allowance(
                eth_signer.address, Web3.to_checksum_address(spender)
            ).call
        )
        if allowance >= amount:
            return

        logger.info(f"Approving {token.symbol} for zkSync contract {spender}")
        tx = contract.functions.approve(
            Web3.to_checksum_address(spender), MAX_ERC20_APPROVE_AMOUNT
        ).build_transaction(await self._base_tx(eth_signer, APPROVE_GAS_LIMIT))
        await self._wait_for_receipt(await self._broadcast(eth_signer, tx))

    def _main_contract(self, main_contract: str):
        return self.web3.eth.contract(
            address=Web3.to_checksum_address(main_contract), abi=ZKSYNC_MAIN_ABI
        )

    async def send_deposit(
        self,
        eth_signer: LocalAccount,
        main_contract: str,
        deposit_to: str,
        token: Token,
        amount: int,
    ) -> str:
        """Broadcast a deposit into zkSync through the main contract.

        ERC20 deposits first approve the main contract and wait for that
        approval to be mined.

        Returns:
            Base-chain hash of the deposit transaction
        """
        contract = self._main_contract(main_contract)
        recipient = Web3.to_checksum_address(deposit_to)

        if token.is_eth:
            tx = contract.functions.depositETH(recipient).build_transaction(
                await self._base_tx(eth_signer, DEPOSIT_ETH_GAS_LIMIT, value=amount)
            )
        else:
            await self.approve_erc20(eth_signer, token, main_contract, amount)
            tx = contract.functions.depositERC20(
                Web3.to_checksum_address(token.address), amount, recipient
            ).build_transaction(await self._base_tx(eth_signer, DEPOSIT_ERC20_GAS_LIMIT))

        return await self._broadcast(eth_signer, tx)

    async def confirm_deposit(self, tx_hash: str, main_contract: str) -> int:
        """Wait for a broadcast deposit and read its priority operation serial id.

        Raises:
            ReceiptTimeoutError: if the deposit is not mined in time
            ProviderError: if the receipt cannot be fetched or has no
                NewPriorityRequest event
            TransactionRejectedError: if the deposit reverted
        """
        receipt = await self._wait_for_receipt(tx_hash)
        events = self._main_contract(main_contract).events.NewPriorityRequest().process_receipt(
            receipt, errors=DISCARD
        )
        if not events:
            raise ProviderError(f"Deposit receipt {tx_hash} has no NewPriorityRequest event")
        return int(events[0]["args"]["serialId"])
