"""Layer-2 wallet bound to a base-chain signing key.

A ``Layer2Wallet`` builds, signs and submits zkSync transactions for one
account. Amounts handed to it must already be packable; the operations in
``zkbridge.transfer`` and ``zkbridge.bridge`` round them before calling in.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from eth_account.signers.local import LocalAccount

from zkbridge.exceptions import TransactionRejectedError
from zkbridge.packing import is_packable_amount, is_packable_fee
from zkbridge.providers.ethereum import EthereumProvider
from zkbridge.providers.zksync import COMMIT, VERIFY, ZkSyncProvider
from zkbridge.signing.base import (
    Layer2Signer,
    change_pubkey_message,
    sign_eth_message,
    transaction_message,
)
from zkbridge.signing.zk_crypto import ZkCryptoSigner
from zkbridge.types import AccountState, Token, TransactionReceipt

logger = logging.getLogger(__name__)

MAX_TIMESTAMP = 4294967295


@dataclass
class Layer2Transaction:
    """Handle for a submitted layer-2 transaction."""

    tx_hash: str
    provider: ZkSyncProvider

    async def await_receipt(self) -> TransactionReceipt:
        """Wait until the transaction is committed."""
        return await self._wait(COMMIT)

    async def await_verify_receipt(self) -> TransactionReceipt:
        """Wait until the block containing the transaction is proven."""
        return await self._wait(VERIFY)

    async def _wait(self, action: str) -> TransactionReceipt:
        receipt = await self.provider.notify_transaction(self.tx_hash, action)
        if receipt.rejected:
            raise TransactionRejectedError(self.tx_hash, receipt.fail_reason)
        return receipt


@dataclass
class PriorityOperation:
    """Handle for a deposit broadcast on the base chain.

    The serial id is only known once the deposit is mined, so it is read
    from the base-chain receipt before zkSync is polled.
    """

    eth_tx_hash: str
    main_contract: str
    provider: ZkSyncProvider
    eth_provider: EthereumProvider
    serial_id: Optional[int] = None

    async def await_eth_receipt(self) -> int:
        """Wait for the deposit to be mined and return its serial id."""
        if self.serial_id is None:
            self.serial_id = await self.eth_provider.confirm_deposit(
                self.eth_tx_hash, self.main_contract
            )
            logger.info(f"Deposit {self.eth_tx_hash} queued as priority op #{self.serial_id}")
        return self.serial_id

    async def await_receipt(self) -> TransactionReceipt:
        """Wait until the deposit is committed on zkSync."""
        serial_id = await self.await_eth_receipt()
        return await self.provider.notify_priority_op(serial_id, COMMIT)


class Layer2Wallet:
    """zkSync account bound to a base-chain key and a layer-2 signer."""

    def __init__(
        self,
        eth_signer: LocalAccount,
        signer: Layer2Signer,
        provider: ZkSyncProvider,
        eth_provider: Optional[EthereumProvider] = None,
        account_id: Optional[int] = None,
    ):
        self.eth_signer = eth_signer
        self.signer = signer
        self.provider = provider
        self.eth_provider = eth_provider
        self.account_id = account_id

    @classmethod
    async def from_eth_signer(
        cls,
        eth_signer: LocalAccount,
        provider: ZkSyncProvider,
        eth_provider: Optional[EthereumProvider] = None,
        signer: Optional[Layer2Signer] = None,
        library_path: Optional[str] = None,
    ) -> "Layer2Wallet":
        """Bind a base-chain key to its zkSync account.

        Without an explicit ``signer`` the layer-2 key is derived from the
        base-chain key's signature of the seed message.
        """
        if signer is None:
            signer = ZkCryptoSigner.from_eth_signer(eth_signer, provider.chain_id, library_path)

        state = await provider.get_state(eth_signer.address)
        wallet = cls(eth_signer, signer, provider, eth_provider, account_id=state.id)
        logger.info(f"Bound zkSync account {wallet.address} (id {state.id})")
        return wallet

    @property
    def address(self) -> str:
        return self.eth_signer.address

    async def get_account_state(self) -> AccountState:
        return await self.provider.get_state(self.address)

    async def get_account_id(self) -> Optional[int]:
        """Get the network-assigned account id, refreshing it if unknown."""
        if self.account_id is None:
            state = await self.get_account_state()
            self.account_id = state.id
        return self.account_id

    async def get_nonce(self) -> int:
        state = await self.get_account_state()
        return state.committed.nonce

    async def is_signing_key_set(self) -> bool:
        state = await self.get_account_state()
        if self.account_id is None:
            self.account_id = state.id
        return state.committed.pub_key_hash == self.signer.pubkey_hash()

    async def _require_account_id(self) -> int:
        account_id = await self.get_account_id()
        if account_id is None:
            raise ValueError(f"Account {self.address} has no zkSync account id yet")
        return account_id

    @staticmethod
    def _check_packable(amount: Optional[int], fee: int) -> None:
        if amount is not None and not is_packable_amount(amount):
            raise ValueError(f"Amount {amount} is not packable")
        if not is_packable_fee(fee):
            raise ValueError(f"Fee {fee} is not packable")

    async def set_signing_key(
        self, fee_token: Union[str, Token] = "ETH", fee: int = 0, nonce: Optional[int] = None
    ) -> Layer2Transaction:
        """Submit a ChangePubKey that registers this wallet's layer-2 key."""
        self._check_packable(None, fee)
        account_id = await self._require_account_id()
        token = await self.provider.resolve_token(fee_token)
        if nonce is None:
            nonce = await self.get_nonce()

        new_pk_hash = self.signer.pubkey_hash()
        eth_signature = sign_eth_message(
            self.eth_signer, change_pubkey_message(new_pk_hash, nonce, account_id)
        )

        tx = {
            "type": "ChangePubKey",
            "accountId": account_id,
            "account": self.address,
            "newPkHash": new_pk_hash,
            "feeToken": token.id,
            "fee": str(fee),
            "nonce": nonce,
            "validFrom": 0,
            "validUntil": MAX_TIMESTAMP,
            "ethAuthData": {
                "type": "ECDSA",
                "ethSignature": eth_signature,
                "batchHash": "0x" + "00" * 32,
            },
        }
        tx["signature"] = self.signer.sign_transaction(tx, token)

        tx_hash = await self.provider.submit_tx(tx)
        return Layer2Transaction(tx_hash, self.provider)

    async def _submit_value_tx(
        self,
        kind: str,
        to: str,
        token_like: Union[str, Token],
        amount: int,
        fee: int,
        nonce: Optional[int],
        fast_processing: bool = False,
    ) -> Layer2Transaction:
        self._check_packable(amount, fee)
        account_id = await self._require_account_id()
        token = await self.provider.resolve_token(token_like)
        if nonce is None:
            nonce = await self.get_nonce()

        tx = {
            "type": kind,
            "accountId": account_id,
            "from": self.address,
            "to": to,
            "token": token.id,
            "amount": str(amount),
            "fee": str(fee),
            "nonce": nonce,
            "validFrom": 0,
            "validUntil": MAX_TIMESTAMP,
        }
        tx["signature"] = self.signer.sign_transaction(tx, token)
        eth_signature = sign_eth_message(
            self.eth_signer,
            transaction_message(kind, to, token.symbol, token.decimals, amount, fee, nonce),
        )

        tx_hash = await self.provider.submit_tx(tx, eth_signature, fast_processing)
        return Layer2Transaction(tx_hash, self.provider)

    async def sync_transfer(
        self,
        to: str,
        token: Union[str, Token],
        amount: int,
        fee: int,
        nonce: Optional[int] = None,
    ) -> Layer2Transaction:
        """Submit a transfer between two zkSync accounts."""
        return await self._submit_value_tx("Transfer", to, token, amount, fee, nonce)

    async def withdraw_from_sync_to_ethereum(
        self,
        eth_address: str,
        token: Union[str, Token],
        amount: int,
        fee: int,
        nonce: Optional[int] = None,
        fast_processing: bool = False,
    ) -> Layer2Transaction:
        """Submit a withdrawal from zkSync to a base-chain address."""
        return await self._submit_value_tx(
            "Withdraw", eth_address, token, amount, fee, nonce, fast_processing
        )

    async def deposit_to_sync_from_ethereum(
        self,
        deposit_to: str,
        token: Union[str, Token],
        amount: int,
    ) -> PriorityOperation:
        """Broadcast a deposit from the base chain into a zkSync account.

        Returns once the base-chain transaction is broadcast; await the
        returned handle for its inclusion and zkSync commit.
        """
        if self.eth_provider is None:
            raise ValueError("A base-chain provider is required for deposits")

        resolved = await self.provider.resolve_token(token)
        contract = await self.provider.get_contract_address()
        eth_tx_hash = await self.eth_provider.send_deposit(
            self.eth_signer,
            contract.main_contract,
            deposit_to,
            resolved,
            amount,
        )
        return PriorityOperation(
            eth_tx_hash, contract.main_contract, self.provider, self.eth_provider
        )


async def bind_account(
    eth_signer: LocalAccount,
    layer2_provider: ZkSyncProvider,
    eth_provider: Optional[EthereumProvider] = None,
    signer: Optional[Layer2Signer] = None,
    library_path: Optional[str] = None,
) -> Layer2Wallet:
    """Bind a base-chain signing key to a zkSync account handle.

    Errors propagate: a wallet that cannot be bound is unusable downstream.
    """
    return await Layer2Wallet.from_eth_signer(
        eth_signer, layer2_provider, eth_provider, signer, library_path
    )
