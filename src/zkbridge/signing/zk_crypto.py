"""Layer-2 signer backed by the zksync_sdk crypto library.

The zkSync signature scheme lives in the native zks-crypto library, loaded
through ``zksync_sdk``. Install with the ``zksync`` extra and point
``ZK_SYNC_LIBRARY_PATH`` (or ``Settings.zksync_library_path``) at the
shared library.
"""

import logging
from typing import Optional

from eth_account.signers.local import LocalAccount

from zkbridge.exceptions import SignerUnavailableError
from zkbridge.signing.base import Layer2Signer, derive_seed
from zkbridge.types import Token

logger = logging.getLogger(__name__)


def _load_sdk():
    try:
        from zksync_sdk import types as zk_types
        from zksync_sdk.lib import ZkSyncLibrary
        from zksync_sdk.zksync_signer import ZkSyncSigner
    except ImportError as e:
        raise SignerUnavailableError(
            "zksync_sdk is required for layer-2 signing; install zkbridge[zksync]"
        ) from e
    return zk_types, ZkSyncLibrary, ZkSyncSigner


class ZkCryptoSigner(Layer2Signer):
    """Layer2Signer wrapping ``zksync_sdk.ZkSyncSigner``."""

    def __init__(self, sdk_signer, zk_types):
        self._signer = sdk_signer
        self._types = zk_types

    @classmethod
    def from_seed(cls, seed: bytes, library_path: Optional[str] = None) -> "ZkCryptoSigner":
        """Create a signer from a seed (an Ethereum signature of the seed message)."""
        zk_types, ZkSyncLibrary, ZkSyncSigner = _load_sdk()
        library = ZkSyncLibrary(library_path) if library_path else ZkSyncLibrary()
        return cls(ZkSyncSigner.from_seed(library, seed), zk_types)

    @classmethod
    def from_eth_signer(
        cls,
        eth_signer: LocalAccount,
        chain_id: int,
        library_path: Optional[str] = None,
    ) -> "ZkCryptoSigner":
        """Derive the layer-2 key from the base-chain key's seed signature."""
        logger.debug(f"Deriving zkSync signing key for {eth_signer.address}")
        return cls.from_seed(derive_seed(eth_signer, chain_id), library_path)

    def pubkey_hash(self) -> str:
        return self._signer.pubkey_hash_str()

    def _token(self, token: Token):
        return self._types.Token(
            address=token.address,
            id=token.id,
            symbol=token.symbol,
            decimals=token.decimals,
        )

    def _encode(self, tx: dict, token: Token):
        common = dict(
            account_id=tx["accountId"],
            fee=int(tx["fee"]),
            nonce=tx["nonce"],
            valid_from=tx["validFrom"],
            valid_until=tx["validUntil"],
        )
        kind = tx["type"]

        if kind == "Transfer":
            return self._types.Transfer(
                from_address=tx["from"],
                to_address=tx["to"],
                token=self._token(token),
                amount=int(tx["amount"]),
                **common,
            )
        if kind == "Withdraw":
            return self._types.Withdraw(
                from_address=tx["from"],
                to_address=tx["to"],
                token=self._token(token),
                amount=int(tx["amount"]),
                **common,
            )
        if kind == "ChangePubKey":
            return self._types.ChangePubKey(
                account=tx["account"],
                new_pk_hash=tx["newPkHash"],
                token=self._token(token),
                **common,
            )
        raise ValueError(f"Unsupported transaction type {kind}")

    def sign_transaction(self, tx: dict, token: Token) -> dict:
        return self._signer.sign_tx(self._encode(tx, token)).dict()
