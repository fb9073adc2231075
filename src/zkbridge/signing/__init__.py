"""Layer-2 transaction signing."""

from zkbridge.signing.base import Layer2Signer, derive_seed, sign_eth_message
from zkbridge.signing.zk_crypto import ZkCryptoSigner

__all__ = [
    "Layer2Signer",
    "ZkCryptoSigner",
    "derive_seed",
    "sign_eth_message",
]
