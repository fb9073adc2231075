"""Network providers for the base chain and the zkSync layer-2 network."""

from zkbridge.providers.ethereum import EthereumProvider
from zkbridge.providers.factory import resolve_base_chain_provider, resolve_layer2_provider
from zkbridge.providers.zksync import ZkSyncProvider

__all__ = [
    "EthereumProvider",
    "ZkSyncProvider",
    "resolve_base_chain_provider",
    "resolve_layer2_provider",
]
