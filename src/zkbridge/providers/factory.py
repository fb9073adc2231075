"""Factory for resolving network providers.

Both resolvers fail soft: any connectivity problem is logged once and
``None`` is returned. Callers must check the result before use.
"""

import logging
from typing import Optional

from zkbridge.config import Settings, get_settings
from zkbridge.providers import ethereum, zksync
from zkbridge.providers.ethereum import EthereumProvider
from zkbridge.providers.zksync import ZkSyncProvider

logger = logging.getLogger(__name__)


async def resolve_layer2_provider(
    network_name: str,
    rpc_url: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Optional[ZkSyncProvider]:
    """Get a connected zkSync provider.

    Args:
        network_name: Network name (mainnet, rinkeby, goerli, ...)
        rpc_url: Custom JSON-RPC URL, takes priority over the network default
        settings: Settings to read timeouts from

    Returns:
        ZkSyncProvider, or None if the network could not be reached
    """
    settings = settings or get_settings()
    provider = None

    try:
        provider = ZkSyncProvider(
            rpc_url or zksync.get_rpc_url(network_name),
            network=network_name,
            timeout=settings.http_timeout,
            poll_interval=settings.receipt_poll_interval,
            receipt_timeout=settings.receipt_timeout,
        )
        await provider.get_contract_address()
    except Exception as e:
        logger.error(f"Unable to connect to zkSync ({network_name}): {e}")
        if provider is not None:
            await provider.aclose()
        return None

    logger.info(f"Connected to zkSync {network_name} at {provider.rpc_url}")
    return provider


async def resolve_base_chain_provider(
    network_name: str,
    rpc_url: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Optional[EthereumProvider]:
    """Get a connected Ethereum provider.

    Args:
        network_name: Network name (mainnet, goerli, ...)
        rpc_url: Custom RPC URL, takes priority over Infura and public endpoints
        settings: Settings to read the Infura key and timeouts from

    Returns:
        EthereumProvider, or None if the network could not be reached
    """
    settings = settings or get_settings()

    try:
        provider = EthereumProvider(
            rpc_url or ethereum.get_rpc_url(network_name, settings.infura_api_key),
            network=network_name,
            timeout=settings.http_timeout,
            receipt_timeout=settings.eth_receipt_timeout,
        )
        chain_id = await provider.get_chain_id()
    except Exception as e:
        logger.error(f"Could not connect to Ethereum ({network_name}): {e}")
        return None

    logger.info(f"Connected to Ethereum {network_name} (chain id {chain_id})")
    return provider
