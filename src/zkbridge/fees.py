"""Fee quotes from the zkSync fee estimator."""

import logging

from zkbridge.providers.zksync import ZkSyncProvider
from zkbridge.units import format_units

logger = logging.getLogger(__name__)


async def quote_fee(
    provider: ZkSyncProvider, operation_kind: str, address: str, asset: str = "ETH"
) -> str:
    """Get the total fee (gas + proof) for an operation in whole units.

    Queried fresh on every call; the quote can be stale by the time a
    transaction is submitted.

    Args:
        provider: zkSync provider
        operation_kind: Withdraw, FastWithdraw, Transfer or ChangePubKey
        address: Recipient address for the operation
        asset: Token the fee is paid in

    Returns:
        Total fee as a decimal string, e.g. "0.000183"
    """
    token = await provider.resolve_token(asset)
    fee = await provider.get_transaction_fee(operation_kind, address, token)
    total = format_units(fee.total_fee, token.decimals)
    logger.debug(
        f"{operation_kind} fee for {address}: {total} {token.symbol} "
        f"(gas {fee.gas_fee}, zkp {fee.zkp_fee})"
    )
    return total
