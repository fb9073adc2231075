"""Transfers between zkSync accounts."""

import logging
from decimal import Decimal
from typing import Union

from zkbridge.packing import closest_packable_amount, closest_packable_fee
from zkbridge.registration import AccountSession
from zkbridge.result import OperationResult, await_outcome, submission_outcome
from zkbridge.units import format_units, parse_units

logger = logging.getLogger(__name__)


async def transfer(
    session: AccountSession,
    to_address: str,
    amount: Union[str, Decimal],
    fee: Union[str, Decimal],
    asset: str = "ETH",
) -> OperationResult:
    """Transfer funds to another zkSync account.

    Amount and fee are given in whole units and rounded down to the closest
    packable values (5-byte amount, 2-byte fee) before submission. Only the
    commit is awaited; proof verification is not.
    """
    wallet = session.wallet
    token = await wallet.provider.resolve_token(asset)
    packed_amount = closest_packable_amount(parse_units(amount, token.decimals))
    packed_fee = closest_packable_fee(parse_units(fee, token.decimals))

    try:
        sent = await wallet.sync_transfer(to_address, token, packed_amount, packed_fee)
    except Exception as e:
        return submission_outcome("transfer", e, amount=packed_amount, fee=packed_fee)

    result = await await_outcome(
        "transfer",
        sent.await_receipt,
        sent.tx_hash,
        amount=packed_amount,
        fee=packed_fee,
    )
    if result.ok:
        result.message = (
            f"Transferred {format_units(packed_amount, token.decimals)} {token.symbol} "
            f"to {to_address}"
        )
        logger.info(f"Got transfer receipt: {result.receipt}")
    return result
