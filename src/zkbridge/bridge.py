"""Moving funds between the base chain and zkSync.

Deposit flow:
1. Amount is converted from whole units to base units
2. depositETH / depositERC20 is sent to the zkSync main contract
3. Once mined, the priority operation serial id is read from the contract event
4. ``ethop_info`` is polled until the deposit is committed on layer 2

Only a deposit that was never broadcast, or that reverted, is FAILED.
Anything unknown after broadcast is INDETERMINATE and carries the
base-chain hash.

Withdrawal flow:
1. Amount and fee are rounded down to packable values
2. A signed Withdraw is submitted to the account's own base-chain address
3. The withdrawal is awaited until its block is verified (proof accepted)
"""

import logging
from decimal import Decimal
from typing import Union

from zkbridge.packing import closest_packable_amount, closest_packable_fee
from zkbridge.registration import AccountSession
from zkbridge.result import OperationResult, await_outcome, submission_outcome
from zkbridge.units import format_units, parse_units
from zkbridge.wallet import Layer2Wallet

logger = logging.getLogger(__name__)

Amount = Union[str, Decimal]


async def deposit_to_layer2(
    wallet: Layer2Wallet, asset: str, amount: Amount
) -> OperationResult:
    """Deposit ``amount`` of ``asset`` from the base chain into the wallet's own zkSync account.

    Deposits do not need a registered signing key; depositing is what gives
    a new account its id.

    Returns:
        SUCCESS once committed on zkSync. INDETERMINATE if the deposit was
        broadcast but its inclusion or commit could not be confirmed. FAILED
        if the base-chain transaction could not be sent or reverted.
    """
    token = await wallet.provider.resolve_token(asset)
    value = parse_units(amount, token.decimals)

    logger.info(f"Depositing {amount} {token.symbol} to zkSync for {wallet.address}")
    try:
        deposit = await wallet.deposit_to_sync_from_ethereum(wallet.address, token, value)
    except Exception as e:
        logger.error(f"Deposit of {amount} {token.symbol} failed: {e}")
        return OperationResult.failed("deposit", e, amount=value)

    result = await await_outcome(
        "deposit", deposit.await_receipt, deposit.eth_tx_hash, amount=value
    )
    result.details["serial_id"] = deposit.serial_id
    if result.ok:
        result.message = f"Deposited {format_units(value, token.decimals)} {token.symbol}"
        logger.info(f"{result.message} (priority op #{deposit.serial_id})")
    elif result.is_indeterminate:
        logger.warning(
            f"Error while awaiting confirmation from the zkSync operators; "
            f"deposit {deposit.eth_tx_hash} may still be in flight"
        )
    return result


async def withdraw_to_base_chain(
    session: AccountSession, asset: str, amount: Amount, fee: Amount
) -> OperationResult:
    """Withdraw from zkSync to the account's own base-chain address.

    Waits for the verified receipt, so this returns only after the proof for
    the withdrawal block has been accepted on the base chain.

    Returns:
        SUCCESS once verified, FAILED if submission failed or the network
        rejected the withdrawal, INDETERMINATE if verification could not be
        confirmed in time.
    """
    wallet = session.wallet
    token = await wallet.provider.resolve_token(asset)
    packed_amount = closest_packable_amount(parse_units(amount, token.decimals))
    packed_fee = closest_packable_fee(parse_units(fee, token.decimals))

    logger.info(
        f"Withdrawing {format_units(packed_amount, token.decimals)} {token.symbol} "
        f"(fee {format_units(packed_fee, token.decimals)}) to {wallet.address}"
    )
    try:
        withdraw = await wallet.withdraw_from_sync_to_ethereum(
            wallet.address, token, packed_amount, packed_fee
        )
    except Exception as e:
        return submission_outcome("withdraw", e, amount=packed_amount, fee=packed_fee)

    result = await await_outcome(
        "withdraw",
        withdraw.await_verify_receipt,
        withdraw.tx_hash,
        amount=packed_amount,
        fee=packed_fee,
    )
    if result.ok:
        result.message = "ZKP verification is complete"
        logger.info(f"Withdrawal {withdraw.tx_hash}: {result.message}")
    return result
