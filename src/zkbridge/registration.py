"""Signing key registration.

An account must have its layer-2 signing key registered (a ChangePubKey
operation) before it can transfer or withdraw. ``ensure_registered`` is the
only way to obtain an ``AccountSession``, and transfer/withdraw only accept
sessions, so an unregistered wallet cannot reach them.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from zkbridge.exceptions import RegistrationError, TransactionRejectedError, UnregisteredAccountError
from zkbridge.packing import closest_greater_or_equal_packable_fee
from zkbridge.wallet import Layer2Wallet

logger = logging.getLogger(__name__)

_SESSION_TOKEN = object()


@dataclass(frozen=True)
class AccountSession:
    """A bound wallet whose signing key is registered on zkSync."""

    wallet: Layer2Wallet
    account_id: int
    _token: object = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self._token is not _SESSION_TOKEN:
            raise TypeError("AccountSession can only be created by ensure_registered()")

    @property
    def address(self) -> str:
        return self.wallet.address


async def ensure_registered(
    wallet: Layer2Wallet,
    fee_token: str = "ETH",
    fee: Optional[int] = None,
) -> AccountSession:
    """Make sure the wallet's signing key is registered.

    Does nothing if the key is already set. Otherwise submits a ChangePubKey
    and waits for it to be committed.

    Args:
        wallet: Bound layer-2 wallet
        fee_token: Token the ChangePubKey fee is paid in
        fee: Fee in base units; quoted from the network when omitted

    Returns:
        AccountSession for the registered account

    Raises:
        UnregisteredAccountError: if the network has not assigned the account
            an id (nothing has been deposited to it yet)
        RegistrationError: if the ChangePubKey is rejected
    """
    logger.info(f"Registering the {wallet.address} account on zkSync")

    if not await wallet.is_signing_key_set():
        account_id = await wallet.get_account_id()
        if account_id is None:
            raise UnregisteredAccountError(wallet.address)

        if fee is None:
            quote = await wallet.provider.get_transaction_fee(
                "ChangePubKey", wallet.address, fee_token
            )
            fee = closest_greater_or_equal_packable_fee(quote.total_fee)

        change_pubkey = await wallet.set_signing_key(fee_token, fee)
        try:
            receipt = await change_pubkey.await_receipt()
        except TransactionRejectedError as e:
            raise RegistrationError(f"Signing key change for {wallet.address} rejected: {e.reason}") from e

        logger.info(
            f"Signing key set for {wallet.address} in block {receipt.block_number}"
        )
    else:
        logger.debug(f"Signing key already set for {wallet.address}")

    account_id = await wallet.get_account_id()
    return AccountSession(wallet, account_id, _SESSION_TOKEN)
