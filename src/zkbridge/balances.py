"""Account balance reporting."""

import logging

from zkbridge.units import format_units
from zkbridge.wallet import Layer2Wallet

logger = logging.getLogger(__name__)


async def report_balances(wallet: Layer2Wallet, asset: str = "ETH") -> dict[str, str]:
    """Print the committed and verified balances of ``asset``.

    An asset missing from a view has never been held there and is reported
    as 0. So is a symbol the network does not list as a token, since no
    account can hold it.

    Returns:
        {"committed": "...", "verified": "..."} in whole units
    """
    state = await wallet.get_account_state()
    try:
        token = await wallet.provider.resolve_token(asset)
    except ValueError as e:
        logger.warning(f"{e}; reporting a zero balance")
        token = None
    symbol = token.symbol if token else asset.upper()

    report = {}
    for view_name, view in (("committed", state.committed), ("verified", state.verified)):
        raw = view.balances.get(symbol) if token else None
        value = format_units(raw, token.decimals) if raw is not None else "0"
        report[view_name] = value

        line = f"{view_name.capitalize()} {symbol} balance for {wallet.address}: {value}"
        print(line)
        logger.debug(line)

    return report
