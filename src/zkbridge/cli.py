"""Command-line interface.

Usage:
    python -m zkbridge balance [--asset ETH]
    python -m zkbridge fee Transfer 0xRecipient [--asset ETH]
    python -m zkbridge register
    python -m zkbridge deposit 0.1 [--asset ETH]
    python -m zkbridge transfer 0xRecipient 0.05 0.001 [--asset ETH]
    python -m zkbridge withdraw 0.05 0.001 [--asset ETH]

The private key is read from ETH_PRIVATE_KEY and networks from
ZKSYNC_NETWORK / ETH_NETWORK.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from eth_account import Account

from zkbridge.balances import report_balances
from zkbridge.bridge import deposit_to_layer2, withdraw_to_base_chain
from zkbridge.config import Settings, get_settings
from zkbridge.exceptions import ZkBridgeError
from zkbridge.fees import quote_fee
from zkbridge.providers.factory import resolve_base_chain_provider, resolve_layer2_provider
from zkbridge.registration import ensure_registered
from zkbridge.result import OperationResult
from zkbridge.transfer import transfer
from zkbridge.wallet import bind_account

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="zkbridge", description="zkSync helper commands")
    parser.add_argument("--network", help="zkSync network (overrides ZKSYNC_NETWORK)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    balance = subparsers.add_parser("balance", help="Show committed and verified balances")
    balance.add_argument("--asset", default="ETH")

    fee = subparsers.add_parser("fee", help="Quote the fee for an operation")
    fee.add_argument("kind", choices=["Transfer", "Withdraw", "FastWithdraw", "ChangePubKey"])
    fee.add_argument("address")
    fee.add_argument("--asset", default="ETH")

    subparsers.add_parser("register", help="Register the account signing key")

    deposit = subparsers.add_parser("deposit", help="Deposit from Ethereum into zkSync")
    deposit.add_argument("amount")
    deposit.add_argument("--asset", default="ETH")

    send = subparsers.add_parser("transfer", help="Transfer to another zkSync account")
    send.add_argument("to")
    send.add_argument("amount")
    send.add_argument("fee")
    send.add_argument("--asset", default="ETH")

    withdraw = subparsers.add_parser("withdraw", help="Withdraw from zkSync to Ethereum")
    withdraw.add_argument("amount")
    withdraw.add_argument("fee")
    withdraw.add_argument("--asset", default="ETH")

    return parser


def _print_result(result: OperationResult) -> int:
    print(f"{result.operation}: {result.status.value}")
    if result.tx_hash:
        print(f"  tx: {result.tx_hash}")
    if result.message:
        print(f"  {result.message}")
    if result.error:
        print(f"  error: {result.error}")
    return 0 if result.ok else 1


async def run(args: argparse.Namespace, settings: Settings) -> int:
    network = args.network or settings.zksync_network

    provider = await resolve_layer2_provider(network, settings.zksync_rpc_url, settings)
    if provider is None:
        print(f"Could not connect to zkSync {network}")
        return 1

    async with provider:
        if args.command == "fee":
            total = await quote_fee(provider, args.kind, args.address, args.asset)
            print(f"{args.kind} fee: {total} {args.asset}")
            return 0

        if not settings.has_private_key:
            print("ETH_PRIVATE_KEY is not set")
            return 1

        eth_provider = None
        if args.command == "deposit":
            eth_provider = await resolve_base_chain_provider(
                settings.base_chain_network, settings.eth_rpc_url, settings
            )
            if eth_provider is None:
                print(f"Could not connect to Ethereum {settings.base_chain_network}")
                return 1

        eth_signer = Account.from_key(settings.eth_private_key)
        wallet = await bind_account(
            eth_signer,
            provider,
            eth_provider,
            library_path=settings.zksync_library_path,
        )

        if args.command == "balance":
            await report_balances(wallet, args.asset)
            return 0

        if args.command == "deposit":
            return _print_result(await deposit_to_layer2(wallet, args.asset, args.amount))

        session = await ensure_registered(wallet)
        if args.command == "register":
            print(f"Account {session.address} registered (id {session.account_id})")
            return 0

        if args.command == "transfer":
            result = await transfer(session, args.to, args.amount, args.fee, args.asset)
        else:
            result = await withdraw_to_base_chain(session, args.asset, args.amount, args.fee)
        return _print_result(result)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return asyncio.run(run(args, settings))
    except (ZkBridgeError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
