"""Async helpers for moving funds between Ethereum and zkSync."""

from zkbridge.balances import report_balances
from zkbridge.bridge import deposit_to_layer2, withdraw_to_base_chain
from zkbridge.fees import quote_fee
from zkbridge.providers import resolve_base_chain_provider, resolve_layer2_provider
from zkbridge.registration import AccountSession, ensure_registered
from zkbridge.result import OperationResult, OperationStatus
from zkbridge.transfer import transfer
from zkbridge.wallet import Layer2Wallet, bind_account

__version__ = "0.1.0"

__all__ = [
    "AccountSession",
    "Layer2Wallet",
    "OperationResult",
    "OperationStatus",
    "bind_account",
    "deposit_to_layer2",
    "ensure_registered",
    "quote_fee",
    "report_balances",
    "resolve_base_chain_provider",
    "resolve_layer2_provider",
    "transfer",
    "withdraw_to_base_chain",
]
