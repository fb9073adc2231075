"""Base interfaces for layer-2 signing.

Two signatures authorize a layer-2 transaction:
1. The layer-2 signature, produced by a ``Layer2Signer`` over the serialized
   transaction (zkSync's own signature scheme, provided by an external library)
2. An Ethereum signature over a human-readable message, produced with
   eth_account by the account's base-chain key

This module defines the signer interface and builds the Ethereum messages.
"""

import logging
from abc import ABC, abstractmethod

from eth_account.messages import SignableMessage, encode_defunct
from eth_account.signers.local import LocalAccount

from zkbridge.types import Token
from zkbridge.units import format_units

logger = logging.getLogger(__name__)

SEED_MESSAGE = "Access zkSync account.\n\nOnly sign this message for a trusted client!"

# Change pubkey auth data is signed over a zero batch hash
ZERO_BATCH_HASH = b"\x00" * 32


class Layer2Signer(ABC):
    """Abstract layer-2 signer.

    Implementations hold the layer-2 private key and never expose it.
    """

    @abstractmethod
    def pubkey_hash(self) -> str:
        """Layer-2 public key hash in ``sync:<hex>`` form."""
        pass

    @abstractmethod
    def sign_transaction(self, tx: dict, token: Token) -> dict:
        """Sign a layer-2 transaction.

        Args:
            tx: Transaction in JSON-RPC form (Transfer, Withdraw, ChangePubKey)
            token: Token the amount (or fee for ChangePubKey) is denominated in

        Returns:
            Signature object: {"pubKey": "...", "signature": "..."}
        """
        pass


def seed_message(chain_id: int) -> str:
    """Message whose signature seeds the layer-2 private key."""
    if chain_id == 1:
        return SEED_MESSAGE
    return f"{SEED_MESSAGE}\nChain ID: {chain_id}."


def derive_seed(eth_signer: LocalAccount, chain_id: int) -> bytes:
    """Sign the seed message with the base-chain key."""
    signed = eth_signer.sign_message(encode_defunct(text=seed_message(chain_id)))
    return bytes(signed.signature)


def _message_amount(value: int, decimals: int) -> str:
    # Always show a fractional part, "1.0" rather than "1"
    text = format_units(value, decimals)
    return text if "." in text else f"{text}.0"


def transaction_message(
    kind: str, to: str, token_symbol: str, decimals: int, amount: int, fee: int, nonce: int
) -> str:
    """Human-readable message for a Transfer or Withdraw."""
    lines = [f"{kind} {_message_amount(amount, decimals)} {token_symbol} to: {to.lower()}"]
    if fee > 0:
        lines.append(f"Fee: {_message_amount(fee, decimals)} {token_symbol}")
    lines.append(f"Nonce: {nonce}")
    return "\n".join(lines)


def change_pubkey_message(pubkey_hash: str, nonce: int, account_id: int) -> SignableMessage:
    """Binary message authorizing a new layer-2 public key hash."""
    pk_hash = bytes.fromhex(pubkey_hash.removeprefix("sync:"))
    if len(pk_hash) != 20:
        raise ValueError(f"Invalid pubkey hash {pubkey_hash}")
    data = (
        pk_hash
        + nonce.to_bytes(4, "big")
        + account_id.to_bytes(4, "big")
        + ZERO_BATCH_HASH
    )
    return encode_defunct(primitive=data)


def sign_eth_message(eth_signer: LocalAccount, message) -> str:
    """Sign a text or pre-encoded message and return the 0x-prefixed signature."""
    if isinstance(message, str):
        message = encode_defunct(text=message)
    signed = eth_signer.sign_message(message)
    return "0x" + bytes(signed.signature).hex()
