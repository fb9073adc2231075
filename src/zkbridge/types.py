"""Payload types returned by the zkSync JSON-RPC API.

Field names in ``from_payload`` mirror the wire format, e.g. ``account_info``:

    {
        "address": "0xc26f2adeeebbad73f25329ffa12cd3889429b5b6",
        "id": 138,
        "committed": {
            "balances": {"ETH": "100000000000000000"},
            "nonce": 1,
            "pubKeyHash": "sync:de9de11bdad08aa1cdc2beb5b2b7c7f29c10f079"
        },
        "depositing": {"balances": {}},
        "verified": {...same shape as committed...}
    }

and ``get_tx_fee``:

    {
        "feeType": "Withdraw" | "Transfer" | "TransferToNew" | ...,
        "gasTxAmount": "...",   # gas used by the transaction
        "gasPriceWei": "...",
        "gasFee": "...",        # base-chain gas part of the fee
        "zkpFee": "...",        # proof part of the fee
        "totalFee": "..."       # fee to use for the operation
    }
"""

from dataclasses import dataclass, field
from typing import Any, Optional

EMPTY_PUBKEY_HASH = "sync:0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class Token:
    """Token known to the layer-2 network."""

    id: int
    symbol: str
    address: str
    decimals: int

    @property
    def is_eth(self) -> bool:
        return self.id == 0 or self.address == "0x0000000000000000000000000000000000000000"

    @classmethod
    def from_payload(cls, data: dict) -> "Token":
        return cls(
            id=int(data["id"]),
            symbol=data["symbol"],
            address=data["address"],
            decimals=int(data["decimals"]),
        )


ETH_TOKEN = Token(
    id=0,
    symbol="ETH",
    address="0x0000000000000000000000000000000000000000",
    decimals=18,
)


@dataclass
class BalanceView:
    """One view (committed or verified) of an account's balances."""

    balances: dict[str, str] = field(default_factory=dict)
    nonce: int = 0
    pub_key_hash: str = EMPTY_PUBKEY_HASH

    @classmethod
    def from_payload(cls, data: Optional[dict]) -> "BalanceView":
        data = data or {}
        return cls(
            balances=dict(data.get("balances") or {}),
            nonce=int(data.get("nonce") or 0),
            pub_key_hash=data.get("pubKeyHash") or EMPTY_PUBKEY_HASH,
        )


@dataclass
class AccountState:
    """Snapshot of a layer-2 account."""

    address: str
    id: Optional[int]
    committed: BalanceView
    verified: BalanceView
    depositing: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: dict) -> "AccountState":
        depositing = data.get("depositing") or {}
        return cls(
            address=data["address"],
            id=data.get("id"),
            committed=BalanceView.from_payload(data.get("committed")),
            verified=BalanceView.from_payload(data.get("verified")),
            depositing=dict(depositing.get("balances") or {}),
        )


@dataclass
class TransactionFee:
    """Fee quote for a layer-2 operation, amounts in base units."""

    fee_type: Any
    gas_tx_amount: int
    gas_price_wei: int
    gas_fee: int
    zkp_fee: int
    total_fee: int

    @classmethod
    def from_payload(cls, data: dict) -> "TransactionFee":
        return cls(
            fee_type=data.get("feeType"),
            gas_tx_amount=int(data.get("gasTxAmount") or 0),
            gas_price_wei=int(data.get("gasPriceWei") or 0),
            gas_fee=int(data.get("gasFee") or 0),
            zkp_fee=int(data.get("zkpFee") or 0),
            total_fee=int(data["totalFee"]),
        )


@dataclass
class TransactionReceipt:
    """Status of a layer-2 transaction or priority operation."""

    executed: bool
    success: Optional[bool] = None
    fail_reason: Optional[str] = None
    block_number: Optional[int] = None
    committed: bool = False
    verified: bool = False

    @property
    def rejected(self) -> bool:
        return self.executed and self.success is False

    def reached(self, action: str) -> bool:
        """Whether the receipt has reached COMMIT or VERIFY."""
        if action == "VERIFY":
            return self.verified
        return self.committed

    @classmethod
    def from_payload(cls, data: Optional[dict]) -> "TransactionReceipt":
        data = data or {}
        block = data.get("block") or {}
        return cls(
            executed=bool(data.get("executed")),
            success=data.get("success"),
            fail_reason=data.get("failReason"),
            block_number=block.get("blockNumber"),
            committed=bool(block.get("committed")),
            verified=bool(block.get("verified")),
        )


@dataclass(frozen=True)
class ContractAddress:
    """Addresses of the zkSync contracts on the base chain."""

    main_contract: str
    gov_contract: str

    @classmethod
    def from_payload(cls, data: dict) -> "ContractAddress":
        return cls(main_contract=data["mainContract"], gov_contract=data["govContract"])
