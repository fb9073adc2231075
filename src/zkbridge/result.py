"""Tri-state result for value-moving operations.

Deposit, transfer and withdrawal all report through ``OperationResult``:

- SUCCESS: the requested receipt state was reached
- INDETERMINATE: the operation was submitted but its outcome is unknown
  (for example the receipt wait timed out); it may still complete
- FAILED: the operation definitely did not complete

Retrying is left to the caller.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from zkbridge.exceptions import (
    OperationFailedError,
    ProviderError,
    ReceiptTimeoutError,
    ResponseLostError,
    TransactionRejectedError,
)

logger = logging.getLogger(__name__)


class OperationStatus(str, Enum):
    """Outcome of a deposit, transfer or withdrawal."""

    SUCCESS = "success"
    INDETERMINATE = "indeterminate"
    FAILED = "failed"


@dataclass
class OperationResult:
    """Result of a deposit, transfer or withdrawal."""

    operation: str
    status: OperationStatus
    tx_hash: Optional[str] = None
    receipt: Optional[Any] = None
    amount: Optional[int] = None       # base units actually submitted
    fee: Optional[int] = None          # base units actually submitted
    message: str = ""
    error: Optional[str] = None
    details: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @property
    def is_indeterminate(self) -> bool:
        return self.status == OperationStatus.INDETERMINATE

    def raise_for_status(self) -> "OperationResult":
        """Raise ``OperationFailedError`` unless the operation succeeded."""
        if not self.ok:
            raise OperationFailedError(self)
        return self

    @classmethod
    def success(cls, operation: str, **kwargs) -> "OperationResult":
        return cls(operation=operation, status=OperationStatus.SUCCESS, **kwargs)

    @classmethod
    def indeterminate(cls, operation: str, error: Exception, **kwargs) -> "OperationResult":
        return cls(
            operation=operation,
            status=OperationStatus.INDETERMINATE,
            error=str(error),
            **kwargs,
        )

    @classmethod
    def failed(cls, operation: str, error: Exception, **kwargs) -> "OperationResult":
        return cls(
            operation=operation,
            status=OperationStatus.FAILED,
            error=str(error),
            **kwargs,
        )


def submission_outcome(operation: str, error: Exception, **kwargs) -> OperationResult:
    """Map an exception raised while submitting onto an ``OperationResult``.

    A request whose response was lost may still have been accepted, so it is
    INDETERMINATE. Anything else raised before the network took the
    transaction is FAILED.
    """
    if isinstance(error, ResponseLostError):
        logger.error(f"{operation.capitalize()} submitted but outcome unknown: {error}")
        return OperationResult.indeterminate(operation, error, **kwargs)

    logger.error(f"{operation.capitalize()} failed: {error}")
    return OperationResult.failed(operation, error, **kwargs)


async def await_outcome(
    operation: str, wait: Callable[[], Awaitable[Any]], tx_hash: str, **kwargs
) -> OperationResult:
    """Await a receipt and map its outcome onto an ``OperationResult``.

    A rejected transaction is FAILED; a timeout or a lost connection while
    waiting is INDETERMINATE, since the transaction may still be processed.
    """
    try:
        receipt = await wait()
    except TransactionRejectedError as e:
        logger.error(f"{operation.capitalize()} {tx_hash} rejected: {e.reason}")
        return OperationResult.failed(operation, e, tx_hash=tx_hash, **kwargs)
    except (ReceiptTimeoutError, ProviderError) as e:
        logger.error(f"{operation.capitalize()} {tx_hash} status unknown: {e}")
        return OperationResult.indeterminate(operation, e, tx_hash=tx_hash, **kwargs)

    return OperationResult.success(operation, tx_hash=tx_hash, receipt=receipt, **kwargs)
