"""Exceptions raised by zkbridge."""

from typing import Any, Optional


class ZkBridgeError(Exception):
    """Base class for all zkbridge errors."""

    pass


class UnsupportedNetworkError(ZkBridgeError):
    """Raised when a network name has no known endpoint."""

    def __init__(self, network: str, layer: str = "zkSync"):
        self.network = network
        super().__init__(f"No {layer} endpoint known for network '{network}'")


class ProviderError(ZkBridgeError):
    """Raised when a provider request fails at the transport level."""

    pass


class ResponseLostError(ProviderError):
    """Raised when a request was sent but no response came back.

    The server may or may not have acted on the request.
    """

    def __init__(self, method: str, reason: str):
        self.method = method
        super().__init__(f"{method} sent but no response received: {reason}")


class RpcError(ProviderError):
    """Raised when a JSON-RPC call returns an error object."""

    def __init__(self, method: str, code: Optional[int], message: str, data: Any = None):
        self.method = method
        self.code = code
        self.data = data
        super().__init__(f"{method} failed ({code}): {message}")


class SignerUnavailableError(ZkBridgeError):
    """Raised when the layer-2 signing backend cannot be loaded."""

    pass


class UnregisteredAccountError(ZkBridgeError):
    """Raised when the network has not assigned an id to an account."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Unknown account {address}: no account id assigned on zkSync")


class RegistrationError(ZkBridgeError):
    """Raised when a signing key change is rejected."""

    pass


class ReceiptTimeoutError(ZkBridgeError):
    """Raised when a receipt does not reach the requested state in time."""

    def __init__(self, reference: str, action: str, timeout: float):
        self.reference = reference
        self.action = action
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for {action} of {reference}")


class TransactionRejectedError(ZkBridgeError):
    """Raised when the network executes a transaction and marks it failed."""

    def __init__(self, reference: str, reason: Optional[str] = None):
        self.reference = reference
        self.reason = reason
        super().__init__(f"Transaction {reference} rejected: {reason or 'unknown reason'}")


class OperationFailedError(ZkBridgeError):
    """Raised by ``OperationResult.raise_for_status`` for non-successful results."""

    def __init__(self, result):
        self.result = result
        super().__init__(f"{result.operation} {result.status.value}: {result.error or result.message}")
