"""Error types raised by the node gateway and the derivation engine."""

from typing import Optional

# Bitcoin Core error codes that mean "no such thing" rather than a broken call.
RPC_INVALID_ADDRESS_OR_KEY = -5
RPC_INVALID_PARAMETER = -8

NOT_FOUND_CODES = frozenset({RPC_INVALID_ADDRESS_OR_KEY, RPC_INVALID_PARAMETER})


class BitcoinRPCError(Exception):
    """Base error for everything that goes wrong talking to the node."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class NodeUnavailableError(BitcoinRPCError):
    """Node unreachable, timed out, or rejected our credentials."""


class RPCMethodError(BitcoinRPCError):
    """The node answered with an error object for this method call."""

    def __str__(self) -> str:
        return f"RPC Error {self.code}: {self.message}"


class ResourceNotFoundError(RPCMethodError):
    """Unknown block, transaction or address."""


class AddressScanError(NodeUnavailableError):
    """The UTXO set scan did not complete successfully."""


def error_from_response(code: Optional[int], message: str) -> RPCMethodError:
    """Build the most specific error for a node error object."""
    if code in NOT_FOUND_CODES:
        return ResourceNotFoundError(message, code)
    return RPCMethodError(message, code)
