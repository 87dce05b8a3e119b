"""
Error types for the inscription HTLC client.

Every failure reaching the CLI is one of these, so the user can tell a
missing key from a reverted call from an unreachable node.
"""

from typing import Optional


class HTLCError(Exception):
    """Base class for all client errors."""
    category = "Error"
    exit_code = 1


class ConfigError(HTLCError):
    """Missing credential or bad configuration."""
    category = "Config"
    exit_code = 3


class ValidationError(HTLCError, ValueError):
    """Malformed address, hash, amount or timeout."""
    category = "Validation"
    exit_code = 2


class RPCError(HTLCError):
    """Endpoint unreachable, malformed response or receipt timeout."""
    category = "RPC"
    exit_code = 4

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message if code is None else f"{message} (code {code})")


class ContractRevertError(HTLCError):
    """The contract rejected the call."""
    category = "Reverted"
    exit_code = 5

    def __init__(self, message: str, reason: Optional[str] = None,
                 tx_hash: Optional[str] = None):
        self.reason = reason
        self.tx_hash = tx_hash
        super().__init__(message)


class InsufficientFundsError(HTLCError):
    """Balance does not cover value plus gas."""
    category = "Insufficient funds"
    exit_code = 6
