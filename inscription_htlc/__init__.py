"""
inscription_htlc - Trustless inscription/NFT trades over an EVM HTLC

A buyer locks ETH against the hash of a secret preimage; revealing the
preimage releases the funds to the seller, and the buyer can refund after
the timeout.

Usage:
    from inscription_htlc import HTLCConfig, InscriptionHTLC
    from inscription_htlc import generate_preimage, compute_lock_hash

    config = HTLCConfig.from_env()
    htlc = InscriptionHTLC(config)

    pair = generate_preimage()
    result = htlc.lock(seller, pair.hash, 3600, "0.01")
    htlc.reveal(result.lock_hash, pair.preimage)
"""

from .core import (
    PreimagePair,
    HTLCTxResult,
    LockRecord,
    generate_preimage,
    verify_preimage,
    compute_lock_hash,
    eth_to_wei,
    wei_to_eth,
    format_eth,
    TRADE_TIMEOUT_SECONDS,
)
from .config import HTLCConfig
from .errors import (
    HTLCError,
    ConfigError,
    ValidationError,
    RPCError,
    ContractRevertError,
    InsufficientFundsError,
)
from .htlc.evm import InscriptionHTLC, HTLC_ABI
from .trade import TradeBundle, execute_trade, trade_timeout

__version__ = "0.1.0"
__all__ = [
    # Core types
    "PreimagePair",
    "HTLCTxResult",
    "LockRecord",
    # Utilities
    "generate_preimage",
    "verify_preimage",
    "compute_lock_hash",
    "eth_to_wei",
    "wei_to_eth",
    "format_eth",
    "TRADE_TIMEOUT_SECONDS",
    # Config
    "HTLCConfig",
    # Errors
    "HTLCError",
    "ConfigError",
    "ValidationError",
    "RPCError",
    "ContractRevertError",
    "InsufficientFundsError",
    # HTLC
    "InscriptionHTLC",
    "HTLC_ABI",
    # Trade
    "TradeBundle",
    "execute_trade",
    "trade_timeout",
]
