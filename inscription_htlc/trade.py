"""
Full buyer-side trade workflow.

Generates a fresh preimage, fixes the timeout, derives the lock hash and
prints all of it before the lock is submitted: once funds are escrowed the
preimage is the only way to release them.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .config import HTLCConfig
from .core import Amount, compute_lock_hash, eth_to_wei, generate_preimage, parse_address
from .errors import ValidationError
from .htlc.evm import InscriptionHTLC

log = logging.getLogger(__name__)


@dataclass
class TradeBundle:
    """Everything both parties need to finish a trade."""
    inscription: str
    reference_url: str
    seller: str
    preimage: str
    preimage_hash: str
    lock_hash: str
    timeout: int
    amount_wei: int
    tx_hash: Optional[str] = None


def trade_timeout(config: HTLCConfig, now: Optional[float] = None) -> int:
    """
    Timeout value sent to the contract for a trade.

    relative: the duration itself (what the deployed tooling sends)
    absolute: unix time `trade_timeout` seconds from now
    """
    if config.timeout_mode == "absolute":
        if now is None:
            now = time.time()
        return int(now) + config.trade_timeout
    return config.trade_timeout


def reference_url(config: HTLCConfig, inscription: str) -> str:
    base = config.gateway_url
    if not base.endswith("/"):
        base += "/"
    return base + inscription


def execute_trade(
    htlc: InscriptionHTLC,
    seller: str,
    inscription: str,
    amount: Amount,
    config: HTLCConfig,
    out: Callable[..., None] = print,
    now: Optional[float] = None,
) -> TradeBundle:
    """
    Run one trade: preimage, lock hash, then a single funded lock call.

    Args:
        htlc: HTLC manager (its backend receives the lock)
        seller: Seller's address
        inscription: Inscription tx / id being bought
        amount: ETH to lock
        config: client configuration
        out: print-like sink for the trade report
        now: clock override for absolute timeouts

    Returns:
        TradeBundle, printed once and never persisted
    """
    config.require_private_key()

    seller = parse_address(seller, "seller")
    inscription = (inscription or "").strip()
    if not inscription:
        raise ValidationError("Inscription reference is empty")
    amount_wei = eth_to_wei(amount)

    pair = generate_preimage()
    timeout = trade_timeout(config, now)
    lock_hash = compute_lock_hash(pair.hash, seller, timeout)

    bundle = TradeBundle(
        inscription=inscription,
        reference_url=reference_url(config, inscription),
        seller=seller,
        preimage=pair.preimage,
        preimage_hash=pair.hash,
        lock_hash=lock_hash,
        timeout=timeout,
        amount_wei=amount_wei,
    )

    out("=== HTLC Trade ===")
    out(f"Inscription: {bundle.inscription}")
    out(f"Reference: {bundle.reference_url}")
    out(f"Seller: {bundle.seller}")
    out(f"Preimage (keep secret): {bundle.preimage}")
    out(f"PreimageHash: {bundle.preimage_hash}")
    out(f"Timeout: {bundle.timeout}")
    out(f"LockHash: {bundle.lock_hash}")

    out(f"Locking {amount} ETH...")
    result = htlc.lock(seller, pair.hash, timeout, amount)
    if result.lock_hash != lock_hash:
        # Both sides hash the same inputs; a mismatch means the inputs were altered
        raise ValidationError(f"Lock hash mismatch: {result.lock_hash} != {lock_hash}")
    bundle.tx_hash = result.tx_hash
    log.info(f"Trade locked: lockHash={lock_hash} tx={result.tx_hash}")

    out(f"TX: {result.tx_hash}")
    out("")
    out("=== Share with seller ===")
    out(f"LockHash: {bundle.lock_hash}")
    out(f"TX: {bundle.tx_hash}")
    out("")
    out("=== Keep secret until the inscription is received ===")
    out(f"Preimage: {bundle.preimage}")
    return bundle
