#!/usr/bin/env python3
"""
HTLC trading CLI for inscriptions/NFTs.

Usage:
    htlc-trade preimage
    htlc-trade lock <seller> <preimageHash> <timeoutSeconds> <amount>
    htlc-trade reveal <lockHash> <preimage>
    htlc-trade trade <seller> <inscriptionReference> <amount>
    htlc-trade status <lockHash>
    htlc-trade confirm <lockHash>
    htlc-trade refund <lockHash>

Environment:
    PRIVATE_KEY     signing key (lock, reveal, trade, confirm, refund)
    BASE_ETH_RPC    JSON-RPC endpoint (default https://mainnet.base.org)
    CONTRACT        HTLC contract address
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .config import HTLCConfig
from .core import LockRecord, NATIVE_SYMBOL, compute_lock_hash, eth_to_wei, format_eth, generate_preimage
from .errors import HTLCError
from .htlc.evm import InscriptionHTLC
from .trade import execute_trade

log = logging.getLogger(__name__)

PROG = "htlc-trade"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Log to stderr so stdout stays parseable."""
    if level is None:
        level = os.getenv("HTLC_LOG_LEVEL", "WARNING")
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


# =============================================================================
# Output
# =============================================================================

def _flag(value: bool) -> str:
    return "true" if value else "false"


def format_lock_record(record: LockRecord) -> List[str]:
    """Stable `Key: value` lines for a lock record."""
    timeout = str(record.timeout)
    if record.timeout_datetime:
        timeout += f" ({record.timeout_datetime})"
    return [
        "Lock Status:",
        f"  LockHash: {record.lock_hash}",
        f"  Buyer: {record.buyer}",
        f"  Seller: {record.seller}",
        f"  PreimageHash: {record.preimage_hash}",
        f"  Timeout: {timeout}",
        f"  Amount: {format_eth(record.amount)} {NATIVE_SYMBOL}",
        f"  Revealed: {_flag(record.revealed)}",
        f"  Completed: {_flag(record.completed)}",
        f"  Refunded: {_flag(record.refunded)}",
        f"  Status: {record.status}",
    ]


# =============================================================================
# Handlers
# =============================================================================

def cmd_preimage(config: Optional[HTLCConfig]) -> Dict[str, str]:
    pair = generate_preimage()
    print(json.dumps(pair.to_dict(), indent=2))
    return pair.to_dict()


def cmd_lock(config: HTLCConfig, seller: str, preimage_hash: str, timeout: str,
             amount: str, htlc: Optional[InscriptionHTLC] = None):
    config.require_private_key()
    htlc = htlc or InscriptionHTLC(config)

    lock_hash = compute_lock_hash(preimage_hash, seller, timeout)
    eth_to_wei(amount)
    print(f"Locking {amount} {NATIVE_SYMBOL}...")
    print(f"LockHash: {lock_hash}")

    result = htlc.lock(seller, preimage_hash, timeout, amount)
    print(f"TX: {result.tx_hash}")
    print(f"{NATIVE_SYMBOL} locked!")
    return result


def cmd_reveal(config: HTLCConfig, lock_hash: str, preimage: str,
               htlc: Optional[InscriptionHTLC] = None):
    config.require_private_key()
    htlc = htlc or InscriptionHTLC(config)

    print("Revealing preimage...")
    result = htlc.reveal(lock_hash, preimage)
    print(f"TX: {result.tx_hash}")
    print("Funds released!")
    return result


def cmd_trade(config: HTLCConfig, seller: str, inscription: str, amount: str,
              htlc: Optional[InscriptionHTLC] = None):
    htlc = htlc or InscriptionHTLC(config)
    return execute_trade(htlc, seller, inscription, amount, config)


def cmd_status(config: HTLCConfig, lock_hash: str,
               htlc: Optional[InscriptionHTLC] = None) -> LockRecord:
    htlc = htlc or InscriptionHTLC(config)
    record = htlc.get_lock(lock_hash)
    for line in format_lock_record(record):
        print(line)
    return record


def cmd_confirm(config: HTLCConfig, lock_hash: str,
                htlc: Optional[InscriptionHTLC] = None):
    config.require_private_key()
    htlc = htlc or InscriptionHTLC(config)

    print("Confirming receipt...")
    result = htlc.confirm_receipt(lock_hash)
    print(f"TX: {result.tx_hash}")
    print("Receipt confirmed!")
    return result


def cmd_refund(config: HTLCConfig, lock_hash: str,
               htlc: Optional[InscriptionHTLC] = None):
    config.require_private_key()
    htlc = htlc or InscriptionHTLC(config)

    print("Refunding...")
    result = htlc.refund(lock_hash)
    print(f"TX: {result.tx_hash}")
    print("Refunded!")
    return result


# =============================================================================
# Registry
# =============================================================================

@dataclass(frozen=True)
class Command:
    name: str
    args: Tuple[str, ...]
    help: str
    handler: Callable[..., Any]
    uses_config: bool = True

    @property
    def arity(self) -> int:
        return len(self.args)

    def usage(self) -> str:
        return " ".join([PROG, self.name] + [f"<{a}>" for a in self.args])


COMMANDS: Dict[str, Command] = {
    c.name: c for c in (
        Command("preimage", (), "Generate new preimage/hash pair", cmd_preimage, uses_config=False),
        Command("lock", ("seller", "preimageHash", "timeoutSeconds", "amount"),
                "Lock ETH in contract", cmd_lock),
        Command("reveal", ("lockHash", "preimage"), "Reveal preimage to release funds", cmd_reveal),
        Command("trade", ("seller", "inscriptionReference", "amount"), "Full trade workflow", cmd_trade),
        Command("status", ("lockHash",), "Check lock status", cmd_status),
        Command("confirm", ("lockHash",), "Seller confirms receipt after reveal", cmd_confirm),
        Command("refund", ("lockHash",), "Buyer reclaims funds after timeout", cmd_refund),
    )
}


def usage() -> str:
    width = max(len(c.usage()) for c in COMMANDS.values())
    lines = ["Usage:"]
    for command in COMMANDS.values():
        lines.append(f"  {command.usage().ljust(width)}  {command.help}")
    return "\n".join(lines)


def build_parser(command: Command) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=f"{PROG} {command.name}", description=command.help)
    for name in command.args:
        parser.add_argument(name)
    return parser


# =============================================================================
# MAIN
# =============================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    # Unknown/missing command: help only, no config or network
    if not argv or argv[0] not in COMMANDS:
        print(usage())
        return 0

    command = COMMANDS[argv[0]]
    try:
        args = build_parser(command).parse_args(argv[1:])
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 2
    values = [getattr(args, name) for name in command.args]

    try:
        config = HTLCConfig.from_env() if command.uses_config else None
        setup_logging(config.log_level if config else None)
        log.debug(f"Running {command.name} with {config!r}")
        command.handler(config, *values)
    except HTLCError as e:
        log.debug("Command failed", exc_info=True)
        print(f"ERROR: {e.category}: {e}", file=sys.stderr)
        return e.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
