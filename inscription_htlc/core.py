"""
Core types and helpers for the inscription HTLC client.

Preimage generation, lock-hash derivation and input validation live here.
Nothing in this module touches the network.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Dict, Optional, Sequence, Union

from web3 import Web3

from .errors import ValidationError


# =============================================================================
# Constants
# =============================================================================

# Deployed inscription HTLC on Base mainnet
DEFAULT_CONTRACT_ADDRESS = "0xa7f9f88e753147d69baf8f2fef89a551680dbac1"
DEFAULT_RPC_URL = "https://mainnet.base.org"
DEFAULT_GATEWAY_URL = "https://gateway.irys.xyz/"

NATIVE_SYMBOL = "ETH"
WEI_PER_ETH = 10 ** 18

PREIMAGE_BYTES = 32
TRADE_TIMEOUT_SECONDS = 3600  # 1 hour

ZERO_ADDRESS = "0x" + "0" * 40
MAX_UINT256 = 2 ** 256 - 1

# Values below this are durations, not unix timestamps
_MIN_PLAUSIBLE_TIMESTAMP = 1_000_000_000

Amount = Union[str, int, float, Decimal]


# =============================================================================
# Types
# =============================================================================

@dataclass(frozen=True)
class PreimagePair:
    """A secret and its keccak256 hash, both 0x-prefixed hex."""
    preimage: str
    hash: str

    def to_dict(self) -> Dict[str, str]:
        return {"preimage": self.preimage, "hash": self.hash}


@dataclass
class HTLCTxResult:
    """Result of a confirmed state-changing call."""
    tx_hash: str
    lock_hash: str
    block_number: Optional[int] = None
    gas_used: Optional[int] = None


@dataclass
class LockRecord:
    """A lock as stored by the contract's `locks` mapping."""
    lock_hash: str
    buyer: str
    seller: str
    preimage_hash: str
    timeout: int
    amount: int             # wei
    revealed: bool
    completed: bool
    refunded: bool

    @classmethod
    def from_call(cls, lock_hash: str, result: Sequence[Any]) -> "LockRecord":
        """Build from the 8-tuple returned by `locks(bytes32)`."""
        if len(result) != 8:
            raise ValidationError(f"locks() returned {len(result)} fields, expected 8")
        buyer, seller, preimage_hash, timeout, amount, revealed, completed, refunded = result
        if isinstance(preimage_hash, (bytes, bytearray)):
            preimage_hash = Web3.to_hex(preimage_hash)
        return cls(
            lock_hash=lock_hash,
            buyer=buyer,
            seller=seller,
            preimage_hash=preimage_hash,
            timeout=int(timeout),
            amount=int(amount),
            revealed=bool(revealed),
            completed=bool(completed),
            refunded=bool(refunded),
        )

    @property
    def exists(self) -> bool:
        return int(self.buyer, 16) != 0

    @property
    def status(self) -> str:
        if not self.exists:
            return "not_found"
        if self.refunded:
            return "refunded"
        if self.completed:
            return "completed"
        if self.revealed:
            return "revealed"
        return "locked"

    @property
    def timeout_datetime(self) -> Optional[str]:
        if self.timeout < _MIN_PLAUSIBLE_TIMESTAMP:
            return None
        try:
            return datetime.fromtimestamp(self.timeout, tz=timezone.utc).isoformat()
        except (OverflowError, OSError, ValueError):
            return None


# =============================================================================
# Preimage / Lock Hash
# =============================================================================

def generate_preimage() -> PreimagePair:
    """
    Generate a random 32-byte preimage and its keccak256 hash.

    Returns:
        PreimagePair with 0x-prefixed hex fields
    """
    preimage = secrets.token_bytes(PREIMAGE_BYTES)
    return PreimagePair(
        preimage=Web3.to_hex(preimage),
        hash=Web3.to_hex(Web3.keccak(preimage)),
    )


def verify_preimage(preimage: str, preimage_hash: str) -> bool:
    """Check keccak256(preimage) == preimage_hash. Never raises."""
    try:
        data = parse_hex_bytes(preimage, "preimage")
        expected = parse_bytes32(preimage_hash, "preimage hash")
    except ValidationError:
        return False
    return bytes(Web3.keccak(data)) == expected


def compute_lock_hash(preimage_hash: str, seller: str, timeout: int) -> str:
    """
    Derive the on-chain lock key.

    keccak256(preimageHash[32] || seller left-padded to 32 || timeout as
    big-endian uint256). The deployed contract uses exactly this layout.

    Args:
        preimage_hash: bytes32 hex
        seller: 20-byte address hex
        timeout: integer that will be sent on-chain as `_timeout`

    Returns:
        0x-prefixed lock hash
    """
    hash_bytes = parse_bytes32(preimage_hash, "preimage hash")
    seller_bytes = bytes.fromhex(parse_address(seller)[2:])
    timeout = parse_timeout(timeout)

    payload = (
        hash_bytes
        + seller_bytes.rjust(32, b"\x00")
        + timeout.to_bytes(32, "big")
    )
    return Web3.to_hex(Web3.keccak(payload))


# =============================================================================
# Validation
# =============================================================================

def strip_0x(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


def parse_hex_bytes(value: Union[str, bytes], name: str) -> bytes:
    """Parse a non-empty hex string (0x optional) to bytes."""
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        try:
            raw = bytes.fromhex(strip_0x(value.strip()))
        except ValueError:
            raise ValidationError(f"Invalid {name}: not hex: {value!r}")
    else:
        raise ValidationError(f"Invalid {name}: expected hex string, got {type(value).__name__}")
    if not raw:
        raise ValidationError(f"Invalid {name}: empty")
    return raw


def parse_bytes32(value: Union[str, bytes], name: str = "hash") -> bytes:
    """Parse a bytes32 hex value."""
    raw = parse_hex_bytes(value, name)
    if len(raw) != 32:
        raise ValidationError(f"Invalid {name}: expected 32 bytes, got {len(raw)}")
    return raw


def parse_address(value: str, name: str = "address") -> str:
    """Return the checksum form of a 20-byte hex address."""
    if not isinstance(value, str) or not Web3.is_address(value.strip()):
        raise ValidationError(f"Invalid {name}: {value!r}")
    value = value.strip()
    body = strip_0x(value)
    # Mixed case means EIP-55: it must checksum
    if body != body.lower() and body != body.upper() and not Web3.is_checksum_address(value):
        raise ValidationError(f"Invalid {name}: bad checksum: {value!r}")
    return Web3.to_checksum_address(value)


def parse_timeout(value: Union[int, str]) -> int:
    """Parse a uint256 timeout."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid timeout: {value!r}")
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            raise ValidationError(f"Invalid timeout: {value!r}")
        value = int(text)
    if not isinstance(value, int):
        raise ValidationError(f"Invalid timeout: {value!r}")
    if value < 0 or value > MAX_UINT256:
        raise ValidationError(f"Timeout out of range: {value}")
    return value


def eth_to_wei(amount: Amount) -> int:
    """
    Convert an ETH amount to wei.

    Floats go through str() so 0.01 stays 0.01. Amounts must be positive
    and representable in whole wei.
    """
    if isinstance(amount, bool):
        raise ValidationError(f"Invalid amount: {amount!r}")
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise ValidationError(f"Amount must be a positive number, got {amount!r}")

    with localcontext() as ctx:
        ctx.prec = 100
        wei = value * WEI_PER_ETH
        if wei != wei.to_integral_value():
            raise ValidationError(f"Amount {amount!r} has more than 18 decimals")
        if wei > MAX_UINT256:
            raise ValidationError(f"Amount {amount!r} too large")
    return int(wei)


def wei_to_eth(wei: int) -> Decimal:
    """Convert wei to ETH."""
    if wei == 0:
        return Decimal(0)
    return Web3.from_wei(wei, "ether")


def format_eth(wei: int) -> str:
    """Render wei as a plain ETH string: 1500000000000000000 -> '1.5'."""
    value = wei_to_eth(wei)
    if value == 0:
        return "0"
    return format(value.normalize(), "f")
