"""
Client configuration.

Built once at startup from the environment and passed to every operation.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .core import (
    DEFAULT_CONTRACT_ADDRESS,
    DEFAULT_GATEWAY_URL,
    DEFAULT_RPC_URL,
    TRADE_TIMEOUT_SECONDS,
    strip_0x,
    parse_address,
)
from .errors import ConfigError, ValidationError

TIMEOUT_MODES = ("relative", "absolute")

# secp256k1 group order; valid keys are 1..n-1
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


@dataclass(repr=False)
class HTLCConfig:
    """HTLC client configuration."""
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    rpc_url: str = DEFAULT_RPC_URL
    private_key: Optional[str] = None  # For signing (lock/reveal/confirm/refund)
    chain_id: Optional[int] = None     # None = ask the node
    tx_timeout: int = 120              # seconds to wait for a receipt
    gas_price_multiplier: float = 1.1
    timeout_mode: str = "relative"
    trade_timeout: int = TRADE_TIMEOUT_SECONDS
    gateway_url: str = DEFAULT_GATEWAY_URL
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HTLCConfig":
        """
        Build config from environment variables (all optional).

        CONTRACT, BASE_ETH_RPC and PRIVATE_KEY match the variables the
        deployed tooling already uses.
        """
        env = os.environ if environ is None else environ

        def _get(name: str, default: str) -> str:
            value = env.get(name)
            return default if value is None or value.strip() == "" else value.strip()

        def _int(name: str, default: Optional[int]) -> Optional[int]:
            raw = env.get(name, "").strip()
            if not raw:
                return default
            try:
                return int(raw, 0)
            except ValueError:
                raise ConfigError(f"{name} must be an integer, got {raw!r}")

        def _float(name: str, default: float) -> float:
            raw = env.get(name, "").strip()
            if not raw:
                return default
            try:
                return float(raw)
            except ValueError:
                raise ConfigError(f"{name} must be a number, got {raw!r}")

        config = cls(
            contract_address=_get("CONTRACT", DEFAULT_CONTRACT_ADDRESS),
            rpc_url=_get("BASE_ETH_RPC", DEFAULT_RPC_URL),
            private_key=env.get("PRIVATE_KEY", "").strip() or None,
            chain_id=_int("CHAIN_ID", None),
            tx_timeout=_int("HTLC_TX_TIMEOUT", 120),
            gas_price_multiplier=_float("HTLC_GAS_PRICE_MULTIPLIER", 1.1),
            timeout_mode=_get("HTLC_TIMEOUT_MODE", "relative").lower(),
            trade_timeout=_int("HTLC_TRADE_TIMEOUT", TRADE_TIMEOUT_SECONDS),
            gateway_url=_get("INSCRIPTION_GATEWAY", DEFAULT_GATEWAY_URL),
            log_level=_get("HTLC_LOG_LEVEL", "WARNING").upper(),
        )
        config.validate()
        return config

    # ---------- Validation ----------

    def validate(self) -> None:
        try:
            parse_address(self.contract_address, "contract address")
        except ValidationError as e:
            raise ConfigError(str(e)) from e
        if not self.rpc_url:
            raise ConfigError("RPC URL is empty")
        if self.timeout_mode not in TIMEOUT_MODES:
            raise ConfigError(
                f"HTLC_TIMEOUT_MODE must be one of {', '.join(TIMEOUT_MODES)}, "
                f"got {self.timeout_mode!r}"
            )
        if self.tx_timeout <= 0:
            raise ConfigError("HTLC_TX_TIMEOUT must be positive")
        if self.trade_timeout <= 0:
            raise ConfigError("HTLC_TRADE_TIMEOUT must be positive")
        if self.gas_price_multiplier < 1.0:
            raise ConfigError("HTLC_GAS_PRICE_MULTIPLIER must be >= 1.0")

    # ---------- Credentials ----------

    @property
    def has_signer(self) -> bool:
        return bool(self.private_key)

    def require_private_key(self) -> str:
        """Return the signing key with 0x prefix, or fail before any network call."""
        if not self.private_key:
            raise ConfigError("PRIVATE_KEY not set")
        body = strip_0x(self.private_key.strip())
        try:
            raw = bytes.fromhex(body)
        except ValueError:
            raw = b""
        if len(body) != 64 or len(raw) != 32:
            raise ConfigError("PRIVATE_KEY is not a valid 32-byte hex key")
        if not 0 < int.from_bytes(raw, "big") < SECP256K1_N:
            raise ConfigError("PRIVATE_KEY is out of range for secp256k1")
        return "0x" + body

    def __repr__(self) -> str:
        return (
            f"HTLCConfig(contract_address={self.contract_address!r}, "
            f"rpc_url={self.rpc_url!r}, signer={'set' if self.has_signer else 'unset'}, "
            f"timeout_mode={self.timeout_mode!r})"
        )
