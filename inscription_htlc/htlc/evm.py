"""
Inscription HTLC SDK.

Interacts with the inscription/NFT escrow HTLC on Base mainnet.
Contract: 0xa7f9f88e753147d69baf8f2fef89a551680dbac1

Lock lifecycle (enforced by the contract, not here):
    lock -> reveal -> confirmReceipt      (seller paid)
    lock -> refund after timeout          (buyer reclaims)
"""

import logging
from typing import Any, Optional

from ..config import HTLCConfig
from ..core import (
    Amount,
    HTLCTxResult,
    LockRecord,
    compute_lock_hash,
    eth_to_wei,
    parse_address,
    parse_bytes32,
    parse_hex_bytes,
    parse_timeout,
)

log = logging.getLogger(__name__)

# Contract ABI (only the functions we use)
HTLC_ABI = [
    {
        "name": "lock",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "_lockHash", "type": "bytes32"},
            {"name": "_seller", "type": "address"},
            {"name": "_preimageHash", "type": "bytes32"},
            {"name": "_timeout", "type": "uint256"}
        ],
        "outputs": []
    },
    {
        "name": "reveal",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_lockHash", "type": "bytes32"},
            {"name": "_preimage", "type": "bytes"}
        ],
        "outputs": []
    },
    {
        "name": "confirmReceipt",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_lockHash", "type": "bytes32"}],
        "outputs": []
    },
    {
        "name": "refund",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_lockHash", "type": "bytes32"}],
        "outputs": []
    },
    {
        "name": "locks",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "bytes32"}],
        "outputs": [
            {"name": "buyer", "type": "address"},
            {"name": "seller", "type": "address"},
            {"name": "preimageHash", "type": "bytes32"},
            {"name": "timeout", "type": "uint256"},
            {"name": "amount", "type": "uint256"},
            {"name": "revealed", "type": "bool"},
            {"name": "completed", "type": "bool"},
            {"name": "refunded", "type": "bool"}
        ]
    }
]


def _hex32(value: bytes) -> str:
    return "0x" + value.hex()


class InscriptionHTLC:
    """
    Inscription HTLC manager.

    Every write checks for a signing key before validating or touching the
    backend, so a missing key never costs a network round-trip.
    """

    def __init__(self, config: HTLCConfig, backend: Optional[Any] = None):
        """
        Args:
            config: client configuration
            backend: object with call()/transact(); defaults to an EVMClient
        """
        self.config = config
        self._backend = backend

    @property
    def backend(self):
        """Lazy-load the web3 backend."""
        if self._backend is None:
            from ..chains.evm import EVMClient
            self._backend = EVMClient(self.config, HTLC_ABI)
        return self._backend

    def _submit(self, function_name: str, lock_hash: bytes, *args: Any, value: int = 0) -> HTLCTxResult:
        receipt = self.backend.transact(function_name, lock_hash, *args, value=value)
        return HTLCTxResult(
            tx_hash=receipt["tx_hash"],
            lock_hash=_hex32(lock_hash),
            block_number=receipt.get("block_number"),
            gas_used=receipt.get("gas_used"),
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def lock(self, seller: str, preimage_hash: str, timeout: int, amount: Amount) -> HTLCTxResult:
        """
        Lock ETH for a seller.

        Args:
            seller: Address that can be paid once the preimage is revealed
            preimage_hash: keccak256 of the buyer's secret (bytes32 hex)
            timeout: Value sent as `_timeout`, also part of the lock hash
            amount: ETH to lock (decimal, e.g. "0.01")

        Returns:
            HTLCTxResult with the derived lock hash
        """
        self.config.require_private_key()

        seller = parse_address(seller, "seller")
        hash_bytes = parse_bytes32(preimage_hash, "preimage hash")
        timeout = parse_timeout(timeout)
        amount_wei = eth_to_wei(amount)

        lock_hash = compute_lock_hash(_hex32(hash_bytes), seller, timeout)
        log.info(f"Locking {amount} ETH for seller {seller}, lockHash={lock_hash}")

        return self._submit(
            "lock",
            parse_bytes32(lock_hash),
            seller,
            hash_bytes,
            timeout,
            value=amount_wei,
        )

    def reveal(self, lock_hash: str, preimage: str) -> HTLCTxResult:
        """
        Reveal the preimage to release funds.

        The contract checks keccak256(preimage) against the stored hash.
        """
        self.config.require_private_key()

        lock_bytes = parse_bytes32(lock_hash, "lock hash")
        preimage_bytes = parse_hex_bytes(preimage, "preimage")

        log.info(f"Revealing preimage for lockHash={_hex32(lock_bytes)}")
        log.debug(f"Preimage: {_hex32(preimage_bytes)}")
        return self._submit("reveal", lock_bytes, preimage_bytes)

    def confirm_receipt(self, lock_hash: str) -> HTLCTxResult:
        """Seller confirms after reveal and collects the locked amount."""
        self.config.require_private_key()
        lock_bytes = parse_bytes32(lock_hash, "lock hash")
        log.info(f"Confirming receipt for lockHash={_hex32(lock_bytes)}")
        return self._submit("confirmReceipt", lock_bytes)

    def refund(self, lock_hash: str) -> HTLCTxResult:
        """Buyer reclaims the locked amount after the timeout."""
        self.config.require_private_key()
        lock_bytes = parse_bytes32(lock_hash, "lock hash")
        log.info(f"Refunding lockHash={_hex32(lock_bytes)}")
        return self._submit("refund", lock_bytes)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_lock(self, lock_hash: str) -> LockRecord:
        """
        Read a lock record. No key needed, no state changed.

        Unknown lock hashes come back as an all-zero record (status not_found).
        """
        lock_bytes = parse_bytes32(lock_hash, "lock hash")
        result = self.backend.call("locks", lock_bytes)
        return LockRecord.from_call(_hex32(lock_bytes), result)
