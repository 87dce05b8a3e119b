"""
HTLC (Hash Time-Locked Contract) client for inscription trades.

The HTLC guarantees:
1. The seller is paid only once the buyer reveals the preimage
2. The buyer can refund after the timeout if the trade stalls
"""

from .evm import HTLC_ABI, InscriptionHTLC

__all__ = ["HTLC_ABI", "InscriptionHTLC"]
