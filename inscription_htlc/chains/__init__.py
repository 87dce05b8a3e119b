"""
Chain clients for the inscription HTLC.

EVMClient wraps web3.py for view calls and signed contract submissions.
"""

from .evm import EVMClient, rpc_errors

__all__ = ["EVMClient", "rpc_errors"]
