"""
EVM RPC client for the inscription HTLC.

Thin web3.py backend exposing the three capabilities the HTLC layer needs:
view calls, signed contract submissions, and the signer address. Any
object with the same `call` / `transact` methods can stand in for it.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import requests
from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception, Web3RPCError

from ..config import HTLCConfig
from ..errors import ContractRevertError, InsufficientFundsError, RPCError

log = logging.getLogger(__name__)


def _is_insufficient_funds(err: Exception) -> bool:
    return "insufficient funds" in str(err).lower()


@contextmanager
def rpc_errors(action: str) -> Iterator[None]:
    """Translate web3 / transport exceptions into client errors."""
    try:
        yield
    except ContractLogicError as e:
        reason = getattr(e, "message", None) or str(e)
        raise ContractRevertError(f"{action} reverted: {reason}", reason=reason) from e
    except Web3RPCError as e:
        if _is_insufficient_funds(e):
            raise InsufficientFundsError(f"{action}: {e}") from e
        raise RPCError(f"{action} failed: {e}") from e
    except TimeExhausted as e:
        raise RPCError(f"{action}: timed out waiting for receipt") from e
    except (requests.exceptions.RequestException, ConnectionError, TimeoutError) as e:
        raise RPCError(f"{action}: cannot reach RPC endpoint: {e}") from e
    except ValueError as e:
        # Nodes without structured errors surface JSON-RPC errors as ValueError
        if _is_insufficient_funds(e):
            raise InsufficientFundsError(f"{action}: {e}") from e
        raise RPCError(f"{action} failed: {e}") from e
    except Web3Exception as e:
        raise RPCError(f"{action} failed: {e}") from e


class EVMClient:
    """
    web3.py client bound to one contract.

    Web3 and the signing account are created lazily, so constructing the
    client never touches the network or the private key.
    """

    def __init__(self, config: HTLCConfig, abi: list):
        self.config = config
        self.abi = abi
        self._web3: Optional[Web3] = None
        self._contract = None
        self._account = None

    @property
    def web3(self) -> Web3:
        """Lazy-load web3 instance."""
        if self._web3 is None:
            self._web3 = Web3(Web3.HTTPProvider(
                self.config.rpc_url,
                request_kwargs={"timeout": self.config.tx_timeout},
            ))
        return self._web3

    @property
    def contract(self):
        if self._contract is None:
            self._contract = self.web3.eth.contract(
                address=Web3.to_checksum_address(self.config.contract_address),
                abi=self.abi,
            )
        return self._contract

    @property
    def account(self):
        """Signing account. Raises ConfigError when no key is configured."""
        if self._account is None:
            self._account = Account.from_key(self.config.require_private_key())
        return self._account

    @property
    def address(self) -> str:
        return self.account.address

    # =========================================================================
    # Basic Operations
    # =========================================================================

    def get_chain_id(self) -> int:
        if self.config.chain_id is not None:
            return self.config.chain_id
        with rpc_errors("eth_chainId"):
            return self.web3.eth.chain_id

    def get_balance(self, address: str) -> int:
        """Balance in wei."""
        with rpc_errors("eth_getBalance"):
            return self.web3.eth.get_balance(address)

    # =========================================================================
    # Contract Calls
    # =========================================================================

    def call(self, function_name: str, *args: Any) -> Any:
        """View call against the contract."""
        with rpc_errors(f"{function_name}()"):
            return getattr(self.contract.functions, function_name)(*args).call()

    def transact(self, function_name: str, *args: Any, value: int = 0) -> Dict[str, Any]:
        """
        Sign and submit a contract call, then wait for its receipt.

        Args:
            function_name: ABI function name
            *args: ABI-typed arguments
            value: wei to attach

        Returns:
            Dict with tx_hash, block_number, gas_used
        """
        account = self.account
        sender = self.address
        w3 = self.web3
        fn = getattr(self.contract.functions, function_name)(*args)
        action = f"{function_name}()"

        with rpc_errors(action):
            # Simulate first so reverts surface with their reason, before gas is spent
            fn.call({"from": sender, "value": value})

            gas = fn.estimate_gas({"from": sender, "value": value})
            gas_price = int(w3.eth.gas_price * self.config.gas_price_multiplier)

            balance = self.get_balance(sender)
            needed = value + gas * gas_price
            if balance < needed:
                raise InsufficientFundsError(
                    f"{action}: balance {Web3.from_wei(balance, 'ether')} ETH < "
                    f"required {Web3.from_wei(needed, 'ether')} ETH (value + gas)"
                )

            nonce = w3.eth.get_transaction_count(sender, "pending")
            tx = fn.build_transaction({
                "from": sender,
                "value": value,
                "nonce": nonce,
                "gas": gas,
                "gasPrice": gas_price,
                "chainId": self.get_chain_id(),
            })

            signed = account.sign_transaction(tx)
            tx_hash = Web3.to_hex(w3.eth.send_raw_transaction(signed.raw_transaction))
            log.info(f"{function_name} TX: {tx_hash}")

            receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.config.tx_timeout)

        if receipt["status"] != 1:
            raise ContractRevertError(f"{action} transaction reverted", tx_hash=tx_hash)

        log.info(f"{function_name} confirmed in block {receipt['blockNumber']}")
        return {
            "tx_hash": tx_hash,
            "block_number": receipt["blockNumber"],
            "gas_used": receipt["gasUsed"],
        }
