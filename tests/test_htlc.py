#!/usr/bin/env python3
"""
InscriptionHTLC tests against an in-memory contract.

Covers the lock -> reveal -> confirmReceipt and lock -> refund lifecycles,
credential checks and read-only status queries.
"""

import os
import sys
import unittest
from unittest.mock import MagicMock

# Add package root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.dirname(__file__))

from web3 import Web3

from fake_contract import BUYER, SELLER, FakeHTLCContract
from inscription_htlc.config import HTLCConfig
from inscription_htlc.core import compute_lock_hash, format_eth, generate_preimage
from inscription_htlc.errors import ConfigError, ContractRevertError, ValidationError
from inscription_htlc.htlc.evm import HTLC_ABI, InscriptionHTLC

TEST_KEY = "0x" + "11" * 32


def make_htlc(private_key=TEST_KEY, backend=None):
    config = HTLCConfig(private_key=private_key)
    backend = backend if backend is not None else FakeHTLCContract()
    return InscriptionHTLC(config, backend=backend), backend


class TestABI(unittest.TestCase):

    def test_function_signatures(self):
        sigs = {
            item["name"]: f"{item['name']}({','.join(i['type'] for i in item['inputs'])})"
            for item in HTLC_ABI
        }
        self.assertEqual(sigs["lock"], "lock(bytes32,address,bytes32,uint256)")
        self.assertEqual(sigs["reveal"], "reveal(bytes32,bytes)")
        self.assertEqual(sigs["confirmReceipt"], "confirmReceipt(bytes32)")
        self.assertEqual(sigs["refund"], "refund(bytes32)")
        self.assertEqual(sigs["locks"], "locks(bytes32)")

    def test_lock_is_payable_and_locks_is_view(self):
        by_name = {item["name"]: item for item in HTLC_ABI}
        self.assertEqual(by_name["lock"]["stateMutability"], "payable")
        self.assertEqual(by_name["locks"]["stateMutability"], "view")
        self.assertEqual(
            [o["type"] for o in by_name["locks"]["outputs"]],
            ["address", "address", "bytes32", "uint256", "uint256", "bool", "bool", "bool"],
        )


class TestLock(unittest.TestCase):

    def test_lock_submits_derived_values(self):
        htlc, fake = make_htlc()
        pair = generate_preimage()

        result = htlc.lock(SELLER, pair.hash, 3600, "0.01")

        expected_lock_hash = compute_lock_hash(pair.hash, SELLER, 3600)
        self.assertEqual(result.lock_hash, expected_lock_hash)
        self.assertEqual(len(fake.transactions), 1)

        tx = fake.transactions[0]
        self.assertEqual(tx["function"], "lock")
        self.assertEqual(tx["value"], 10 ** 16)
        lock_hash, seller, preimage_hash, timeout = tx["args"]
        self.assertEqual("0x" + lock_hash.hex(), expected_lock_hash)
        self.assertEqual(seller, Web3.to_checksum_address(SELLER))
        self.assertEqual("0x" + preimage_hash.hex(), pair.hash)
        self.assertEqual(timeout, 3600)
        self.assertEqual(result.tx_hash, tx["tx_hash"])

    def test_lock_without_key_fails_before_backend(self):
        """Missing credential: no backend access at all."""
        backend = MagicMock()
        htlc, _ = make_htlc(private_key=None, backend=backend)

        with self.assertRaises(ConfigError):
            htlc.lock(SELLER, generate_preimage().hash, 3600, "0.01")
        self.assertEqual(backend.mock_calls, [])

    def test_missing_key_reported_before_bad_input(self):
        htlc, fake = make_htlc(private_key=None)
        with self.assertRaises(ConfigError):
            htlc.lock("not-an-address", "0x12", -1, "abc")
        self.assertEqual(fake.transactions, [])

    def test_invalid_inputs_rejected_before_submit(self):
        htlc, fake = make_htlc()
        pair = generate_preimage()
        bad_calls = [
            ("0x1234", pair.hash, 3600, "0.01"),
            (SELLER, "0x1234", 3600, "0.01"),
            (SELLER, pair.hash, -5, "0.01"),
            (SELLER, pair.hash, 3600, "0"),
            (SELLER, pair.hash, 3600, "lots"),
        ]
        for args in bad_calls:
            with self.assertRaises(ValidationError, msg=repr(args)):
                htlc.lock(*args)
        self.assertEqual(fake.transactions, [])

    def test_duplicate_lock_reverts(self):
        htlc, fake = make_htlc()
        pair = generate_preimage()
        htlc.lock(SELLER, pair.hash, 3600, "0.01")

        with self.assertRaises(ContractRevertError) as ctx:
            htlc.lock(SELLER, pair.hash, 3600, "0.01")
        self.assertEqual(ctx.exception.reason, "Lock exists")
        self.assertEqual(len(fake.transactions), 1)


class TestLifecycle(unittest.TestCase):

    def setUp(self):
        self.htlc, self.fake = make_htlc()
        self.pair = generate_preimage()
        self.lock_hash = self.htlc.lock(SELLER, self.pair.hash, 3600, "1.5").lock_hash

    def test_status_after_lock(self):
        record = self.htlc.get_lock(self.lock_hash)
        self.assertEqual(record.buyer, Web3.to_checksum_address(BUYER))
        self.assertEqual(record.seller, Web3.to_checksum_address(SELLER))
        self.assertEqual(record.preimage_hash, self.pair.hash)
        self.assertEqual(record.amount, 1_500_000_000_000_000_000)
        self.assertEqual(record.status, "locked")

    def test_reveal_then_confirm(self):
        reveal = self.htlc.reveal(self.lock_hash, self.pair.preimage)
        self.assertEqual(reveal.lock_hash, self.lock_hash)
        self.assertTrue(self.htlc.get_lock(self.lock_hash).revealed)

        self.htlc.confirm_receipt(self.lock_hash)
        record = self.htlc.get_lock(self.lock_hash)
        self.assertTrue(record.completed)
        self.assertEqual(record.status, "completed")

    def test_reveal_passes_preimage_bytes(self):
        self.htlc.reveal(self.lock_hash, self.pair.preimage)
        tx = self.fake.transactions[-1]
        self.assertEqual(tx["function"], "reveal")
        self.assertEqual(tx["args"][1], bytes.fromhex(self.pair.preimage[2:]))
        self.assertEqual(tx["value"], 0)

    def test_wrong_preimage_reverts(self):
        with self.assertRaises(ContractRevertError) as ctx:
            self.htlc.reveal(self.lock_hash, generate_preimage().preimage)
        self.assertEqual(ctx.exception.reason, "Invalid preimage")

    def test_double_reveal_reverts(self):
        self.htlc.reveal(self.lock_hash, self.pair.preimage)
        with self.assertRaises(ContractRevertError):
            self.htlc.reveal(self.lock_hash, self.pair.preimage)

    def test_refund_before_timeout_reverts(self):
        with self.assertRaises(ContractRevertError) as ctx:
            self.htlc.refund(self.lock_hash)
        self.assertEqual(ctx.exception.reason, "Not expired")

    def test_refund_after_timeout(self):
        self.fake.now += 3601
        self.htlc.refund(self.lock_hash)
        self.assertEqual(self.htlc.get_lock(self.lock_hash).status, "refunded")

    def test_writes_require_key(self):
        htlc = InscriptionHTLC(HTLCConfig(), backend=self.fake)
        before = len(self.fake.transactions)
        for op, args in (
            (htlc.reveal, (self.lock_hash, self.pair.preimage)),
            (htlc.confirm_receipt, (self.lock_hash,)),
            (htlc.refund, (self.lock_hash,)),
        ):
            with self.assertRaises(ConfigError):
                op(*args)
        self.assertEqual(len(self.fake.transactions), before)

    def test_reveal_validates_inputs(self):
        with self.assertRaises(ValidationError):
            self.htlc.reveal("0x1234", self.pair.preimage)
        with self.assertRaises(ValidationError):
            self.htlc.reveal(self.lock_hash, "")
        with self.assertRaises(ValidationError):
            self.htlc.reveal(self.lock_hash, "0xnothex")


class TestStatus(unittest.TestCase):

    def test_status_needs_no_key_and_writes_nothing(self):
        fake = FakeHTLCContract()
        htlc = InscriptionHTLC(HTLCConfig(private_key=None), backend=fake)

        record = htlc.get_lock("0x" + "cd" * 32)

        self.assertEqual(fake.transactions, [])
        self.assertEqual([name for name, _ in fake.calls], ["locks"])
        self.assertFalse(record.exists)
        self.assertEqual(record.status, "not_found")

    def test_status_only_uses_call(self):
        backend = MagicMock()
        backend.call.return_value = (
            BUYER, SELLER, b"\x01" * 32, 3600, 1_500_000_000_000_000_000, True, False, False,
        )
        htlc = InscriptionHTLC(HTLCConfig(), backend=backend)

        record = htlc.get_lock("cd" * 32)

        backend.call.assert_called_once_with("locks", b"\xcd" * 32)
        backend.transact.assert_not_called()
        self.assertEqual(record.lock_hash, "0x" + "cd" * 32)
        self.assertEqual(record.status, "revealed")
        self.assertEqual(format_eth(record.amount), "1.5")

    def test_bad_lock_hash(self):
        htlc, fake = make_htlc()
        with self.assertRaises(ValidationError):
            htlc.get_lock("0xabc")
        self.assertEqual(fake.calls, [])


if __name__ == "__main__":
    unittest.main()
