"""
STRESS TESTS - CLAIM CYCLE RESOURCE BOUND
=========================================
A claim cycle's work is proportional to the number of registered
policies, never to the size of the identity space.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import time

import pytest

from ledger.oracle import StaticOracle
from ledger.payout_processor import PayoutProcessor
from ledger.policy_ledger import PolicyLedger
from ledger.settlement import InMemorySettlement


def build(n: int):
    oracle = StaticOracle(rainfall=0, temperature=0)
    ledger = PolicyLedger(oracle, 50, 35, "admin")
    for i in range(n):
        ledger.register(f"0x{i:040x}", 1)
    ledger.accept_funds("reinsurer", n)
    settlement = InMemorySettlement()
    return ledger, settlement, PayoutProcessor(ledger, settlement)


class TestResourceBound:

    @pytest.mark.parametrize("n", [0, 1, 100, 5_000])
    def test_transfers_equal_registered_policies(self, n):
        ledger, settlement, processor = build(n)

        report = processor.run_claim_cycle("admin")

        assert len(report.payouts) == n
        assert settlement.attempts == n
        assert ledger.get_escrow_balance() == 0

    def test_second_cycle_does_no_transfers(self):
        ledger, settlement, processor = build(1_000)
        processor.run_claim_cycle("admin")

        processor.run_claim_cycle("admin")

        assert settlement.attempts == 1_000

    def test_sparse_identities_do_not_widen_the_scan(self):
        """Identities at the far ends of a 160-bit space cost the same as adjacent ones."""
        oracle = StaticOracle(rainfall=0, temperature=0)
        ledger = PolicyLedger(oracle, 50, 35, "admin")
        ledger.register(f"0x{0:040x}", 1)
        ledger.register(f"0x{2 ** 160 - 1:040x}", 1)
        ledger.accept_funds("reinsurer", 2)
        settlement = InMemorySettlement()

        report = PayoutProcessor(ledger, settlement).run_claim_cycle("admin")

        assert len(report.payouts) == 2
        assert settlement.attempts == 2

    def test_cycle_time_scales_linearly(self):
        """10x the policies must not cost anywhere near 100x the time."""
        _, _, small = build(1_000)
        _, _, large = build(10_000)

        start = time.perf_counter()
        small.run_claim_cycle("admin")
        small_elapsed = time.perf_counter() - start

        start = time.perf_counter()
        large.run_claim_cycle("admin")
        large_elapsed = time.perf_counter() - start

        assert large_elapsed < max(small_elapsed, 0.05) * 40
