"""
UNIT TESTS - LEDGER MODELS
==========================
Tests for ledger/models.py (records and amount domain)
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest

from shared.enums import SkipReason, Verdict
from ledger.exceptions import AmountOverflowError, InvalidAmountError
from ledger.models import (
    MAX_AMOUNT,
    ClaimPayout,
    CycleReport,
    Measurement,
    Policy,
    SkippedPayout,
    ThresholdConfig,
    checked_add,
    claim_reference,
    compute_payout,
    is_uint,
)


class TestAmountDomain:

    def test_is_uint(self):
        assert is_uint(0)
        assert is_uint(MAX_AMOUNT)
        assert not is_uint(-1)
        assert not is_uint(MAX_AMOUNT + 1)
        assert not is_uint(False)
        assert not is_uint(2.0)

    def test_payout_is_double_premium(self):
        assert compute_payout(100) == 200
        assert compute_payout(1) == 2

    def test_payout_at_domain_edge(self):
        assert compute_payout(MAX_AMOUNT // 2) == MAX_AMOUNT - 1

    def test_payout_overflow_raises(self):
        with pytest.raises(AmountOverflowError):
            compute_payout(MAX_AMOUNT // 2 + 1, "whale")

    def test_checked_add_overflow(self):
        assert checked_add(MAX_AMOUNT - 1, 1, "escrow") == MAX_AMOUNT
        with pytest.raises(AmountOverflowError):
            checked_add(MAX_AMOUNT, 1, "escrow")


class TestPolicy:

    def test_mark_paid_returns_new_record(self):
        policy = Policy(identity="alice", premium_paid=100)
        paid = policy.mark_paid(200)

        assert policy.claim_paid is False
        assert paid.claim_paid is True
        assert paid.payout_amount == 200
        assert paid.premium_paid == 100
        assert paid.claim_paid_at is not None

    def test_mark_paid_twice_rejected(self):
        paid = Policy(identity="alice", premium_paid=100).mark_paid(200)
        with pytest.raises(ValueError):
            paid.mark_paid(200)

    def test_policy_is_frozen(self):
        policy = Policy(identity="alice", premium_paid=100)
        with pytest.raises(AttributeError):
            policy.claim_paid = True

    def test_dict_round_trip(self):
        policy = Policy(identity="alice", premium_paid=100, registered_at="2026-01-01T00:00:00+00:00")
        assert Policy.from_dict(policy.to_dict()) == policy


class TestMeasurement:

    def test_negative_values_rejected(self):
        with pytest.raises(InvalidAmountError):
            Measurement(rainfall=-1, temperature=20)

    def test_float_values_rejected(self):
        with pytest.raises(InvalidAmountError):
            Measurement(rainfall=10, temperature=20.5)


class TestCycleReport:

    def test_paid_and_total(self):
        report = CycleReport(
            cycle_id="CYCLE-test",
            verdict=Verdict.BREACH,
            measurement=Measurement(rainfall=30, temperature=38),
            thresholds=ThresholdConfig(50, 35),
            started_at="2026-01-01T00:00:00+00:00",
            payouts=[ClaimPayout("A", 200), ClaimPayout("B", 400)],
            skipped=[SkippedPayout("C", 600, SkipReason.INSUFFICIENT_FUNDS)],
        )

        assert report.paid == ["A", "B"]
        assert report.total_paid == 600
        assert report.is_breach

        data = report.to_dict()
        assert data["verdict"] == "BREACH"
        assert data["skipped"][0]["reason"] == "INSUFFICIENT_FUNDS"

    def test_claim_reference_is_stable(self):
        assert claim_reference("alice") == claim_reference("alice")
        assert claim_reference("alice") != claim_reference("bob")
