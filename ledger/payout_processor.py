# =============================================================================
# PARAMETRIC LEDGER - PAYOUT PROCESSOR
# =============================================================================
#
# GOVERNANCE INTENT:
# This module runs claim cycles: one oracle snapshot, one verdict, one
# pass over the REGISTERED policies, at most one payout per policy ever.
#
# CYCLE STEPS:
# 1. Admin check (before anything else)
# 2. Fetch one measurement - failure aborts with zero mutation
# 3. Verdict via claim_evaluator - NO_BREACH ends the cycle
# 4. For each unpaid policy in registration order:
#    payout = premium x 2 (checked) -> escrow check -> transfer -> settle
# 5. Overflow, insufficient funds and failed transfers are SKIPPED
#    (any exception from the rail counts as a failed transfer):
#    the policy stays unpaid, a PAYOUT_SKIPPED record is appended and
#    the cycle moves on to the next policy
#
# EXACTLY-ONCE:
# - The ledger is held exclusively for the whole cycle
# - claim_paid is set in the same locked step that records the transfer
#   acknowledgment, before any other code can observe the ledger
# - A transfer callback cannot start a nested cycle (CycleInProgressError)
# - The settlement reference is stable per policy, so a retried transfer
#   is de-duplicated by the rail
#
# =============================================================================

import logging
from typing import Optional

from shared.enums import SkipReason, TransferStatus, Verdict
from ledger import claim_evaluator
from ledger.exceptions import (
    AmountOverflowError,
    SettlementFailedError,
    UnauthorizedError,
)
from ledger.models import (
    ClaimPayout,
    CycleReport,
    Policy,
    SkippedPayout,
    claim_reference,
    compute_payout,
    generate_cycle_id,
    utc_now_iso,
)
from ledger.policy_ledger import PolicyLedger
from ledger.settlement import SettlementRail

logger = logging.getLogger(__name__)


class PayoutProcessor:
    """
    Executes admin-triggered claim cycles against one ledger.

    Args:
        ledger: The ledger whose policies are paid
        settlement: Rail that moves payouts to participants
    """

    def __init__(self, ledger: PolicyLedger, settlement: SettlementRail):
        self.ledger = ledger
        self.settlement = settlement

    def run_claim_cycle(self, caller: str) -> CycleReport:
        """
        Run one claim cycle.

        Args:
            caller: Identity triggering the cycle, must be the admin

        Returns:
            CycleReport with payouts and skips in registration order

        Raises:
            UnauthorizedError: caller is not the admin
            OracleUnavailableError: no measurement, nothing was mutated
            CycleInProgressError: a cycle is already running on this thread
        """
        if not self.ledger.is_admin(caller):
            logger.warning(f"Claim cycle rejected for non-admin caller {caller}")
            raise UnauthorizedError(caller, "run a claim cycle")

        with self.ledger.claim_cycle():
            cycle_id = generate_cycle_id()
            started_at = utc_now_iso()

            measured = self.ledger.oracle.fetch_measurement()
            thresholds = self.ledger.get_thresholds()
            verdict = claim_evaluator.evaluate(measured, thresholds)

            report = CycleReport(
                cycle_id=cycle_id,
                verdict=verdict,
                measurement=measured,
                thresholds=thresholds,
                started_at=started_at,
            )

            logger.info(
                f"{cycle_id}: rainfall={measured.rainfall} (<{thresholds.rainfall_threshold}?) "
                f"temperature={measured.temperature} (>{thresholds.temperature_threshold}?) "
                f"-> {verdict.value}"
            )

            if verdict == Verdict.BREACH:
                for policy in self.ledger.unpaid_policies():
                    self._pay_policy(policy, report)

            report.completed_at = utc_now_iso()

        logger.info(
            f"{cycle_id} complete: paid={len(report.payouts)} "
            f"skipped={len(report.skipped)} total={report.total_paid}"
        )
        return report

    def _pay_policy(self, policy: Policy, report: CycleReport) -> None:
        """Pay one policy or record why it was skipped."""
        identity = policy.identity

        try:
            payout = compute_payout(policy.premium_paid, identity)
        except AmountOverflowError as e:
            self._skip(report, identity, None, SkipReason.OVERFLOW, str(e))
            return

        available = self.ledger.get_escrow_balance()
        if payout > available:
            self._skip(
                report, identity, payout, SkipReason.INSUFFICIENT_FUNDS,
                f"{payout} required, {available} available"
            )
            return

        status = self._transfer(identity, payout)
        if status != TransferStatus.OK:
            self._skip(report, identity, payout, SkipReason.SETTLEMENT_FAILED, "transfer not acknowledged")
            return

        self.ledger.settle_claim(identity, payout)
        report.payouts.append(ClaimPayout(identity=identity, amount=payout))

    def _transfer(self, identity: str, amount: int) -> TransferStatus:
        try:
            return self.settlement.transfer(identity, amount, claim_reference(identity))
        except SettlementFailedError as e:
            logger.error(f"Settlement error for {identity}: {e}")
            return TransferStatus.FAILED
        except Exception as e:
            # Unacknowledged: a credited transfer is settled next cycle by its reference
            logger.exception(f"Unexpected settlement error for {identity}: {e}")
            return TransferStatus.FAILED

    def _skip(
        self,
        report: CycleReport,
        identity: str,
        amount: Optional[int],
        reason: SkipReason,
        detail: str,
    ) -> None:
        skipped = SkippedPayout(identity=identity, amount=amount, reason=reason, detail=detail)
        self.ledger.record_skip(skipped)
        report.skipped.append(skipped)
