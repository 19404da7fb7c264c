# =============================================================================
# PARAMETRIC LEDGER - POLICY AND PAYOUT LEDGER
# =============================================================================
#
# PURPOSE:
# Parametric microinsurance. Participants deposit a premium, an oracle
# reports rainfall and temperature, and the admin-triggered claim cycle
# pays 2x premium, in full and at most once, to every unpaid policy when
# the measured condition breaches the thresholds.
#
# DATA FLOW:
#   caller --register/update_thresholds/accept_funds--> PolicyLedger
#
#   admin --run_claim_cycle--> PayoutProcessor
#                                 |-- oracle.fetch_measurement()
#                                 |-- claim_evaluator.evaluate()
#                                 |-- settlement.transfer()   (per policy)
#                                 +-- PolicyLedger.settle_claim()
#
# ABSOLUTE CONSTRAINTS:
# - Claim cycles walk REGISTERED policies only
# - claim_paid never reverts, premium_paid never changes
# - Escrow is debited only for acknowledged transfers
# - Every state change is recorded in the append-only audit trail
#
# =============================================================================

"""
Parametric Ledger - policy registration, thresholds and claim payouts.

Usage:
    from ledger.policy_ledger import PolicyLedger
    from ledger.payout_processor import PayoutProcessor

    python -m ledger.run --status
"""

__version__ = "0.1.0"

GOVERNANCE_NOTICE = """
================================================================================
PARAMETRIC LEDGER - GOVERNANCE NOTICE
================================================================================

- Payouts are AUTONOMOUS and IRREVERSIBLE
- Each policy is paid at most ONCE, 2x premium, in full
- Only the admin may change thresholds or trigger a claim cycle
- Every state change is written to the append-only audit trail

================================================================================
"""
