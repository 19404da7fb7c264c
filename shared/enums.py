# =============================================================================
# PARAMETRIC LEDGER - SHARED ENUMS
# =============================================================================
#
# GOVERNANCE:
# These enums define the shared vocabulary across the system.
# They encode the payout model at the type level.
#
# VERDICT ENUM:
# Binary by construction. There is no partial or graduated outcome.
#
# =============================================================================

from enum import Enum


class Component(Enum):
    """
    System components that own a log directory.

    LEDGER:     Policy registry, thresholds, escrow, claim cycles
    ORACLE:     Measurement collaborator
    SETTLEMENT: Fund-transfer collaborator
    CLI:        Command-line operator surface
    """
    LEDGER = "LEDGER"
    ORACLE = "ORACLE"
    SETTLEMENT = "SETTLEMENT"
    CLI = "CLI"


class Verdict(Enum):
    """
    Outcome of a claim evaluation.

    BREACH: The insured condition occurred. Eligible policies are paid.
    NO_BREACH: Nothing happened. The ledger is not touched.

    AUDIT NOTE: There is no "PARTIAL" - the policy model pays in full or not at all.
    """
    BREACH = "BREACH"
    NO_BREACH = "NO_BREACH"


class AuditEventType(Enum):
    """Event types recorded in the append-only audit trail."""
    REGISTERED = "REGISTERED"
    THRESHOLDS_UPDATED = "THRESHOLDS_UPDATED"
    FUNDS_RECEIVED = "FUNDS_RECEIVED"
    CLAIM_PAID = "CLAIM_PAID"
    PAYOUT_SKIPPED = "PAYOUT_SKIPPED"


class SkipReason(Enum):
    """
    Why a payout was skipped during a claim cycle.

    A skipped policy stays unpaid and is eligible again next cycle.
    """
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    OVERFLOW = "OVERFLOW"
    SETTLEMENT_FAILED = "SETTLEMENT_FAILED"


class TransferStatus(Enum):
    """Acknowledgment returned by a settlement rail."""
    OK = "OK"
    FAILED = "FAILED"


class ErrorKind(Enum):
    """
    Error taxonomy.

    VALIDATION:    Bad input, rejected before any mutation
    AUTHORIZATION: Caller is not the admin, rejected before any mutation
    RESOURCE:      Overflow or insufficient funds
    COLLABORATOR:  Oracle or settlement rail failure
    CONCURRENCY:   Operation attempted while a claim cycle is running
    """
    VALIDATION = "VALIDATION"
    AUTHORIZATION = "AUTHORIZATION"
    RESOURCE = "RESOURCE"
    COLLABORATOR = "COLLABORATOR"
    CONCURRENCY = "CONCURRENCY"
