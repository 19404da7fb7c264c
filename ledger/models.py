# =============================================================================
# PARAMETRIC LEDGER - DATA MODELS
# =============================================================================
#
# GOVERNANCE INTENT:
# These dataclasses define the structure of ledger records.
# All models are IMMUTABLE (frozen=True). State changes replace a record
# as a whole, they never edit it in place.
#
# AMOUNT DOMAIN:
# Amounts are unsigned integers bounded by MAX_AMOUNT. Arithmetic that
# would leave the domain raises AmountOverflowError instead of wrapping.
#
# =============================================================================

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List
import uuid

from shared.enums import SkipReason, Verdict
from ledger.exceptions import AmountOverflowError, InvalidAmountError


# =============================================================================
# AMOUNT DOMAIN
# =============================================================================

# Unsigned 256-bit, the native word of the settlement rail
MAX_AMOUNT = 2 ** 256 - 1

# Fixed payout multiple of premium. Not configurable.
PAYOUT_MULTIPLIER = 2


def is_uint(value: Any) -> bool:
    """True for ints in [0, MAX_AMOUNT]. bool is rejected."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= MAX_AMOUNT
    )


def require_uint(field_name: str, value: Any, identity: Optional[str] = None) -> int:
    """
    Validate an unsigned amount.

    Raises:
        InvalidAmountError: If value is not an int in the amount domain
    """
    if not is_uint(value):
        raise InvalidAmountError(field_name, value, identity)
    return value


def checked_add(a: int, b: int, operation: str, identity: Optional[str] = None) -> int:
    """Add two amounts, raising AmountOverflowError outside the domain."""
    result = a + b
    if result > MAX_AMOUNT:
        raise AmountOverflowError(operation, identity)
    return result


def checked_mul(a: int, b: int, operation: str, identity: Optional[str] = None) -> int:
    """Multiply two amounts, raising AmountOverflowError outside the domain."""
    result = a * b
    if result > MAX_AMOUNT:
        raise AmountOverflowError(operation, identity)
    return result


def compute_payout(premium_paid: int, identity: Optional[str] = None) -> int:
    """
    Payout owed on breach: PAYOUT_MULTIPLIER x premium, in full.

    Raises:
        AmountOverflowError: If the multiple does not fit the amount domain
    """
    return checked_mul(premium_paid, PAYOUT_MULTIPLIER, "payout", identity)


def utc_now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# POLICY
# =============================================================================


@dataclass(frozen=True)
class Policy:
    """
    A registered participant's insurance record.

    GOVERNANCE:
    - premium_paid never changes after creation
    - claim_paid only moves False -> True (see mark_paid)
    """
    identity: str
    premium_paid: int
    claim_paid: bool = False
    registered_at: Optional[str] = None
    claim_paid_at: Optional[str] = None
    payout_amount: Optional[int] = None

    def mark_paid(self, amount: int) -> "Policy":
        """
        Return the paid copy of this policy.

        Raises:
            ValueError: If the policy is already paid
        """
        if self.claim_paid:
            raise ValueError(f"Policy {self.identity} is already paid")
        return replace(
            self,
            claim_paid=True,
            claim_paid_at=utc_now_iso(),
            payout_amount=amount,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "identity": self.identity,
            "premium_paid": self.premium_paid,
            "claim_paid": self.claim_paid,
            "registered_at": self.registered_at,
            "claim_paid_at": self.claim_paid_at,
            "payout_amount": self.payout_amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Policy":
        """Create Policy from dictionary."""
        return cls(
            identity=data["identity"],
            premium_paid=data["premium_paid"],
            claim_paid=data.get("claim_paid", False),
            registered_at=data.get("registered_at"),
            claim_paid_at=data.get("claim_paid_at"),
            payout_amount=data.get("payout_amount"),
        )


# =============================================================================
# THRESHOLDS AND MEASUREMENTS
# =============================================================================


@dataclass(frozen=True)
class ThresholdConfig:
    """
    Policy-breach cutoffs shared by every policy.

    Replaced as a whole by the admin. Never edited field by field.
    """
    rainfall_threshold: int
    temperature_threshold: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rainfall_threshold": self.rainfall_threshold,
            "temperature_threshold": self.temperature_threshold,
        }


@dataclass(frozen=True)
class Measurement:
    """
    One atomic oracle snapshot.

    rainfall in mm, temperature in degrees Celsius, both unsigned.
    """
    rainfall: int
    temperature: int
    source: str = "unknown"
    observed_at: Optional[str] = None

    def __post_init__(self):
        require_uint("rainfall", self.rainfall)
        require_uint("temperature", self.temperature)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rainfall": self.rainfall,
            "temperature": self.temperature,
            "source": self.source,
            "observed_at": self.observed_at,
        }


# =============================================================================
# CLAIM CYCLE RESULTS
# =============================================================================


@dataclass(frozen=True)
class ClaimPayout:
    """A payout that was settled and recorded."""
    identity: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"identity": self.identity, "amount": self.amount}


@dataclass(frozen=True)
class SkippedPayout:
    """
    A payout that could not be made this cycle.

    The policy stays unpaid and is eligible again next cycle.
    amount is None when the payout itself could not be computed.
    """
    identity: str
    amount: Optional[int]
    reason: SkipReason
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "amount": self.amount,
            "reason": self.reason.value,
            "detail": self.detail,
        }


@dataclass
class CycleReport:
    """
    Result of a single claim cycle.

    Contains:
    - verdict: BREACH or NO_BREACH for the whole cycle
    - measurement: The oracle snapshot the verdict was rendered on
    - payouts: Settled payouts, in registration order
    - skipped: Payouts deferred to a later cycle, in registration order
    """
    cycle_id: str
    verdict: Verdict
    measurement: Measurement
    thresholds: ThresholdConfig
    started_at: str
    payouts: List[ClaimPayout] = field(default_factory=list)
    skipped: List[SkippedPayout] = field(default_factory=list)
    completed_at: Optional[str] = None

    @property
    def paid(self) -> List[str]:
        """Identities paid in this cycle, in registration order."""
        return [p.identity for p in self.payouts]

    @property
    def total_paid(self) -> int:
        return sum(p.amount for p in self.payouts)

    @property
    def is_breach(self) -> bool:
        return self.verdict == Verdict.BREACH

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "cycle_id": self.cycle_id,
            "verdict": self.verdict.value,
            "measurement": self.measurement.to_dict(),
            "thresholds": self.thresholds.to_dict(),
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "payouts": [p.to_dict() for p in self.payouts],
            "skipped": [s.to_dict() for s in self.skipped],
            "total_paid": self.total_paid,
        }


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def generate_cycle_id() -> str:
    """
    Generate a unique claim cycle ID.

    Format: CYCLE-{timestamp}-{short_uuid}
    """
    date_part = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    uuid_part = uuid.uuid4().hex[:8]
    return f"CYCLE-{date_part}-{uuid_part}"


def claim_reference(identity: str) -> str:
    """
    Stable settlement reference for a policy's claim.

    One policy is paid at most once, so the reference never needs a
    cycle component. A rail can de-duplicate retried transfers on it.
    """
    return f"CLAIM-{identity}"
