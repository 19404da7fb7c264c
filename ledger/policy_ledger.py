# =============================================================================
# PARAMETRIC LEDGER - POLICY LEDGER
# =============================================================================
#
# GOVERNANCE INTENT:
# This module owns ALL persistent ledger state:
# - the ordered registry of policies (registration order)
# - the threshold configuration
# - the admin identity (fixed at construction)
# - ledger-held funds (escrow)
#
# No other component mutates a Policy. The payout processor goes through
# claim_cycle(), settle_claim() and record_skip().
#
# LEDGER RULES:
# - One policy per identity, premium > 0
# - Thresholds change only by the admin, both fields at once
# - Escrow is debited only for acknowledged transfers
# - Every mutation and every read holds the same re-entrant lock
# - While a claim cycle runs, no other mutation is accepted
#
# =============================================================================

import logging
from contextlib import contextmanager
from dataclasses import replace
from threading import RLock
from typing import Dict, Any, Iterator, List, Optional

from shared.enums import AuditEventType
from ledger.audit_log import AuditTrail
from ledger.exceptions import (
    AlreadyRegisteredError,
    CycleInProgressError,
    InsufficientFundsError,
    InvalidIdentityError,
    UnauthorizedError,
    ZeroPremiumError,
)
from ledger.models import (
    Policy,
    SkippedPayout,
    ThresholdConfig,
    checked_add,
    is_uint,
    require_uint,
    utc_now_iso,
)
from ledger.oracle import OracleBase

logger = logging.getLogger(__name__)


def _require_identity(identity: Any) -> str:
    if not isinstance(identity, str) or not identity.strip():
        raise InvalidIdentityError(identity)
    return identity


def _check_restored_policy(policy: Policy) -> None:
    """Reject snapshot entries register() could never have produced."""
    identity = policy.identity
    if not isinstance(identity, str) or not identity.strip():
        raise ValueError(f"Snapshot policy has invalid identity: {identity!r}")
    if not is_uint(policy.premium_paid) or policy.premium_paid == 0:
        raise ValueError(f"Snapshot policy {identity} has invalid premium: {policy.premium_paid!r}")
    if not isinstance(policy.claim_paid, bool):
        raise ValueError(f"Snapshot policy {identity} has invalid claim_paid: {policy.claim_paid!r}")
    if policy.claim_paid and not is_uint(policy.payout_amount):
        raise ValueError(f"Snapshot policy {identity} is paid without a payout amount")


class PolicyLedger:
    """
    The ledger state machine.

    GOVERNANCE:
    - One explicitly owned instance per ledger, no module-level state
    - Failed operations leave the ledger exactly as it was
    - Audit records are appended after the state change, under the lock
    """

    def __init__(
        self,
        oracle: OracleBase,
        rainfall_threshold: int,
        temperature_threshold: int,
        admin: str,
        audit_trail: Optional[AuditTrail] = None,
    ):
        """
        Initialize the ledger.

        Args:
            oracle: Measurement collaborator consulted by claim cycles
            rainfall_threshold: Initial rainfall cutoff (mm)
            temperature_threshold: Initial temperature cutoff (C)
            admin: Admin identity, usually the creator. Immutable.
            audit_trail: Trail to append events to. A fresh in-memory
                         trail is used when omitted.
        """
        self._admin = _require_identity(admin)
        self._thresholds = ThresholdConfig(
            rainfall_threshold=require_uint("rainfall_threshold", rainfall_threshold),
            temperature_threshold=require_uint("temperature_threshold", temperature_threshold),
        )
        self._oracle = oracle
        self._policies: Dict[str, Policy] = {}
        self._escrow_balance = 0
        self._lock = RLock()
        self._cycle_active = False
        self.audit = audit_trail if audit_trail is not None else AuditTrail()

        logger.info(
            f"Ledger created: admin={self._admin} "
            f"thresholds=(rainfall<{self._thresholds.rainfall_threshold}, "
            f"temperature>{self._thresholds.temperature_threshold}) "
            f"oracle={oracle.source_name}"
        )

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _require_idle(self, operation: str) -> None:
        if self._cycle_active:
            raise CycleInProgressError(operation)

    def is_admin(self, caller: Optional[str]) -> bool:
        return caller == self._admin

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def register(self, identity: str, deposit_amount: int) -> Policy:
        """
        Register a policy and escrow its premium.

        Args:
            identity: Participant handle
            deposit_amount: Premium deposited, must be > 0

        Returns:
            The created Policy

        Raises:
            InvalidIdentityError: identity is empty or not a string
            InvalidAmountError: deposit is not an unsigned integer
            ZeroPremiumError: deposit is 0
            AlreadyRegisteredError: identity already holds a policy
            AmountOverflowError: escrow would leave the amount domain
            CycleInProgressError: called from inside a running claim cycle
        """
        with self._lock:
            self._require_idle("register")
            _require_identity(identity)
            require_uint("deposit_amount", deposit_amount, identity)
            if deposit_amount == 0:
                raise ZeroPremiumError(identity)
            if identity in self._policies:
                raise AlreadyRegisteredError(identity)

            new_balance = checked_add(self._escrow_balance, deposit_amount, "escrow", identity)

            policy = Policy(
                identity=identity,
                premium_paid=deposit_amount,
                claim_paid=False,
                registered_at=utc_now_iso(),
            )
            self._policies[identity] = policy
            self._escrow_balance = new_balance

            self.audit.append(AuditEventType.REGISTERED, {
                "identity": identity,
                "premium": deposit_amount,
            })

            logger.info(
                f"Policy registered: {identity} premium={deposit_amount} | "
                f"Escrow: {self._escrow_balance} | Policies: {len(self._policies)}"
            )
            return policy

    def update_thresholds(
        self,
        caller: str,
        new_rainfall: int,
        new_temperature: int,
    ) -> ThresholdConfig:
        """
        Replace both thresholds atomically.

        Raises:
            UnauthorizedError: caller is not the admin
            InvalidAmountError: a threshold is not an unsigned integer
            CycleInProgressError: called from inside a running claim cycle
        """
        with self._lock:
            self._require_idle("update thresholds")
            if not self.is_admin(caller):
                logger.warning(f"Threshold update rejected for non-admin caller {caller}")
                raise UnauthorizedError(caller, "update thresholds")

            thresholds = ThresholdConfig(
                rainfall_threshold=require_uint("rainfall_threshold", new_rainfall),
                temperature_threshold=require_uint("temperature_threshold", new_temperature),
            )
            self._thresholds = thresholds

            self.audit.append(AuditEventType.THRESHOLDS_UPDATED, {
                "rainfall": thresholds.rainfall_threshold,
                "temperature": thresholds.temperature_threshold,
            })

            logger.info(
                f"Thresholds updated: rainfall<{thresholds.rainfall_threshold} "
                f"temperature>{thresholds.temperature_threshold}"
            )
            return thresholds

    def accept_funds(self, identity: str, amount: int) -> int:
        """
        Receive an unsolicited deposit into escrow.

        The registry is not touched. A zero amount is a no-op.

        Returns:
            Escrow balance after the deposit

        Raises:
            InvalidIdentityError, InvalidAmountError, AmountOverflowError,
            CycleInProgressError
        """
        with self._lock:
            self._require_idle("accept funds")
            _require_identity(identity)
            require_uint("amount", amount, identity)
            if amount == 0:
                return self._escrow_balance

            self._escrow_balance = checked_add(self._escrow_balance, amount, "escrow", identity)

            self.audit.append(AuditEventType.FUNDS_RECEIVED, {
                "identity": identity,
                "amount": amount,
            })

            logger.info(f"Funds received: {amount} from {identity} | Escrow: {self._escrow_balance}")
            return self._escrow_balance

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_policy(self, identity: str) -> Optional[Policy]:
        """Policy for identity, or None if not registered."""
        with self._lock:
            return self._policies.get(identity)

    def get_thresholds(self) -> ThresholdConfig:
        with self._lock:
            return self._thresholds

    def get_admin(self) -> str:
        return self._admin

    def get_escrow_balance(self) -> int:
        with self._lock:
            return self._escrow_balance

    def list_policies(self) -> List[Policy]:
        """All policies in registration order."""
        with self._lock:
            return list(self._policies.values())

    def policy_count(self) -> int:
        with self._lock:
            return len(self._policies)

    @property
    def oracle(self) -> OracleBase:
        return self._oracle

    def get_summary(self) -> Dict[str, Any]:
        """
        Get ledger summary for reporting.

        Returns:
            Summary dictionary
        """
        with self._lock:
            paid = [p for p in self._policies.values() if p.claim_paid]
            return {
                "admin": self._admin,
                "oracle": self._oracle.source_name,
                "thresholds": self._thresholds.to_dict(),
                "escrow_balance": self._escrow_balance,
                "policies": len(self._policies),
                "claims_paid": len(paid),
                "total_premiums": sum(p.premium_paid for p in self._policies.values()),
                "total_payouts": sum(p.payout_amount or 0 for p in paid),
                "audit_records": len(self.audit),
            }

    # -------------------------------------------------------------------------
    # Claim cycle support (used by PayoutProcessor)
    # -------------------------------------------------------------------------

    @contextmanager
    def claim_cycle(self) -> Iterator["PolicyLedger"]:
        """
        Hold the ledger exclusively for one claim cycle.

        Other threads block on the lock until the cycle ends. The owning
        thread may read, but any mutation or nested cycle raises
        CycleInProgressError.
        """
        with self._lock:
            self._require_idle("run a claim cycle")
            self._cycle_active = True
            try:
                yield self
            finally:
                self._cycle_active = False

    def unpaid_policies(self) -> List[Policy]:
        """
        Unpaid policies in registration order.

        Walks the registry only, so work is O(number of policies).
        """
        with self._lock:
            return [p for p in self._policies.values() if not p.claim_paid]

    def settle_claim(self, identity: str, amount: int) -> Policy:
        """
        Record an acknowledged payout.

        Marks the policy paid, debits escrow and appends CLAIM_PAID as
        one step. Only valid inside claim_cycle().

        Raises:
            RuntimeError: called outside a claim cycle
            ValueError: identity unknown or already paid
            InsufficientFundsError: escrow below amount
        """
        with self._lock:
            if not self._cycle_active:
                raise RuntimeError("settle_claim is only valid inside a claim cycle")
            policy = self._policies.get(identity)
            if policy is None:
                raise ValueError(f"No policy for {identity}")
            if amount > self._escrow_balance:
                raise InsufficientFundsError(identity, amount, self._escrow_balance)

            paid_policy = policy.mark_paid(amount)
            self._policies[identity] = paid_policy
            self._escrow_balance -= amount

            self.audit.append(AuditEventType.CLAIM_PAID, {
                "identity": identity,
                "amount": amount,
            })

            logger.info(f"Claim paid: {identity} amount={amount} | Escrow: {self._escrow_balance}")
            return paid_policy

    def record_skip(self, skipped: SkippedPayout) -> None:
        """Append PAYOUT_SKIPPED for a payout deferred to a later cycle."""
        with self._lock:
            self.audit.append(AuditEventType.PAYOUT_SKIPPED, skipped.to_dict())
            logger.warning(
                f"Payout skipped: {skipped.identity} amount={skipped.amount} "
                f"reason={skipped.reason.value} {skipped.detail}"
            )

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Serializable copy of the ledger state (policies in order)."""
        with self._lock:
            return {
                "admin": self._admin,
                "thresholds": self._thresholds.to_dict(),
                "escrow_balance": self._escrow_balance,
                "policies": [p.to_dict() for p in self._policies.values()],
            }

    @classmethod
    def from_snapshot(
        cls,
        data: Dict[str, Any],
        oracle: OracleBase,
        audit_trail: Optional[AuditTrail] = None,
    ) -> "PolicyLedger":
        """
        Rebuild a ledger from snapshot().

        Restoring is not registering: no audit records are appended.

        Raises:
            ValueError: duplicate or malformed policy entries
        """
        thresholds = data["thresholds"]
        ledger = cls(
            oracle=oracle,
            rainfall_threshold=thresholds["rainfall_threshold"],
            temperature_threshold=thresholds["temperature_threshold"],
            admin=data["admin"],
            audit_trail=audit_trail,
        )
        for entry in data.get("policies", []):
            policy = Policy.from_dict(entry)
            _check_restored_policy(policy)
            if policy.identity in ledger._policies:
                raise ValueError(f"Duplicate policy in snapshot: {policy.identity}")
            ledger._policies[policy.identity] = policy
        ledger._escrow_balance = require_uint("escrow_balance", data.get("escrow_balance", 0))
        ledger._replay_claims()
        return ledger

    def _replay_claims(self) -> None:
        """
        Apply CLAIM_PAID records the snapshot does not reflect yet.

        A settlement recorded after the last save lives only in the audit
        trail. Replaying it keeps a rerun cycle from paying the claim again.
        """
        for record in self.audit.records(AuditEventType.CLAIM_PAID):
            identity = record.details.get("identity")
            amount = record.details.get("amount")
            policy = self._policies.get(identity)
            if policy is None or policy.claim_paid:
                continue
            if not is_uint(amount) or amount > self._escrow_balance:
                raise ValueError(f"Audit trail claim for {identity} does not fit the snapshot escrow")

            self._policies[identity] = replace(
                policy.mark_paid(amount),
                claim_paid_at=record.timestamp,
            )
            self._escrow_balance -= amount
            logger.warning(f"Replayed claim from audit trail: {identity} amount={amount}")
