# =============================================================================
# PARAMETRIC LEDGER - EXCEPTIONS
# =============================================================================
#
# GOVERNANCE INTENT:
# These exceptions encode every way a ledger operation can be refused.
# Each exception type has a specific kind and a required response.
#
# EXCEPTION HIERARCHY:
#
# LedgerError (base)
# ├── ValidationError            - rejected before any mutation
# │   ├── AlreadyRegisteredError - identity already holds a policy
# │   ├── ZeroPremiumError       - deposit of zero
# │   ├── InvalidAmountError     - amount is not an unsigned integer
# │   └── InvalidIdentityError   - identity is empty or not a string
# ├── UnauthorizedError          - caller is not the admin
# ├── ResourceError
# │   ├── AmountOverflowError    - arithmetic left the amount domain
# │   └── InsufficientFundsError - escrow cannot cover a payout
# ├── CollaboratorError
# │   ├── OracleUnavailableError - no measurement, cycle aborted
# │   └── SettlementFailedError  - transfer rail refused or broke
# └── CycleInProgressError       - re-entry while a claim cycle is running
#
# RESOURCE and SETTLEMENT errors inside a claim cycle are recorded as
# skips (see payout_processor.py). Everything else reaches the caller.
#
# =============================================================================

from typing import Optional

from shared.enums import ErrorKind


class LedgerError(Exception):
    """
    Base class for all ledger errors.

    GOVERNANCE:
    All ledger errors inherit from this class.
    Every error carries its kind so callers can react per category.
    """

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, identity: Optional[str] = None):
        """
        Initialize ledger error.

        Args:
            message: Error description
            identity: Optional participant identity for context
        """
        self.message = message
        self.identity = identity
        super().__init__(message)

    def __str__(self) -> str:
        if self.identity:
            return f"[{self.identity}] {self.message}"
        return self.message


# =============================================================================
# VALIDATION
# =============================================================================


class ValidationError(LedgerError):
    """Input rejected before any mutation. Retry with corrected input."""

    kind = ErrorKind.VALIDATION


class AlreadyRegisteredError(ValidationError):
    """
    Identity already holds a policy.

    GOVERNANCE:
    At most one policy per identity. The existing policy is untouched.
    """

    def __init__(self, identity: str):
        super().__init__(f"Identity already registered: {identity}", identity)


class ZeroPremiumError(ValidationError):
    """A policy cannot be bought for nothing."""

    def __init__(self, identity: Optional[str] = None):
        super().__init__("Premium must be greater than zero", identity)


class InvalidAmountError(ValidationError):
    """Amount is not a non-negative integer."""

    def __init__(self, field_name: str, value: object, identity: Optional[str] = None):
        super().__init__(
            f"{field_name} must be a non-negative integer, got {value!r}",
            identity
        )
        self.field_name = field_name
        self.value = value


class InvalidIdentityError(ValidationError):
    """Identity is empty or not a string."""

    def __init__(self, identity: object):
        super().__init__(f"Invalid identity: {identity!r}")


# =============================================================================
# AUTHORIZATION
# =============================================================================


class UnauthorizedError(LedgerError):
    """
    Caller is not the admin.

    GOVERNANCE:
    Threshold updates and claim cycles are admin-only.
    Rejected before any mutation and before the oracle is consulted.
    """

    kind = ErrorKind.AUTHORIZATION

    def __init__(self, caller: Optional[str], operation: str):
        super().__init__(f"Caller is not authorized to {operation}", caller)
        self.operation = operation


# =============================================================================
# RESOURCE
# =============================================================================


class ResourceError(LedgerError):
    """Arithmetic or balance limits hit."""

    kind = ErrorKind.RESOURCE


class AmountOverflowError(ResourceError):
    """Result does not fit the ledger amount domain."""

    def __init__(self, operation: str, identity: Optional[str] = None):
        super().__init__(f"Amount overflow in {operation}", identity)
        self.operation = operation


class InsufficientFundsError(ResourceError):
    """Escrow balance is below the requested payout."""

    def __init__(self, identity: Optional[str], required: int, available: int):
        super().__init__(
            f"Insufficient funds: {required} required, {available} available",
            identity
        )
        self.required = required
        self.available = available


# =============================================================================
# COLLABORATOR
# =============================================================================


class CollaboratorError(LedgerError):
    """An external collaborator failed."""

    kind = ErrorKind.COLLABORATOR


class OracleUnavailableError(CollaboratorError):
    """
    The oracle could not supply a measurement.

    GOVERNANCE:
    The claim cycle is aborted with zero mutation. Safe to retry.
    """

    def __init__(self, reason: str):
        super().__init__(f"Oracle unavailable: {reason}")
        self.reason = reason


class SettlementFailedError(CollaboratorError):
    """The settlement rail could not complete a transfer."""

    def __init__(self, identity: Optional[str], reason: str):
        super().__init__(f"Settlement failed: {reason}", identity)
        self.reason = reason


# =============================================================================
# CONCURRENCY
# =============================================================================


class CycleInProgressError(LedgerError):
    """
    Ledger mutation attempted while a claim cycle holds the ledger.

    GOVERNANCE:
    Nothing may interleave with the policy scan of a running cycle.
    This is raised for re-entry from the cycle's own thread, e.g. a
    transfer callback calling back into the ledger.
    """

    kind = ErrorKind.CONCURRENCY

    def __init__(self, operation: str):
        super().__init__(f"Cannot {operation} while a claim cycle is running")
        self.operation = operation
