# =============================================================================
# PARAMETRIC LEDGER - SHARED MODULE
# =============================================================================
#
# GOVERNANCE:
# This module contains ONLY shared utilities used by the ledger and its
# collaborators. No business logic lives here.
#
# CONTENTS:
# - Enums (shared type definitions)
# - Logging utilities (separated by component)
#
# =============================================================================

from .enums import (
    AuditEventType,
    Component,
    ErrorKind,
    SkipReason,
    TransferStatus,
    Verdict,
)
from .logging_config import setup_logging, get_component_logger

__all__ = [
    "AuditEventType",
    "Component",
    "ErrorKind",
    "SkipReason",
    "TransferStatus",
    "Verdict",
    "setup_logging",
    "get_component_logger",
]
