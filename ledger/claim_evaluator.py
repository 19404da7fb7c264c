# =============================================================================
# PARAMETRIC LEDGER - CLAIM EVALUATOR
# =============================================================================
#
# PURE DECISION LOGIC:
# - No state, no side effects, no I/O
# - One verdict per claim cycle, applied to every policy alike
#
# BREACH RULE:
#   rainfall < rainfall_threshold  OR  temperature > temperature_threshold
#
# Equality with a threshold is NOT a breach. Both comparisons are strict.
#
# =============================================================================

from shared.enums import Verdict
from ledger.models import Measurement, ThresholdConfig


def is_drought(measured: Measurement, thresholds: ThresholdConfig) -> bool:
    """Rainfall strictly below its threshold."""
    return measured.rainfall < thresholds.rainfall_threshold


def is_heatwave(measured: Measurement, thresholds: ThresholdConfig) -> bool:
    """Temperature strictly above its threshold."""
    return measured.temperature > thresholds.temperature_threshold


def evaluate(measured: Measurement, thresholds: ThresholdConfig) -> Verdict:
    """
    Map a measurement snapshot to a breach verdict.

    Either condition alone is sufficient.

    Args:
        measured: Oracle snapshot
        thresholds: Current threshold configuration

    Returns:
        Verdict.BREACH or Verdict.NO_BREACH
    """
    if is_drought(measured, thresholds) or is_heatwave(measured, thresholds):
        return Verdict.BREACH
    return Verdict.NO_BREACH
