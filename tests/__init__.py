# =============================================================================
# PARAMETRIC LEDGER - TEST SUITE
# =============================================================================
#
# Structure:
#   tests/
#     unit/           - Unit Tests (evaluator, ledger, processor, collaborators)
#     integration/    - Integration Tests (claim cycles end to end, CLI)
#     stress/         - Resource-bound Tests
#
# Usage:
#   pytest tests/                 # All tests
#   pytest tests/unit/            # Unit tests only
#
# =============================================================================
