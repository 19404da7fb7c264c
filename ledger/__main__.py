# =============================================================================
# PARAMETRIC LEDGER - MODULE ENTRY POINT
# =============================================================================
#
# This file enables `python -m ledger` invocation.
# It delegates to run.py for all CLI functionality.
#
# =============================================================================

from ledger.run import main
import sys

if __name__ == "__main__":
    sys.exit(main())
