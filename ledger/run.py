# =============================================================================
# PARAMETRIC LEDGER - CLI
# =============================================================================
#
# GOVERNANCE INTENT:
# This CLI provides command-line access to the ledger operations.
# State is kept in a JSON snapshot between invocations; the audit trail
# and the settlement journal are append-only JSONL files.
#
# USAGE:
#   python -m ledger.run --init
#   python -m ledger.run --register alice 100
#   python -m ledger.run --fund treasury 1000
#   python -m ledger.run --set-thresholds 50 35 --caller admin
#   python -m ledger.run --run-cycle --caller admin
#   python -m ledger.run --run-cycle --caller admin --measurement 30 38
#   python -m ledger.run --status
#
# =============================================================================

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from ledger import GOVERNANCE_NOTICE
from ledger.config import (
    build_audit_trail,
    build_oracle,
    build_settlement,
    create_ledger,
    load_config,
    resolve_path,
)
from ledger.exceptions import LedgerError
from ledger.oracle import OracleBase, StaticOracle
from ledger.payout_processor import PayoutProcessor
from ledger.policy_ledger import PolicyLedger
from ledger.storage import load_ledger, save_ledger
from shared.enums import Component
from shared.logging_config import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_STATE_PATH = "data/ledger_state.json"

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_REJECTED = 2


# =============================================================================
# CLI BANNER
# =============================================================================

BANNER = """
================================================================================
 PARAMETRIC LEDGER - POLICY AND PAYOUT CLI
================================================================================
"""


# =============================================================================
# HELPERS
# =============================================================================


def _state_path(config: Dict[str, Any]) -> Path:
    return resolve_path(config.get("STATE_PATH") or DEFAULT_STATE_PATH)


def _open_ledger(config: Dict[str, Any], oracle: Optional[OracleBase] = None) -> PolicyLedger:
    return load_ledger(
        _state_path(config),
        oracle or build_oracle(config),
        build_audit_trail(config),
    )


def _print_summary(ledger: PolicyLedger) -> None:
    summary = ledger.get_summary()
    thresholds = summary["thresholds"]
    print("\nLedger Summary:")
    print(f"  Admin:       {summary['admin']}")
    print(f"  Oracle:      {summary['oracle']}")
    print(f"  Thresholds:  rainfall < {thresholds['rainfall_threshold']} | "
          f"temperature > {thresholds['temperature_threshold']}")
    print(f"  Escrow:      {summary['escrow_balance']}")
    print(f"  Policies:    {summary['policies']} ({summary['claims_paid']} paid)")
    print(f"  Premiums:    {summary['total_premiums']}")
    print(f"  Payouts:     {summary['total_payouts']}")
    print(f"  Audit trail: {summary['audit_records']} records")
    print()


# =============================================================================
# CLI COMMANDS
# =============================================================================


def cmd_init(config: Dict[str, Any], force: bool = False) -> int:
    """Create a fresh ledger snapshot."""
    path = _state_path(config)
    if path.exists() and not force:
        print(f"Ledger already exists at {path} (use --force to replace)")
        return EXIT_USAGE

    ledger = create_ledger(config)
    save_ledger(ledger, path, "init")
    print(f"Ledger created at {path}")
    _print_summary(ledger)
    return EXIT_OK


def cmd_register(config: Dict[str, Any], identity: str, amount: int) -> int:
    ledger = _open_ledger(config)
    policy = ledger.register(identity, amount)
    save_ledger(ledger, _state_path(config), f"register {identity}")
    print(f"REGISTERED: {policy.identity} | premium {policy.premium_paid}")
    return EXIT_OK


def cmd_fund(config: Dict[str, Any], identity: str, amount: int) -> int:
    ledger = _open_ledger(config)
    balance = ledger.accept_funds(identity, amount)
    save_ledger(ledger, _state_path(config), f"funds from {identity}")
    print(f"FUNDS RECEIVED: {amount} from {identity} | escrow {balance}")
    return EXIT_OK


def cmd_set_thresholds(config: Dict[str, Any], caller: str, rainfall: int, temperature: int) -> int:
    ledger = _open_ledger(config)
    thresholds = ledger.update_thresholds(caller, rainfall, temperature)
    save_ledger(ledger, _state_path(config), "thresholds updated")
    print(f"THRESHOLDS: rainfall < {thresholds.rainfall_threshold} | "
          f"temperature > {thresholds.temperature_threshold}")
    return EXIT_OK


def cmd_run_cycle(config: Dict[str, Any], caller: str, measurement: Optional[list] = None) -> int:
    """
    Run one claim cycle and persist the result.

    Steps:
    1. Load ledger (with --measurement, a static oracle reports it)
    2. Run the cycle
    3. Save the snapshot and print the report
    """
    oracle = None
    if measurement is not None:
        oracle = StaticOracle(rainfall=measurement[0], temperature=measurement[1])

    ledger = _open_ledger(config, oracle)
    processor = PayoutProcessor(ledger, build_settlement(config))

    print("\n[1/2] Running claim cycle...")
    report = processor.run_claim_cycle(caller)
    save_ledger(ledger, _state_path(config), report.cycle_id)

    print(f"      Measurement: rainfall {report.measurement.rainfall} | "
          f"temperature {report.measurement.temperature} ({report.measurement.source})")
    print(f"      Verdict:     {report.verdict.value}")

    print("\n[2/2] Payouts...")
    for payout in report.payouts:
        print(f"      PAID: {payout.identity} | {payout.amount}")
    for skipped in report.skipped:
        print(f"      SKIP: {skipped.identity} | {skipped.reason.value} {skipped.detail}")
    print(f"      Paid: {len(report.payouts)} | Skipped: {len(report.skipped)} | "
          f"Total: {report.total_paid}")

    _print_summary(ledger)
    return EXIT_OK


def cmd_status(config: Dict[str, Any]) -> int:
    ledger = _open_ledger(config)
    _print_summary(ledger)

    policies = ledger.list_policies()
    if policies:
        print("Policies:")
        for policy in policies:
            status = f"PAID {policy.payout_amount}" if policy.claim_paid else "ACTIVE"
            print(f"  {policy.identity:<24} premium {policy.premium_paid:<12} {status}")
        print()
    return EXIT_OK


# =============================================================================
# ARGUMENT PARSER
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="python -m ledger.run",
        description="Parametric microinsurance ledger CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    mode_group = parser.add_mutually_exclusive_group(required=True)

    mode_group.add_argument(
        "--init",
        action="store_true",
        help="Create a new ledger from configuration"
    )
    mode_group.add_argument(
        "--register",
        nargs=2,
        metavar=("IDENTITY", "AMOUNT"),
        help="Register a policy with a premium deposit"
    )
    mode_group.add_argument(
        "--fund",
        nargs=2,
        metavar=("IDENTITY", "AMOUNT"),
        help="Deposit funds into escrow without registering"
    )
    mode_group.add_argument(
        "--set-thresholds",
        nargs=2,
        type=int,
        metavar=("RAINFALL", "TEMPERATURE"),
        help="Replace both thresholds (admin only)"
    )
    mode_group.add_argument(
        "--run-cycle",
        action="store_true",
        help="Run one claim cycle (admin only)"
    )
    mode_group.add_argument(
        "--status",
        action="store_true",
        help="Show ledger status"
    )

    parser.add_argument(
        "--caller",
        help="Identity invoking an admin operation"
    )
    parser.add_argument(
        "--measurement",
        nargs=2,
        type=int,
        metavar=("RAINFALL", "TEMPERATURE"),
        help="With --run-cycle: use this snapshot instead of the configured oracle"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to ledger.yaml"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="With --init: replace an existing ledger"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress banner output"
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Log to console only"
    )

    return parser


def _parse_amount(parser: argparse.ArgumentParser, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        parser.error(f"AMOUNT must be an integer, got {value!r}")


# =============================================================================
# MAIN
# =============================================================================


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(Component.LEDGER, console_output=True, file_output=not args.no_log_file)

    if not args.quiet:
        print(BANNER)
        print(GOVERNANCE_NOTICE)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"CONFIG ERROR: {e}")
        return EXIT_USAGE

    try:
        if args.init:
            return cmd_init(config, force=args.force)
        elif args.register:
            identity, amount = args.register
            return cmd_register(config, identity, _parse_amount(parser, amount))
        elif args.fund:
            identity, amount = args.fund
            return cmd_fund(config, identity, _parse_amount(parser, amount))
        elif args.set_thresholds:
            rainfall, temperature = args.set_thresholds
            return cmd_set_thresholds(config, args.caller, rainfall, temperature)
        elif args.run_cycle:
            return cmd_run_cycle(config, args.caller, args.measurement)
        elif args.status:
            return cmd_status(config)
        else:
            parser.print_help()
            return EXIT_USAGE
    except FileNotFoundError:
        print(f"No ledger at {_state_path(config)} - run with --init first")
        return EXIT_USAGE
    except LedgerError as e:
        logger.error(f"{e.kind.value}: {e}")
        print(f"REJECTED [{e.kind.value}]: {e}")
        return EXIT_REJECTED


if __name__ == "__main__":
    sys.exit(main())
