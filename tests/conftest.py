"""Global test fixtures - one fresh ledger per test."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from ledger.oracle import StaticOracle
from ledger.payout_processor import PayoutProcessor
from ledger.policy_ledger import PolicyLedger
from ledger.settlement import InMemorySettlement


ADMIN = "admin"
RAINFALL_THRESHOLD = 50
TEMPERATURE_THRESHOLD = 35


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging() so they never outlive a test."""
    _do_reset()
    yield
    _do_reset()


def _do_reset():
    import logging
    from shared.enums import Component
    from shared.logging_config import get_component_logger

    for component in Component:
        get_component_logger(component).handlers.clear()
    get_component_logger(Component.LEDGER).setLevel(logging.NOTSET)


@pytest.fixture
def oracle():
    """Oracle reporting a non-breaching snapshot until told otherwise."""
    return StaticOracle(rainfall=60, temperature=20)


@pytest.fixture
def ledger(oracle):
    return PolicyLedger(
        oracle=oracle,
        rainfall_threshold=RAINFALL_THRESHOLD,
        temperature_threshold=TEMPERATURE_THRESHOLD,
        admin=ADMIN,
    )


@pytest.fixture
def settlement():
    return InMemorySettlement()


@pytest.fixture
def processor(ledger, settlement):
    return PayoutProcessor(ledger, settlement)
