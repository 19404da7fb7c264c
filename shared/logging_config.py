# =============================================================================
# PARAMETRIC LEDGER - LOGGING CONFIGURATION
# =============================================================================
#
# GOVERNANCE:
# Operational logs are SEPARATED by component.
# - Ledger logs go to logs/ledger/
# - Oracle logs go to logs/oracle/
# - Settlement logs go to logs/settlement/
# - CLI logs go to logs/cli/
#
# The audit trail (ledger/audit_log.py) is NOT an operational log.
# It is written separately and never rotated or filtered.
#
# =============================================================================

import logging
from datetime import datetime
from typing import Optional
from pathlib import Path

from .enums import Component


# =============================================================================
# LOG DIRECTORIES (relative to project root)
# =============================================================================

# Logger names per component. Module loggers live below these
# (ledger.policy_ledger -> "ledger").
_LOGGER_NAMES = {
    Component.LEDGER: "ledger",
    Component.ORACLE: "ledger.oracle",
    Component.SETTLEMENT: "ledger.settlement",
    Component.CLI: "ledger.run",
}


def _get_project_root() -> Path:
    """Get the project root directory."""
    # This file is at shared/logging_config.py
    return Path(__file__).parent.parent


def _get_log_dir(component: Component, log_root: Optional[Path] = None) -> Path:
    """Get the log directory for a specific component."""
    root = log_root or (_get_project_root() / "logs")
    return root / component.value.lower()


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(
    component: Component = Component.LEDGER,
    level: int = logging.INFO,
    console_output: bool = True,
    file_output: bool = True,
    log_root: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure logging for a specific component.

    Args:
        component: The component to configure logging for
        level: Logging level
        console_output: Whether to log to console
        file_output: Whether to log to file
        log_root: Base directory for log files. Defaults to <project>/logs

    Returns:
        The configured component logger
    """
    logger_name = _LOGGER_NAMES[component]

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    log_file = None
    if file_output:
        log_dir = _get_log_dir(component, log_root)
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"{component.value.lower()}_{timestamp}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized for {logger_name}")
    if log_file is not None:
        logger.debug(f"Log file: {log_file}")

    return logger


def get_component_logger(component: Component = Component.LEDGER) -> logging.Logger:
    """
    Get the logger for a specific component.

    Args:
        component: The component to get logger for

    Returns:
        Logger instance (configured or not)
    """
    return logging.getLogger(_LOGGER_NAMES[component])
