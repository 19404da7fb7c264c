# =============================================================================
# PARAMETRIC LEDGER - CONFIGURATION
# =============================================================================
#
# Configuration is read from config/ledger.yaml. Selected values can be
# overridden from the environment (a .env file in the project root is
# loaded first, without overriding variables already set).
#
# ENVIRONMENT OVERRIDES:
#   LEDGER_ADMIN            -> ADMIN
#   LEDGER_STATE_PATH       -> STATE_PATH
#   LEDGER_AUDIT_LOG_PATH   -> AUDIT_LOG_PATH
#
# =============================================================================

import logging
import os
from pathlib import Path
from typing import Optional, Dict, Any

import yaml
from dotenv import load_dotenv

from ledger.audit_log import AuditTrail
from ledger.oracle import OracleBase, OpenMeteoOracle, StaticOracle, REQUEST_TIMEOUT
from ledger.policy_ledger import PolicyLedger
from ledger.settlement import InMemorySettlement

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "ledger.yaml"

REQUIRED_CONFIG_KEYS = [
    "ADMIN", "RAINFALL_THRESHOLD", "TEMPERATURE_THRESHOLD", "ORACLE",
]

ENV_OVERRIDES = {
    "LEDGER_ADMIN": "ADMIN",
    "LEDGER_STATE_PATH": "STATE_PATH",
    "LEDGER_AUDIT_LOG_PATH": "AUDIT_LOG_PATH",
}

ORACLE_SOURCES = ("static", "open_meteo")


def load_env(env_path: Optional[Path] = None) -> None:
    """Load .env from the project root if present."""
    env_path = env_path or (PROJECT_ROOT / ".env")
    if env_path.exists():
        load_dotenv(env_path, override=False)


def validate_config(config: Any) -> None:
    """
    Validate that ledger.yaml contains all required keys.

    Raises:
        ValueError: If config is None or missing required keys.
    """
    if config is None or not isinstance(config, dict):
        raise ValueError("ledger.yaml is empty or invalid")
    errors = []
    for key in REQUIRED_CONFIG_KEYS:
        if key not in config:
            errors.append(f"missing key: {key}")

    oracle = config.get("ORACLE")
    if oracle is not None:
        if not isinstance(oracle, dict):
            errors.append("ORACLE must be a mapping")
        elif oracle.get("SOURCE") not in ORACLE_SOURCES:
            errors.append(f"ORACLE.SOURCE must be one of {', '.join(ORACLE_SOURCES)}")
        elif oracle["SOURCE"] == "open_meteo":
            for key in ("LATITUDE", "LONGITUDE"):
                if key not in oracle:
                    errors.append(f"missing key: ORACLE.{key}")

    if errors:
        raise ValueError(f"ledger.yaml validation failed: {', '.join(errors)}")


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load ledger configuration from YAML file and apply env overrides.

    Args:
        config_path: Path to config file. If None, uses default.

    Returns:
        Configuration dictionary

    Raises:
        ValueError: If config is invalid or missing required keys.
    """
    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    load_env()

    with open(config_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f)

    if isinstance(config, dict):
        for env_var, key in ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value:
                logger.debug(f"{key} overridden from {env_var}")
                config[key] = value

    validate_config(config)
    return config


def resolve_path(value: Optional[str]) -> Optional[Path]:
    """Resolve a configured path relative to the project root."""
    if not value:
        return None
    path = Path(value)
    return path if path.is_absolute() else PROJECT_ROOT / path


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================


def build_oracle(config: Dict[str, Any]) -> OracleBase:
    """Create the oracle named by ORACLE.SOURCE."""
    oracle_config = config["ORACLE"]
    source = oracle_config["SOURCE"]

    if source == "open_meteo":
        return OpenMeteoOracle(
            latitude=float(oracle_config["LATITUDE"]),
            longitude=float(oracle_config["LONGITUDE"]),
            timeout=int(oracle_config.get("TIMEOUT", REQUEST_TIMEOUT)),
        )

    return StaticOracle(
        rainfall=int(oracle_config.get("RAINFALL", 0)),
        temperature=int(oracle_config.get("TEMPERATURE", 0)),
    )


def build_audit_trail(config: Dict[str, Any]) -> AuditTrail:
    return AuditTrail(resolve_path(config.get("AUDIT_LOG_PATH")))


def build_settlement(config: Dict[str, Any]) -> InMemorySettlement:
    return InMemorySettlement(journal_path=resolve_path(config.get("SETTLEMENT_JOURNAL_PATH")))


def create_ledger(
    config: Dict[str, Any],
    oracle: Optional[OracleBase] = None,
    audit_trail: Optional[AuditTrail] = None,
) -> PolicyLedger:
    """
    Create a fresh ledger from configuration.

    This is the RECOMMENDED way to instantiate a new ledger.
    """
    return PolicyLedger(
        oracle=oracle or build_oracle(config),
        rainfall_threshold=int(config["RAINFALL_THRESHOLD"]),
        temperature_threshold=int(config["TEMPERATURE_THRESHOLD"]),
        admin=str(config["ADMIN"]),
        audit_trail=audit_trail if audit_trail is not None else build_audit_trail(config),
    )
