# =============================================================================
# PARAMETRIC LEDGER - STATE STORAGE
# =============================================================================
#
# JSON snapshot of a ledger so the CLI can operate across invocations.
#
# FILE FORMAT:
#   {
#     "_metadata": {...},
#     "ledger": PolicyLedger.snapshot()
#   }
#
# The audit trail is NOT part of the snapshot. It has its own
# append-only JSONL file (see audit_log.py).
#
# =============================================================================

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ledger.audit_log import AuditTrail
from ledger.oracle import OracleBase
from ledger.policy_ledger import PolicyLedger

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def save_ledger(ledger: PolicyLedger, path: Path, reason: str = "") -> None:
    """
    Write the ledger snapshot to path.

    The file is written to a temporary sibling and moved into place, so
    a crash mid-write leaves the previous snapshot intact.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "_metadata": {
            "version": SNAPSHOT_VERSION,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "reason": reason,
        },
        "ledger": ledger.snapshot(),
    }

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)

    logger.debug(f"Ledger saved to {path} ({reason})")


def load_ledger(
    path: Path,
    oracle: OracleBase,
    audit_trail: Optional[AuditTrail] = None,
) -> PolicyLedger:
    """
    Read a ledger snapshot written by save_ledger.

    Raises:
        FileNotFoundError: If no snapshot exists at path
        ValueError: If the snapshot is malformed
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Ledger snapshot {path} is not valid JSON: {e}")

    version = data.get("_metadata", {}).get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported ledger snapshot version: {version}")

    try:
        ledger = PolicyLedger.from_snapshot(data["ledger"], oracle, audit_trail)
    except KeyError as e:
        raise ValueError(f"Ledger snapshot {path} is missing {e}")

    logger.info(f"Ledger loaded from {path}: {ledger.policy_count()} policies")
    return ledger
