# =============================================================================
# PARAMETRIC LEDGER - AUDIT TRAIL
# =============================================================================
#
# GOVERNANCE INTENT:
# This module provides the APPEND-ONLY audit trail of the ledger.
# Records are IMMUTABLE - no deletion, no modification.
#
# LOG FORMAT:
# - In memory: ordered list of AuditRecord, the authoritative trail
# - On disk (optional): JSONL mirror, one JSON object per line
# - Every record carries a SHA-256 hash of its details
#
# EMISSION RULE:
# The ledger appends a record only AFTER the state change it describes,
# inside the same lock scope. Failed operations emit nothing.
#
# =============================================================================

import hashlib
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List, Dict, Any

from shared.enums import AuditEventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditRecord:
    """One entry of the audit trail."""
    sequence: int
    timestamp: str
    event: AuditEventType
    details: Dict[str, Any]
    details_hash: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "timestamp": self.timestamp,
            "event": self.event.value,
            "details": self.details,
            "details_hash": self.details_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditRecord":
        return cls(
            sequence=data["sequence"],
            timestamp=data["timestamp"],
            event=AuditEventType(data["event"]),
            details=data["details"],
            details_hash=data["details_hash"],
        )


def compute_hash(data: Dict[str, Any]) -> str:
    """
    Compute SHA-256 hash of record details for traceability.

    Args:
        data: Dictionary to hash

    Returns:
        Hex-encoded SHA-256 hash
    """
    # Serialize deterministically (sorted keys, no whitespace)
    serialized = json.dumps(data, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(serialized.encode('utf-8')).hexdigest()


class AuditTrail:
    """
    Append-only audit trail.

    GOVERNANCE:
    - All writes are APPEND-ONLY
    - No record can be deleted or modified
    - Sequence numbers are gap-free and start at 1
    - The JSONL mirror is flushed and fsync'd per record
    """

    def __init__(self, log_path: Optional[Path] = None):
        """
        Initialize the audit trail.

        Args:
            log_path: Optional JSONL file to mirror records into.
                      Existing records in the file are loaded first.
        """
        self.log_path = Path(log_path) if log_path is not None else None
        self._records: List[AuditRecord] = []

        if self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            if self.log_path.exists():
                self._records = self.read_all(self.log_path)
            else:
                self._init_file()

    def _init_file(self):
        """Initialize the JSONL mirror with a metadata header."""
        header = {
            "_type": "LOG_HEADER",
            "created_at": datetime.now(timezone.utc).isoformat(),
            "description": "Append-only parametric ledger audit trail",
            "format": "JSONL (one JSON object per line)",
        }
        self._append_json(header)

    def _append_json(self, data: Dict[str, Any]):
        """Append a JSON object as a single line."""
        with open(self.log_path, 'a', encoding='utf-8') as f:
            f.write(json.dumps(data, ensure_ascii=False) + '\n')
            f.flush()
            os.fsync(f.fileno())

    def append(self, event: AuditEventType, details: Dict[str, Any]) -> AuditRecord:
        """
        Append an event to the trail.

        Args:
            event: Event type
            details: JSON-serializable event payload

        Returns:
            The appended record
        """
        record = AuditRecord(
            sequence=len(self._records) + 1,
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            details=dict(details),
            details_hash=compute_hash(details),
        )
        self._records.append(record)

        if self.log_path is not None:
            try:
                self._append_json(record.to_dict())
            except (IOError, OSError, TypeError, ValueError) as e:
                logger.error(f"Failed to mirror audit record {record.sequence}: {e}")

        return record

    def records(self, event: Optional[AuditEventType] = None) -> List[AuditRecord]:
        """
        Get records, optionally filtered by event type.

        Returns:
            Copy of the record list in append order
        """
        if event is None:
            return list(self._records)
        return [r for r in self._records if r.event == event]

    def __len__(self) -> int:
        return len(self._records)

    @staticmethod
    def read_all(log_path: Path) -> List[AuditRecord]:
        """
        Read all records from a JSONL mirror.

        GOVERNANCE:
        This is a READ-ONLY operation.

        Returns:
            List of AuditRecord objects in file order
        """
        records: List[AuditRecord] = []
        if not log_path.exists():
            return records

        with open(log_path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    # Skip header
                    if data.get("_type") == "LOG_HEADER":
                        continue
                    records.append(AuditRecord.from_dict(data))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning(f"Skipping unreadable audit line in {log_path}: {e}")
                    continue

        return records
