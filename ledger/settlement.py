# =============================================================================
# PARAMETRIC LEDGER - SETTLEMENT RAILS
# =============================================================================
#
# GOVERNANCE INTENT:
# A settlement rail moves a payout from ledger-held funds to a participant.
# The ledger debits escrow ONLY after the rail acknowledges with OK.
#
# CONTRACT:
# - transfer(identity, amount, reference) -> TransferStatus
# - FAILED must not lose funds: the ledger keeps the escrow untouched
# - reference is stable per claim; a rail that sees the same reference
#   twice must not pay twice
#
# =============================================================================

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from shared.enums import TransferStatus
from ledger.exceptions import SettlementFailedError

logger = logging.getLogger(__name__)


class SettlementRail(ABC):
    """Abstract base class for fund-transfer collaborators."""

    @abstractmethod
    def transfer(self, identity: str, amount: int, reference: str) -> TransferStatus:
        """
        Transfer amount to identity.

        Returns:
            TransferStatus.OK or TransferStatus.FAILED

        Raises:
            SettlementFailedError: If the rail itself broke mid-transfer.
                                   Treated by the ledger exactly like FAILED.
        """
        ...


class InMemorySettlement(SettlementRail):
    """
    Settlement rail that credits in-memory participant balances.

    De-duplicates by reference: a repeated reference is acknowledged
    with OK without crediting again.

    Args:
        failing_identities: Identities whose transfers return FAILED
        journal_path: Optional JSONL file recording every credited transfer
        on_transfer: Optional callback invoked after each credited transfer
    """

    def __init__(
        self,
        failing_identities: Optional[Iterable[str]] = None,
        journal_path: Optional[Path] = None,
        on_transfer: Optional[Callable[[str, int, str], None]] = None,
    ):
        self.failing_identities = set(failing_identities or [])
        self.journal_path = Path(journal_path) if journal_path is not None else None
        self.on_transfer = on_transfer

        self.balances: Dict[str, int] = {}
        self.transfers: List[Dict[str, object]] = []
        self.attempts = 0
        self._settled_references: Dict[str, int] = {}

        if self.journal_path is not None and self.journal_path.exists():
            self._load_journal()

    def _load_journal(self) -> None:
        """Replay the journal so references settled before a restart stay settled."""
        with open(self.journal_path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                    identity = entry["identity"]
                    amount = entry["amount"]
                    reference = entry["reference"]
                except (json.JSONDecodeError, KeyError) as e:
                    logger.warning(f"Skipping unreadable journal line: {e}")
                    continue
                self.balances[identity] = self.balances.get(identity, 0) + amount
                self.transfers.append(entry)
                self._settled_references[reference] = amount

        logger.info(f"Settlement journal loaded: {len(self.transfers)} transfers")

    def transfer(self, identity: str, amount: int, reference: str) -> TransferStatus:
        self.attempts += 1

        if reference in self._settled_references:
            logger.warning(f"Duplicate settlement reference {reference} - not paying again")
            return TransferStatus.OK

        if identity in self.failing_identities:
            logger.warning(f"Transfer to {identity} rejected by rail")
            return TransferStatus.FAILED

        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "identity": identity,
            "amount": amount,
            "reference": reference,
        }
        if self.journal_path is not None:
            try:
                self.journal_path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.journal_path, 'a', encoding='utf-8') as f:
                    f.write(json.dumps(entry, ensure_ascii=False) + '\n')
                    f.flush()
                    os.fsync(f.fileno())
            except (IOError, OSError) as e:
                raise SettlementFailedError(identity, f"journal write failed: {e}")

        self.balances[identity] = self.balances.get(identity, 0) + amount
        self.transfers.append(entry)
        self._settled_references[reference] = amount

        if self.on_transfer is not None:
            self.on_transfer(identity, amount, reference)

        return TransferStatus.OK

    def balance_of(self, identity: str) -> int:
        """Total credited to identity so far."""
        return self.balances.get(identity, 0)
