import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from attractions.accounts.schemas import TransactionType
from attractions.store import Collections, DocumentStore

logger = logging.getLogger(__name__)


def strip_none(value: Any) -> Any:
    """Drop None values from nested dicts and lists"""
    if isinstance(value, dict):
        return {k: strip_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [strip_none(v) for v in value if v is not None]
    return value


class LedgerService:
    """Writes and reads wallet transaction entries"""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def commit(
        self,
        user_id: str,
        amount: float,
        currency: str,
        transaction_type: TransactionType,
        created_by: str,
        user_name: str,
        meta: Optional[Dict[str, Any]] = None,
        agent_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Write a debit entry keyed by ``transaction_id``"""
        entry = {
            "userId": user_id,
            "created_by": created_by,
            "user_name": user_name,
            "amount": -abs(amount),
            "base_amount": -abs(amount),
            "currency": currency,
            "type": TransactionType(transaction_type).value,
            "reference_no": str(uuid.uuid4())[:8],
            "transaction_id": transaction_id or str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "credit_type": "wallet",
            "meta": strip_none(meta or {}),
            "agent_id": agent_id,
        }

        logger.info("Creating ledger entry %s for %s: %s %s", entry["transaction_id"], user_id, entry["amount"], currency)
        await self.store.set(Collections.LEDGER, entry["transaction_id"], entry)
        return entry

    async def get(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        """Get a ledger entry by transaction ID"""
        entry = await self.store.get(Collections.LEDGER, transaction_id)
        if entry is None:
            logger.info("No ledger entry found for %s", transaction_id)
        return entry
