"""
Document store over the ``documents`` table.

Every record the workflow reads or writes (users, agencies, access levels,
balances, funds on hold, approval requests, vendor tokens, ledger entries)
lives here as a JSON document addressed by ``(collection, key)``.
"""

import copy
import logging
from enum import Enum
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from attractions.exceptions import BalanceConflict
from attractions.models import Document

logger = logging.getLogger(__name__)

# Conditional balance updates retried after a concurrent write
ADJUST_ATTEMPTS = 10


class Collections(str, Enum):
    """Document collections"""
    USERS = "users"
    AGENCIES = "agencies"
    ACCESS_LEVELS = "access_levels"
    USER_BALANCE = "user_balance"
    USER_FUNDS_ON_HOLD = "user_funds_on_hold"
    BOOKING_APPROVALS = "booking_approvals"
    AUTH_TOKENS = "attraction_auth_tokens"
    LEDGER = "user_balance_transactions"
    WHITELABEL_CONFIGS = "whitelabel_configs"


def _name(collection) -> str:
    return collection.value if isinstance(collection, Collections) else str(collection)


def _with_id(key: str, data: Dict[str, Any]) -> Dict[str, Any]:
    result = copy.deepcopy(data)
    result.setdefault("id", key)
    return result


class DocumentStore:
    """Async key-document store backed by SQLAlchemy"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get(self, collection, key: str) -> Optional[Dict[str, Any]]:
        """Get a document by key"""
        if not key:
            return None
        async with self.session_factory() as session:
            doc = await session.get(Document, (_name(collection), str(key)))
            if doc is None:
                return None
            return _with_id(doc.key, doc.data or {})

    async def set(self, collection, key: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create or replace a document"""
        async with self.session_factory() as session:
            async with session.begin():
                doc = await session.get(Document, (_name(collection), str(key)))
                if doc is None:
                    doc = Document(collection=_name(collection), key=str(key), data=copy.deepcopy(data))
                    session.add(doc)
                else:
                    doc.data = copy.deepcopy(data)
                    doc.version = (doc.version or 0) + 1
        return _with_id(str(key), data)

    async def update(self, collection, key: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge top-level fields into an existing document"""
        async with self.session_factory() as session:
            async with session.begin():
                doc = await session.get(Document, (_name(collection), str(key)))
                if doc is None:
                    return None
                data = copy.deepcopy(doc.data or {})
                data.update(changes)
                doc.data = data
                doc.version = (doc.version or 0) + 1
        return _with_id(str(key), data)

    async def find(self, collection, **equals: Any) -> List[Dict[str, Any]]:
        """Find documents whose top-level fields equal the given values"""
        stmt = select(Document).where(Document.collection == _name(collection))
        for field, value in equals.items():
            stmt = stmt.where(Document.data[field].as_string() == str(value))

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [_with_id(doc.key, doc.data or {}) for doc in result.scalars().all()]

    async def find_in(self, collection, field: str, values: Iterable[Any]) -> List[Dict[str, Any]]:
        """Find documents whose field is one of the given values"""
        values = [str(v) for v in values]
        if not values:
            return []

        stmt = select(Document).where(
            Document.collection == _name(collection),
            Document.data[field].as_string().in_(values),
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [_with_id(doc.key, doc.data or {}) for doc in result.scalars().all()]

    async def batches(
        self, collection, size: int, sort_by: Optional[str] = None
    ) -> AsyncIterator[List[Tuple[str, Dict[str, Any]]]]:
        """Yield ``(key, data)`` pages of ``size`` over a collection, ordered by ``sort_by`` then key"""
        stmt = select(Document).where(Document.collection == _name(collection))
        if sort_by:
            stmt = stmt.order_by(Document.data[sort_by].as_string())
        stmt = stmt.order_by(Document.key)

        offset = 0
        while True:
            async with self.session_factory() as session:
                result = await session.execute(stmt.offset(offset).limit(size))
                page = [(doc.key, copy.deepcopy(doc.data or {})) for doc in result.scalars().all()]
            if not page:
                return
            yield page
            offset += len(page)

    async def adjust_amount(
        self,
        collection,
        key: str,
        delta: float,
        floor: Optional[float] = None,
    ) -> bool:
        """Add ``delta`` to ``total.amount`` with a conditional update.

        The write only lands if the document still has the version that was
        read, so concurrent adjustments never overwrite each other; a lost
        race re-reads and checks ``floor`` again. Returns False without
        writing when the document is missing or the result would fall below
        ``floor``.
        """
        name = _name(collection)
        for _ in range(ADJUST_ATTEMPTS):
            async with self.session_factory() as session:
                async with session.begin():
                    doc = await session.get(Document, (name, str(key)))
                    if doc is None:
                        return False

                    data = copy.deepcopy(doc.data or {})
                    total = data.get("total")
                    if isinstance(total, dict):
                        current = float(total.get("amount") or 0)
                    else:
                        current = float(total or 0)
                        total = {"amount": current}

                    new_amount = current + delta
                    if floor is not None and new_amount < floor:
                        logger.info(
                            "Refused balance adjustment on %s/%s: %s %+.2f below floor %s",
                            name, key, current, delta, floor,
                        )
                        return False

                    total["amount"] = new_amount
                    data["total"] = total
                    stmt = (
                        update(Document)
                        .where(
                            Document.collection == name,
                            Document.key == str(key),
                            Document.version == doc.version,
                        )
                        .values(data=data, version=doc.version + 1)
                        .execution_options(synchronize_session=False)
                    )
                    result = await session.execute(stmt)
                    if result.rowcount == 1:
                        return True

            logger.info("Balance %s/%s changed during adjustment, retrying", name, key)

        raise BalanceConflict(f"Could not adjust {name}/{key} after {ADJUST_ATTEMPTS} attempts")
