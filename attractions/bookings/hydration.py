"""
Batch re-processing of stored transaction documents.

Walks a collection page by page and writes every document back, optionally
marking it processed. Used by administrators to backfill ledger entries.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ValidationError, validator

from attractions.exceptions import InvalidRequest
from attractions.store import Collections, DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = Collections.LEDGER
DEFAULT_KEY = "transaction_id"
DEFAULT_SORT_BY = "timestamp"
DEFAULT_LIMIT = 100
MAX_LIMIT = 500

Transformer = Callable[[Dict[str, Any]], Dict[str, Any]]


def mark_processed(item: Dict[str, Any]) -> Dict[str, Any]:
    return {**item, "processed": True, "hydrated_at": datetime.now(timezone.utc).isoformat()}


TRANSFORMERS: Dict[str, Transformer] = {
    "toTransaction": mark_processed,
}


class HydrationRequest(BaseModel):
    collection: Collections = DEFAULT_COLLECTION
    key: str = DEFAULT_KEY
    sortBy: str = DEFAULT_SORT_BY
    limit: int = DEFAULT_LIMIT
    transform: Optional[str] = None

    @validator("limit")
    def limit_in_range(cls, v):
        if v < 1 or v > MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}")
        return v

    @validator("transform")
    def known_transform(cls, v):
        if v is not None and v not in TRANSFORMERS:
            raise ValueError(f"unknown transform {v}")
        return v


class HydrationService:
    """Rewrites a collection in batches"""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def hydrate(self, request: HydrationRequest) -> List[Dict[str, Any]]:
        """Process every document; returns one ``{"processedIds": [...]}`` per batch"""
        transformer = TRANSFORMERS.get(request.transform) if request.transform else None
        results = []

        async for page in self.store.batches(request.collection, request.limit, sort_by=request.sortBy):
            processed = []
            for doc_key, body in page:
                if transformer:
                    body = transformer(body)
                await self.store.set(request.collection, doc_key, body)
                processed.append(str(body.get(request.key) or doc_key))

            logger.info("Hydrated batch of %s documents from %s", len(processed), request.collection.value)
            results.append({"processedIds": processed})

        return results

    @staticmethod
    def parse(payload: Dict[str, Any]) -> HydrationRequest:
        """Request from a raw body; empty values fall back to the defaults"""
        data = {k: v for k, v in (payload or {}).items() if v not in (None, "", 0)}
        try:
            return HydrationRequest(**data)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise InvalidRequest(f"Invalid hydration request: {location} {first.get('msg')}")
