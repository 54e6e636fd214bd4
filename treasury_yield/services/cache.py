from __future__ import annotations

import json
import logging
from typing import List, Optional

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from treasury_yield.models import Pool

logger = logging.getLogger(__name__)


class CatalogCache:
    """Short-lived copy of a chain's live pool catalog. Expiry is the only freshness rule.

    Redis being unavailable never fails a request: reads degrade to a miss and
    writes are skipped.
    """

    def __init__(self, redis: Redis, ttl_seconds: int = 300):
        self.r = redis
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(chain: str) -> str:
        return f"pools:{chain.lower()}"

    async def save_pools(self, chain: str, pools: List[Pool]) -> None:
        payload = json.dumps([p.model_dump(by_alias=True) for p in pools])
        try:
            await self.r.set(self._key(chain), payload, ex=self.ttl_seconds)
        except (RedisError, OSError) as e:
            logger.warning(f"Catalog cache write skipped for {chain}: {e}")

    async def get_pools(self, chain: str) -> Optional[List[Pool]]:
        """Cached pools, or None on a miss, an unreadable entry or a Redis failure."""
        try:
            data = await self.r.get(self._key(chain))
        except (RedisError, OSError) as e:
            logger.warning(f"Catalog cache read failed for {chain}, fetching instead: {e}")
            return None
        if not data:
            return None
        try:
            return [Pool.model_validate(x) for x in json.loads(data)]
        except (ValueError, ValidationError) as e:
            logger.warning(f"Discarding unreadable catalog cache entry for {chain}: {e}")
            return None
