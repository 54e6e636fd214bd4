from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx
from pydantic import ValidationError

from treasury_yield.errors import DataFormatError, FetchTimeoutError, NetworkError
from treasury_yield.http import HttpClient
from treasury_yield.models import Pool

logger = logging.getLogger(__name__)

DEFILLAMA_POOLS_URL = "https://yields.llama.fi/pools"


def _extract_records(body: Any) -> List[Dict[str, Any]]:
    records = body.get("data") if isinstance(body, dict) else None
    if not isinstance(records, list):
        raise DataFormatError("Expected a JSON object with a 'data' array of pool records")
    for r in records:
        if not isinstance(r, dict):
            raise DataFormatError(f"Expected pool records to be objects, got {type(r).__name__}")
    return records


async def fetch_pools(http: HttpClient, target_chain: str, url: str = DEFILLAMA_POOLS_URL) -> List[Pool]:
    """Fetch the DefiLlama yields catalog and keep the live pools of one chain.

    Docs: https://yields.llama.fi/pools

    Listings with non-positive (or missing) TVL or APY are inactive and dropped.
    Raises NetworkError, FetchTimeoutError or DataFormatError; never retries.
    """
    try:
        resp = await http.get(url)
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise NetworkError(f"DefiLlama returned HTTP {status}", status_code=status) from e
    except httpx.TimeoutException as e:
        raise FetchTimeoutError(f"DefiLlama request timed out: {e}") from e
    except httpx.HTTPError as e:
        raise NetworkError(f"DefiLlama request failed: {e}") from e

    try:
        body = resp.json()
    except ValueError as e:
        raise DataFormatError(f"DefiLlama response is not valid JSON: {e}") from e

    records = _extract_records(body)
    chain = target_chain.lower()
    out: List[Pool] = []
    for r in records:
        if str(r.get("chain") or "").lower() != chain:
            continue
        if r.get("tvlUsd") is None or r.get("apy") is None:
            continue
        try:
            pool = Pool.model_validate(r)
        except ValidationError as e:
            raise DataFormatError(f"Malformed pool record {r.get('pool')!r}: {e.errors()[0]['msg']}") from e
        if pool.tvl_usd > 0 and pool.apy > 0:
            out.append(pool)

    logger.info(f"DefiLlama catalog: {len(records)} records, {len(out)} live pools on {target_chain}")
    return out
