# helpers/pagination.py
"""
Cursor-following retrieval for HubSpot-style collections:

    {"results": [...], "paging": {"next": {"after": "<cursor>"}}}

Two modes:
  * sampling (`max_pages` set, `partial_ok=True`): stop at the page cap, at
    the end of the cursor chain, or at the first failed page, and return
    whatever was collected. A failed first page yields an empty list.
  * full scan (`partial_ok=False`): follow the cursor to the end; any failed
    page raises UpstreamFetchFailed and nothing partial is returned.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from helpers.errors import UpstreamFetchFailed

logger = logging.getLogger("hubspot")


def next_cursor(payload: Mapping[str, Any]) -> Optional[str]:
    nxt = ((payload.get("paging") or {}).get("next") or {}).get("after")
    return str(nxt) if nxt not in (None, "") else None


async def fetch_all(
    client: httpx.AsyncClient,
    endpoint: str,
    headers: Mapping[str, str],
    page_param: str = "after",
    params: Optional[Mapping[str, Any]] = None,
    max_pages: Optional[int] = None,
    partial_ok: bool = False,
    error_message: Optional[str] = None,
) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []
    cursor: Optional[str] = None
    pages = 0

    while max_pages is None or pages < max_pages:
        q: Dict[str, Any] = dict(params or {})
        if cursor:
            q[page_param] = cursor
        pages += 1

        failure: Optional[str] = None
        try:
            r = await client.get(endpoint, headers=dict(headers), params=q)
            if r.is_success:
                payload = r.json()
            else:
                failure = f"status={r.status_code} body={r.text[:300]}"
        except (httpx.HTTPError, ValueError) as e:
            failure = f"error={e}"

        if failure:
            if partial_ok:
                logger.warning("page %s of %s failed, keeping %s items: %s",
                               pages, endpoint, len(items), failure)
                break
            logger.error("page %s of %s failed: %s", pages, endpoint, failure)
            raise UpstreamFetchFailed(error_message or f"Failed to fetch {endpoint}")

        items.extend(payload.get("results") or [])
        cursor = next_cursor(payload)
        if not cursor:
            break

    return items
