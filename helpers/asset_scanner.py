# helpers/asset_scanner.py
"""Stale report and disabled workflow scans. Both need a complete listing."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from helpers.hubspot_client import RemoteRecordSource

logger = logging.getLogger("audit")


class AssetRef(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    id: Optional[str] = None
    updated_at: str = ""  # YYYY-MM-DD


def _now() -> datetime:
    return datetime.now(timezone.utc)


def parse_ts(v: Any) -> Optional[datetime]:
    if v in (None, ""):
        return None
    try:
        if isinstance(v, (int, float)):
            # epoch millis
            return datetime.fromtimestamp(v / 1000, tz=timezone.utc)
        dt = datetime.fromisoformat(str(v).replace("Z", "+00:00"))
    except (TypeError, ValueError, OverflowError):
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _ref(item: Dict[str, Any], ts: Optional[datetime]) -> AssetRef:
    return AssetRef(
        name=item.get("name"),
        id=str(item["id"]) if item.get("id") is not None else None,
        updated_at=ts.date().isoformat() if ts else "",
    )


def find_stale_reports(
    reports: Iterable[Dict[str, Any]],
    days: int = 180,
    now: Optional[datetime] = None,
) -> List[AssetRef]:
    """Reports last updated before now - `days`, oldest first."""
    threshold = (now or _now()) - timedelta(days=days)
    stale = []
    for rpt in reports:
        ts = parse_ts(rpt.get("updatedAt"))
        if ts is not None and ts < threshold:
            stale.append((ts, rpt))
    stale.sort(key=lambda pair: pair[0])
    return [_ref(r, ts) for ts, r in stale]


def find_inactive_workflows(workflows: Iterable[Dict[str, Any]]) -> List[AssetRef]:
    """Disabled workflows, most recently updated first."""
    floor = datetime.min.replace(tzinfo=timezone.utc)
    disabled = [
        (parse_ts(wf.get("updatedAt")), wf)
        for wf in workflows
        if wf.get("enabled") is False
    ]
    disabled.sort(key=lambda pair: pair[0] or floor, reverse=True)
    return [_ref(wf, ts) for ts, wf in disabled]


async def scan_stale_reports(
    source: RemoteRecordSource, days: int = 180, clock: Callable[[], datetime] = _now
) -> List[AssetRef]:
    reports = await source.list_reports()
    stale = find_stale_reports(reports, days=days, now=clock())
    logger.info("stale reports scanned=%s stale=%s", len(reports), len(stale))
    return stale


async def scan_inactive_workflows(source: RemoteRecordSource) -> List[AssetRef]:
    workflows = await source.list_workflows()
    inactive = find_inactive_workflows(workflows)
    logger.info("workflows scanned=%s inactive=%s", len(workflows), len(inactive))
    return inactive
