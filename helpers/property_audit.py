# helpers/property_audit.py
"""
Property fill-rate audit.

Fill rates are extrapolated from a bounded sample (at most
max_pages * page_size records) to the exact total record count, so they are
statistical estimates: two audits of a large, changing portal can differ
slightly even when nothing was edited in between.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Literal, Mapping, Sequence

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from helpers.hubspot_client import PropertyDescriptor, RemoteRecordSource
from helpers.settings import Settings

logger = logging.getLogger("audit")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuditResult(_CamelModel):
    label: str
    internal_name: str
    type: str
    description: str = ""
    is_custom: bool
    fill_rate: int
    fill_count: int


class AuditSummary(_CamelModel):
    total_records: int
    total_properties: int
    sample_size: int
    is_estimate: bool
    average_fill_rate: int
    average_fill_rate_scope: Literal["custom", "all"]
    average_custom_fill_rate: int
    properties_with_zero_fill_rate: int
    properties: List[AuditResult]


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def is_filled(value: Any) -> bool:
    return value is not None and value != ""


def count_fills(records: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    """Per-property count of records holding a non-null, non-empty value."""
    counts: Dict[str, int] = {}
    for rec in records:
        props = rec.get("properties") or {}
        for name, value in props.items():
            if is_filled(value):
                counts[name] = counts.get(name, 0) + 1
    return counts


def extrapolate(fill_in_sample: int, sample_size: int, total_records: int) -> tuple:
    """Returns (estimated_fill_count, fill_rate) for one property."""
    if sample_size <= 0 or total_records <= 0:
        return 0, 0
    estimated = round_half_up((fill_in_sample / sample_size) * total_records)
    fill_rate = round_half_up((estimated / total_records) * 100)
    return estimated, max(0, min(100, fill_rate))


def _average(rates: Sequence[int]) -> int:
    if not rates:
        return 0
    return round_half_up(sum(rates) / len(rates))


def filter_reserved(props: Sequence[PropertyDescriptor], prefix: str) -> List[PropertyDescriptor]:
    return [p for p in props if not p.name.startswith(prefix)]


def summarize(
    props: Sequence[PropertyDescriptor],
    records: Sequence[Mapping[str, Any]],
    total_records: int,
    average_scope: Literal["custom", "all"] = "custom",
) -> AuditSummary:
    """Pure: the same sample and total always produce the same summary."""
    sample_size = len(records)
    fills = count_fills(records) if sample_size else {}

    results: List[AuditResult] = []
    for p in props:
        est, rate = extrapolate(fills.get(p.name, 0), sample_size, total_records)
        results.append(AuditResult(
            label=p.label,
            internal_name=p.name,
            type=p.type,
            description=p.description or "",
            is_custom=p.is_custom,
            fill_rate=rate,
            fill_count=est,
        ))

    custom_avg = _average([r.fill_rate for r in results if r.is_custom])
    all_avg = _average([r.fill_rate for r in results])

    return AuditSummary(
        total_records=total_records,
        total_properties=len(results),
        sample_size=sample_size,
        is_estimate=0 < sample_size < total_records,
        average_fill_rate=custom_avg if average_scope == "custom" else all_avg,
        average_fill_rate_scope=average_scope,
        average_custom_fill_rate=custom_avg,
        properties_with_zero_fill_rate=sum(1 for r in results if r.fill_rate == 0),
        properties=results,
    )


async def audit_object(source: RemoteRecordSource, object_type: str, settings: Settings) -> AuditSummary:
    props = await source.list_properties(object_type)
    if settings.exclude_reserved_properties:
        props = filter_reserved(props, settings.reserved_property_prefix)

    total_records = await source.count(object_type)

    records: List[Dict[str, Any]] = []
    if total_records > 0 and props:
        records = await source.sample(
            object_type,
            [p.name for p in props],
            max_pages=settings.sample_max_pages,
            page_size=settings.sample_page_size,
        )
        if not records:
            logger.warning("empty sample object=%s total=%s; reporting zero fill", object_type, total_records)

    summary = summarize(props, records, total_records, settings.average_scope)
    logger.info("audit object=%s total=%s sample=%s properties=%s zero_fill=%s",
                object_type, total_records, summary.sample_size,
                summary.total_properties, summary.properties_with_zero_fill_rate)
    return summary
