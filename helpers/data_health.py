# helpers/data_health.py
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from helpers.hubspot_client import RemoteRecordSource
from helpers.settings import Settings

logger = logging.getLogger("audit")

ORPHANED_CONTACT_FILTER = [{"propertyName": "associatedcompanyid", "operator": "NOT_HAS_PROPERTY"}]
EMPTY_COMPANY_FILTER = [{"propertyName": "num_associated_contacts", "operator": "EQ", "value": 0}]


class DataHealthReport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    orphaned_contacts: int
    empty_companies: int
    contact_duplicates_in_sample: int
    company_duplicates_in_sample: int


def count_duplicate_values(records: Iterable[Mapping[str, Any]], field: str) -> int:
    """
    Number of distinct lower-cased values seen more than once in the sample.
    [a, a, b, c, c, c] -> 2. Raw sample count, not extrapolated.
    """
    seen: Counter = Counter()
    for rec in records:
        value = (rec.get("properties") or {}).get(field)
        if value is None:
            continue
        norm = str(value).lower()
        if norm:
            seen[norm] += 1
    return sum(1 for n in seen.values() if n > 1)


async def duplicate_count(source: RemoteRecordSource, object_type: str, field: str, sample_size: int) -> int:
    records = await source.sample(object_type, [field], max_pages=1, page_size=sample_size)
    return count_duplicate_values(records, field)


async def run_data_health(source: RemoteRecordSource, settings: Settings) -> DataHealthReport:
    orphaned = await source.count("contacts", ORPHANED_CONTACT_FILTER)
    empty = await source.count("companies", EMPTY_COMPANY_FILTER)
    contact_dupes = await duplicate_count(source, "contacts", "email", settings.duplicate_sample_size)
    company_dupes = await duplicate_count(source, "companies", "domain", settings.duplicate_sample_size)

    logger.info("data health orphaned=%s empty=%s dup_contacts=%s dup_companies=%s",
                orphaned, empty, contact_dupes, company_dupes)
    return DataHealthReport(
        orphaned_contacts=orphaned,
        empty_companies=empty,
        contact_duplicates_in_sample=contact_dupes,
        company_duplicates_in_sample=company_dupes,
    )
