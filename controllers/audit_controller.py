import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from helpers.asset_scanner import AssetRef, scan_inactive_workflows, scan_stale_reports
from helpers.data_health import DataHealthReport, run_data_health
from helpers.dependencies import get_record_source, get_settings, require_portal_id
from helpers.errors import AuditError
from helpers.hubspot_client import RemoteRecordSource
from helpers.property_audit import AuditSummary, audit_object
from helpers.settings import Settings

router = APIRouter()
logger = logging.getLogger("audit")


class StaleReportsOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
    stale_reports: List[AssetRef]


class InactiveWorkflowsOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
    inactive_workflows: List[AssetRef]


@router.get("/audit", response_model=AuditSummary)
async def run_audit(
    portal_id: Annotated[str, Depends(require_portal_id)],
    source: Annotated[RemoteRecordSource, Depends(get_record_source)],
    settings: Annotated[Settings, Depends(get_settings)],
    object_type: str = Query("contacts", alias="objectType", pattern=r"^[A-Za-z0-9_\-]+$"),
):
    """
    Property fill rates for one object type. Fill rates and counts are
    estimates extrapolated from a sample of up to
    AUDIT_SAMPLE_MAX_PAGES x AUDIT_SAMPLE_PAGE_SIZE records.
    """
    try:
        return await audit_object(source, object_type, settings)
    except AuditError as e:
        logger.error("audit failed portal=%s object=%s: %s", portal_id, object_type, e)
        raise


@router.get("/data-health", response_model=DataHealthReport)
async def data_health(
    portal_id: Annotated[str, Depends(require_portal_id)],
    source: Annotated[RemoteRecordSource, Depends(get_record_source)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    try:
        return await run_data_health(source, settings)
    except AuditError as e:
        logger.error("data health failed portal=%s: %s", portal_id, e)
        raise


@router.get("/stale-reports", response_model=StaleReportsOut)
async def stale_reports(
    portal_id: Annotated[str, Depends(require_portal_id)],
    source: Annotated[RemoteRecordSource, Depends(get_record_source)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    try:
        stale = await scan_stale_reports(source, days=settings.stale_report_days)
    except AuditError as e:
        logger.error("stale reports failed portal=%s: %s", portal_id, e)
        raise
    return StaleReportsOut(stale_reports=stale)


@router.get("/inactive-workflows", response_model=InactiveWorkflowsOut)
async def inactive_workflows(
    portal_id: Annotated[str, Depends(require_portal_id)],
    source: Annotated[RemoteRecordSource, Depends(get_record_source)],
):
    try:
        inactive = await scan_inactive_workflows(source)
    except AuditError as e:
        logger.error("inactive workflows failed portal=%s: %s", portal_id, e)
        raise
    return InactiveWorkflowsOut(inactive_workflows=inactive)
