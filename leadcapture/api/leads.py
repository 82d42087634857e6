"""
Leads API routes.
"""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcapture.database import get_session
from leadcapture.core.exceptions import NotFoundError, OracleError, raise_not_found, raise_bad_gateway
from leadcapture.api.deps import get_classifier
from leadcapture.schemas.lead import LeadFilter, LeadResponse, LeadStats
from leadcapture.services.classification_service import ClassificationEngine
from leadcapture.services.lead_service import LeadService

router = APIRouter(prefix="/api/leads", tags=["leads"])


@router.get("/")
async def list_leads(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    owner_id: Optional[uuid.UUID] = None,
    form_id: Optional[uuid.UUID] = None,
    classification: Optional[str] = Query(None, pattern="^(hot|normal|cold)$"),
    follow_up_status: Optional[str] = None,
    email_sent: Optional[bool] = None,
    session: AsyncSession = Depends(get_session)
):
    """List leads with filtering and pagination."""
    filters = LeadFilter(
        owner_id=owner_id,
        form_id=form_id,
        classification=classification,
        follow_up_status=follow_up_status,
        email_sent=email_sent
    )

    lead_service = LeadService(session)
    page_data = await lead_service.list(filters, page, limit)
    page_data["items"] = [LeadResponse.model_validate(lead) for lead in page_data["items"]]
    return page_data


@router.get("/stats", response_model=LeadStats)
async def get_lead_stats(
    owner_id: Optional[uuid.UUID] = None,
    session: AsyncSession = Depends(get_session)
):
    """Get lead statistics."""
    lead_service = LeadService(session)
    return await lead_service.get_stats(owner_id)


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: uuid.UUID,
    session: AsyncSession = Depends(get_session)
):
    """Get a lead by ID."""
    lead_service = LeadService(session)
    try:
        return await lead_service.get(lead_id)
    except NotFoundError:
        raise_not_found("Lead", str(lead_id))


@router.post("/{lead_id}/reclassify", response_model=LeadResponse)
async def reclassify_lead(
    lead_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    classifier: ClassificationEngine = Depends(get_classifier)
):
    """Run the classifier again for an existing lead."""
    lead_service = LeadService(session)
    try:
        return await lead_service.reclassify(lead_id, classifier)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except OracleError as e:
        raise_bad_gateway(e.message)
