"""Tender endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import ServiceType, TenderStatus
from ..schemas import TenderCreate, TenderPatch, TenderResponse
from ..services.pagination import Pagination
from ..use_cases.tender_workflow import (
    create_tender_use_case,
    edit_tender_use_case,
    get_tender_status_use_case,
    list_my_tenders_use_case,
    list_tenders_use_case,
    rollback_tender_use_case,
    set_tender_status_use_case,
)
from .params import pagination_params, username_param

router = APIRouter(prefix="/tenders", tags=["tenders"])


@router.get("", response_model=list[TenderResponse])
def list_tenders(
    service_type: Optional[list[ServiceType]] = Query(None),
    pagination: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
):
    """List all tenders, optionally filtered by service type."""
    return list_tenders_use_case(db=db, service_types=service_type, pagination=pagination)


@router.post("/new", response_model=TenderResponse)
def create_tender(data: TenderCreate, db: Session = Depends(get_db)):
    """Create tender."""
    return create_tender_use_case(db=db, username=data.creator_username, data=data)


@router.get("/my", response_model=list[TenderResponse])
def list_my_tenders(
    username: str = Depends(username_param),
    pagination: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
):
    """List tenders authored by the user."""
    return list_my_tenders_use_case(db=db, username=username, pagination=pagination)


@router.get("/{tender_id}/status", response_model=TenderStatus)
def get_tender_status(
    tender_id: UUID,
    username: str = Depends(username_param),
    db: Session = Depends(get_db),
):
    return get_tender_status_use_case(db=db, username=username, tender_id=tender_id)


@router.put("/{tender_id}/status", response_model=TenderResponse)
def set_tender_status(
    tender_id: UUID,
    status: TenderStatus,
    username: str = Depends(username_param),
    db: Session = Depends(get_db),
):
    return set_tender_status_use_case(db=db, username=username, tender_id=tender_id, status=status)


@router.patch("/{tender_id}/edit", response_model=TenderResponse)
def edit_tender(
    tender_id: UUID,
    patch: TenderPatch,
    username: str = Depends(username_param),
    db: Session = Depends(get_db),
):
    """Edit name, description or service type."""
    return edit_tender_use_case(db=db, username=username, tender_id=tender_id, patch=patch)


@router.put("/{tender_id}/rollback/{version}", response_model=TenderResponse)
def rollback_tender(
    tender_id: UUID,
    version: int,
    username: str = Depends(username_param),
    db: Session = Depends(get_db),
):
    """Restore the content of an earlier version as a new version."""
    return rollback_tender_use_case(db=db, username=username, tender_id=tender_id, version=version)
