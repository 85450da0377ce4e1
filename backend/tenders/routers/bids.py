"""Bid endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import ApprovalDecision, BidStatus
from ..schemas import (
    FEEDBACK_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
    BidCreate,
    BidPatch,
    BidResponse,
    BidReviewResponse,
)
from ..services.pagination import Pagination
from ..use_cases.approval_tally import submit_decision_use_case
from ..use_cases.bid_workflow import (
    bid_feedback_use_case,
    create_bid_use_case,
    edit_bid_use_case,
    get_bid_status_use_case,
    list_my_bids_use_case,
    list_tender_bids_use_case,
    rollback_bid_use_case,
    set_bid_status_use_case,
)
from ..use_cases.review_ledger import list_author_reviews_use_case
from .params import pagination_params, username_param

router = APIRouter(prefix="/bids", tags=["bids"])


@router.post("/new", response_model=BidResponse)
def create_bid(data: BidCreate, db: Session = Depends(get_db)):
    """Submit a bid against a published tender."""
    return create_bid_use_case(db=db, data=data)


@router.get("/my", response_model=list[BidResponse])
def list_my_bids(
    username: str = Depends(username_param),
    pagination: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
):
    return list_my_bids_use_case(db=db, username=username, pagination=pagination)


@router.get("/{tender_id}/list", response_model=list[BidResponse])
def list_tender_bids(
    tender_id: UUID,
    username: str = Depends(username_param),
    pagination: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
):
    """List bids submitted against a tender."""
    return list_tender_bids_use_case(db=db, username=username, tender_id=tender_id, pagination=pagination)


@router.get("/{bid_id}/status", response_model=BidStatus)
def get_bid_status(
    bid_id: UUID,
    username: str = Depends(username_param),
    db: Session = Depends(get_db),
):
    return get_bid_status_use_case(db=db, username=username, bid_id=bid_id)


@router.put("/{bid_id}/status", response_model=BidResponse)
def set_bid_status(
    bid_id: UUID,
    status: BidStatus,
    username: str = Depends(username_param),
    db: Session = Depends(get_db),
):
    return set_bid_status_use_case(db=db, username=username, bid_id=bid_id, status=status)


@router.patch("/{bid_id}/edit", response_model=BidResponse)
def edit_bid(
    bid_id: UUID,
    patch: BidPatch,
    username: str = Depends(username_param),
    db: Session = Depends(get_db),
):
    return edit_bid_use_case(db=db, username=username, bid_id=bid_id, patch=patch)


@router.put("/{bid_id}/submit_decision", response_model=BidResponse)
def submit_decision(
    bid_id: UUID,
    decision: ApprovalDecision,
    username: str = Depends(username_param),
    db: Session = Depends(get_db),
):
    """Vote to approve or reject a bid on behalf of the tender's organization."""
    return submit_decision_use_case(db=db, username=username, bid_id=bid_id, decision=decision)


@router.put("/{bid_id}/feedback", response_model=BidResponse)
def bid_feedback(
    bid_id: UUID,
    bid_feedback: str = Query(..., alias="bidFeedback", min_length=1, max_length=FEEDBACK_MAX_LENGTH),
    username: str = Depends(username_param),
    db: Session = Depends(get_db),
):
    return bid_feedback_use_case(db=db, username=username, bid_id=bid_id, text=bid_feedback)


@router.put("/{bid_id}/rollback/{version}", response_model=BidResponse)
def rollback_bid(
    bid_id: UUID,
    version: int,
    username: str = Depends(username_param),
    db: Session = Depends(get_db),
):
    return rollback_bid_use_case(db=db, username=username, bid_id=bid_id, version=version)


@router.get("/{tender_id}/reviews", response_model=list[BidReviewResponse])
def list_author_reviews(
    tender_id: UUID,
    author_username: str = Query(..., alias="authorUsername", min_length=1, max_length=USERNAME_MAX_LENGTH),
    requester_username: str = Query(..., alias="requesterUsername", min_length=1, max_length=USERNAME_MAX_LENGTH),
    pagination: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
):
    """Reviews left on the author's past bids, for the tender's organization."""
    return list_author_reviews_use_case(
        db=db,
        tender_id=tender_id,
        requester_username=requester_username,
        author_username=author_username,
        pagination=pagination,
    )
