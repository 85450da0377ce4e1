"""Bid lifecycle use-cases: submission, visibility, edits, status and rollback."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from ..config import settings
from ..database import unit_of_work
from ..domain_errors import BidFinalized, Forbidden, InvalidUser, NoTender, QuorumNotReached
from ..models import ApprovalDecision, AuthorType, Bid, BidStatus, TenderStatus
from ..schemas import BidCreate, BidPatch
from ..security import (
    can_edit_bid,
    employee_count,
    get_organization,
    get_user,
    is_member,
    organization_of,
    resolve_user,
)
from ..services.pagination import UNLIMITED, Pagination
from ..services.status_rules import is_bid_final, is_decision_status, quorum_reached
from ..services.versioning import bid_store, tender_store
from .approval_tally import close_tender_for_approved_bid, tally_votes
from .review_ledger import add_review

logger = logging.getLogger(__name__)


def _resolve_bid_author(db: Session, bid: Bid) -> None:
    """Fill author_user_id / author_organization_id from author_type + author_id."""
    if bid.author_type == AuthorType.USER.value:
        if get_user(db, bid.author_id) is None:
            raise InvalidUser(details={"authorId": str(bid.author_id)})
        bid.author_user_id = bid.author_id
        bid.author_organization_id = organization_of(db, bid.author_id)
    else:
        if get_organization(db, bid.author_id) is None:
            raise InvalidUser(details={"authorId": str(bid.author_id)})
        bid.author_user_id = None
        bid.author_organization_id = bid.author_id


def create_bid_use_case(*, db: Session, data: BidCreate) -> Bid:
    """Submit a bid against a published tender."""
    with unit_of_work(db):
        bid = Bid(
            tender_id=data.tender_id,
            author_type=AuthorType(data.author_type).value,
            author_id=data.author_id,
            status=BidStatus.CREATED.value,
            name=data.name,
            description=data.description,
        )
        _resolve_bid_author(db, bid)

        tender = tender_store.get_current(db, data.tender_id)
        # An unpublished tender is reported as missing so its existence does not leak.
        if tender.status != TenderStatus.PUBLISHED.value:
            raise NoTender()

        bid_store.create(db, bid)

    logger.info("bid.created bid=%s tender=%s author=%s", bid.id, bid.tender_id, bid.author_id)
    return bid


def list_my_bids_use_case(*, db: Session, username: str, pagination: Pagination = UNLIMITED) -> list[Bid]:
    user = resolve_user(db, username)
    query = db.query(Bid).filter(Bid.author_id == user.id).order_by(Bid.name)
    return pagination.apply(query).all()


def list_tender_bids_use_case(
    *,
    db: Session,
    username: str,
    tender_id: UUID,
    pagination: Pagination = UNLIMITED,
) -> list[Bid]:
    user = resolve_user(db, username)
    tender = tender_store.get_current(db, tender_id)
    if not is_member(db, user.id, tender.organization_id) and tender.status != TenderStatus.PUBLISHED.value:
        raise Forbidden(details={"username": username})
    query = db.query(Bid).filter(Bid.tender_id == tender.id).order_by(Bid.name)
    return pagination.apply(query).all()


def get_bid_status_use_case(*, db: Session, username: str, bid_id: UUID) -> str:
    user = resolve_user(db, username)
    bid = bid_store.get_current(db, bid_id)
    if bid.author_id == user.id:
        return bid.status

    tender = tender_store.get_current(db, bid.tender_id)
    if is_member(db, user.id, tender.organization_id) or tender.status == TenderStatus.PUBLISHED.value:
        return bid.status
    raise Forbidden(details={"username": username})


def edit_bid_use_case(*, db: Session, username: str, bid_id: UUID, patch: BidPatch) -> Bid:
    with unit_of_work(db):
        user = resolve_user(db, username)
        bid = bid_store.get_current(db, bid_id, for_update=True)

        if is_bid_final(bid.status):
            raise BidFinalized()
        if not can_edit_bid(db, user, bid):
            raise Forbidden(details={"username": username})

        for name, value in patch.changes().items():
            setattr(bid, name, value)
        bid_store.update(db, bid, bump_version=True)

    logger.info("bid.edited bid=%s version=%s user=%s", bid.id, bid.version, user.id)
    return bid


def rollback_bid_use_case(*, db: Session, username: str, bid_id: UUID, version: int) -> Bid:
    with unit_of_work(db):
        user = resolve_user(db, username)
        bid = bid_store.get_current(db, bid_id, for_update=True)

        if is_bid_final(bid.status):
            raise BidFinalized()
        if not can_edit_bid(db, user, bid):
            raise Forbidden(details={"username": username})
        if bid_store.check_rollback_target(bid, version):
            return bid

        bid_store.rollback(db, bid, version)

    logger.info("bid.rollback bid=%s target=%s version=%s user=%s", bid.id, version, bid.version, user.id)
    return bid


def _ensure_manual_approval_allowed(db: Session, *, bid: Bid, organization_id: UUID) -> None:
    counts = tally_votes(db, bid.id)
    if counts[ApprovalDecision.REJECT.value] > 0:
        # A recorded rejection already decided the bid.
        raise BidFinalized()
    if not quorum_reached(
        approve_count=counts[ApprovalDecision.APPROVE.value],
        employee_count=employee_count(db, organization_id),
        threshold=settings.APPROVAL_QUORUM,
    ):
        raise QuorumNotReached(details={"approvals": counts[ApprovalDecision.APPROVE.value]})


def set_bid_status_use_case(*, db: Session, username: str, bid_id: UUID, status: BidStatus) -> Bid:
    """Manual status change; always materializes a new version."""
    next_status = BidStatus(status).value
    with unit_of_work(db):
        user = resolve_user(db, username)
        bid = bid_store.get_current(db, bid_id, for_update=True)
        old_status = bid.status

        if is_bid_final(old_status):
            raise BidFinalized()

        tender = None
        if is_decision_status(next_status):
            tender = tender_store.get_current(db, bid.tender_id, for_update=True)
            if not is_member(db, user.id, tender.organization_id):
                raise Forbidden(details={"username": username})
            if next_status == BidStatus.APPROVED.value:
                _ensure_manual_approval_allowed(db, bid=bid, organization_id=tender.organization_id)
        elif not can_edit_bid(db, user, bid):
            raise Forbidden(details={"username": username})

        bid.status = next_status
        bid_store.update(db, bid, bump_version=True)
        if next_status == BidStatus.APPROVED.value:
            close_tender_for_approved_bid(db, bid=bid, tender=tender)

    logger.info("bid.status bid=%s %s->%s user=%s", bid.id, old_status, next_status, user.id)
    return bid


def bid_feedback_use_case(*, db: Session, username: str, bid_id: UUID, text: str) -> Bid:
    """Leave (or replace) the requester's review; the bid itself is untouched."""
    with unit_of_work(db):
        user = resolve_user(db, username)
        bid = bid_store.get_current(db, bid_id)
        tender = tender_store.get_current(db, bid.tender_id)
        if not is_member(db, user.id, tender.organization_id):
            raise Forbidden(details={"username": username})

        add_review(db, bid_id=bid.id, user_id=user.id, text=text)

    logger.info("bid.feedback bid=%s user=%s", bid.id, user.id)
    return bid
