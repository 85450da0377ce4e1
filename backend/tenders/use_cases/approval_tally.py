"""Bid decision submission: vote ledger, quorum tally and the tender-closing cascade."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import settings
from ..database import unit_of_work
from ..domain_errors import BidFinalized, Forbidden
from ..models import ApprovalDecision, Bid, BidApproval, BidStatus, Tender, TenderStatus, utcnow
from ..security import employee_count, is_member, resolve_user
from ..services.status_rules import (
    bid_accepts_decisions,
    decision_conflicts_with_outcome,
    tally_outcome,
)
from ..services.versioning import bid_store, tender_store

logger = logging.getLogger(__name__)


def upsert_vote(db: Session, *, bid_id: UUID, user_id: UUID, decision: ApprovalDecision) -> BidApproval:
    """Record the voter's decision, replacing any earlier vote of the same voter."""
    vote = db.query(BidApproval).filter(
        BidApproval.bid_id == bid_id,
        BidApproval.user_id == user_id,
    ).first()
    now = utcnow()
    if vote is None:
        vote = BidApproval(bid_id=bid_id, user_id=user_id, created_at=now)
        db.add(vote)
    vote.decision = ApprovalDecision(decision).value
    vote.updated_at = now
    db.flush()
    return vote


def tally_votes(db: Session, bid_id: UUID) -> dict[str, int]:
    """Vote counts per decision, zero-filled."""
    counts = {decision.value: 0 for decision in ApprovalDecision}
    rows = (
        db.query(BidApproval.decision, func.count())
        .filter(BidApproval.bid_id == bid_id)
        .group_by(BidApproval.decision)
        .all()
    )
    for decision, count in rows:
        counts[decision] = count
    return counts


def close_tender_for_approved_bid(db: Session, *, bid: Bid, tender: Tender) -> None:
    """An approved bid always closes its tender; the closure is not a new tender version."""
    if tender.status == TenderStatus.CLOSED.value:
        return
    tender.status = TenderStatus.CLOSED.value
    tender_store.update(db, tender, bump_version=False)
    logger.info("tender.closed_by_bid tender=%s bid=%s", tender.id, bid.id)


def _apply_tally(db: Session, *, bid: Bid, tender: Tender) -> None:
    counts = tally_votes(db, bid.id)
    outcome = tally_outcome(
        approve_count=counts[ApprovalDecision.APPROVE.value],
        reject_count=counts[ApprovalDecision.REJECT.value],
        employee_count=employee_count(db, tender.organization_id),
        threshold=settings.APPROVAL_QUORUM,
    )
    if outcome is None:
        return

    if bid.status != outcome:
        bid.status = outcome
        bid_store.update(db, bid, bump_version=False)
        logger.info("bid.decided bid=%s status=%s votes=%s", bid.id, outcome, counts)
    if outcome == BidStatus.APPROVED.value:
        close_tender_for_approved_bid(db, bid=bid, tender=tender)


def submit_decision_use_case(
    *,
    db: Session,
    username: str,
    bid_id: UUID,
    decision: ApprovalDecision,
) -> Bid:
    """Record an employee's vote on a bid and apply veto/quorum rules."""
    decision_value = ApprovalDecision(decision).value
    with unit_of_work(db):
        user = resolve_user(db, username)
        # Lock the bid so concurrent votes on it tally one after another.
        bid = bid_store.get_current(db, bid_id, for_update=True)

        if not bid_accepts_decisions(bid.status):
            raise Forbidden(details={"status": bid.status})
        if decision_conflicts_with_outcome(bid_status=bid.status, decision=decision_value):
            raise BidFinalized()

        tender = tender_store.get_current(db, bid.tender_id, for_update=True)
        if not is_member(db, user.id, tender.organization_id):
            raise Forbidden(details={"username": username})

        upsert_vote(db, bid_id=bid.id, user_id=user.id, decision=decision_value)
        _apply_tally(db, bid=bid, tender=tender)

    logger.info("bid.vote bid=%s user=%s decision=%s status=%s", bid.id, user.id, decision_value, bid.status)
    return bid
