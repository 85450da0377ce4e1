"""Reviewer feedback on bids, one entry per (bid, reviewer)."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from ..domain_errors import Forbidden
from ..models import Bid, BidReview, utcnow
from ..security import is_member, resolve_user
from ..services.pagination import UNLIMITED, Pagination
from ..services.versioning import tender_store


def add_review(db: Session, *, bid_id: UUID, user_id: UUID, text: str) -> BidReview:
    """Store the reviewer's feedback, overwriting their previous one for this bid."""
    review = db.query(BidReview).filter(
        BidReview.bid_id == bid_id,
        BidReview.user_id == user_id,
    ).first()
    now = utcnow()
    if review is None:
        review = BidReview(bid_id=bid_id, user_id=user_id, created_at=now)
        db.add(review)
    review.text = text
    review.updated_at = now
    db.flush()
    return review


def list_reviews(
    db: Session,
    *,
    tender_id: UUID | None = None,
    reviewer_id: UUID | None = None,
    author_user_id: UUID | None = None,
    pagination: Pagination = UNLIMITED,
) -> list[BidReview]:
    """Reviews, most recently updated first."""
    query = db.query(BidReview).join(Bid, Bid.id == BidReview.bid_id)
    if reviewer_id is not None:
        query = query.filter(BidReview.user_id == reviewer_id)
    if author_user_id is not None:
        query = query.filter(Bid.author_user_id == author_user_id)
    if tender_id is not None:
        query = query.filter(Bid.tender_id == tender_id)
    query = query.order_by(BidReview.updated_at.desc())
    return pagination.apply(query).all()


def list_author_reviews_use_case(
    *,
    db: Session,
    tender_id: UUID,
    requester_username: str,
    author_username: str,
    pagination: Pagination = UNLIMITED,
) -> list[BidReview]:
    """Past reviews of an author's bids, for an organization weighing that author's bid on its tender."""
    requester = resolve_user(db, requester_username)
    author = resolve_user(db, author_username)
    tender = tender_store.get_current(db, tender_id)
    if not is_member(db, requester.id, tender.organization_id):
        raise Forbidden(details={"username": requester_username})
    return list_reviews(db, author_user_id=author.id, pagination=pagination)
