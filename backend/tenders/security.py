"""Authorization helpers: identity resolution, membership and ownership checks."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from .domain_errors import InvalidUser
from .models import AuthorType, Bid, Organization, OrganizationMember, User


def resolve_user(db: Session, username: str) -> User:
    """Load a user by username or raise InvalidUser."""
    user = db.query(User).filter(User.username == username).first()
    if not user:
        raise InvalidUser(details={"username": username})
    return user


def get_user(db: Session, user_id: UUID) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_organization(db: Session, organization_id: UUID) -> Organization | None:
    return db.query(Organization).filter(Organization.id == organization_id).first()


def is_member(db: Session, user_id: UUID, organization_id: UUID | None) -> bool:
    """True iff the user is a recorded member of the organization."""
    if organization_id is None:
        return False
    row = db.query(OrganizationMember.id).filter(
        OrganizationMember.organization_id == organization_id,
        OrganizationMember.user_id == user_id,
    ).first()
    return row is not None


def organization_of(db: Session, user_id: UUID) -> UUID | None:
    """First organization the user belongs to (by membership row order)."""
    row = (
        db.query(OrganizationMember.organization_id)
        .filter(OrganizationMember.user_id == user_id)
        .order_by(OrganizationMember.id)
        .first()
    )
    return row[0] if row else None


def employee_count(db: Session, organization_id: UUID) -> int:
    return (
        db.query(func.count(OrganizationMember.id))
        .filter(OrganizationMember.organization_id == organization_id)
        .scalar()
        or 0
    )


def are_colleagues(db: Session, user_id_1: UUID, user_id_2: UUID) -> bool:
    """True iff both users are members of at least one common organization."""
    rows = (
        db.query(
            OrganizationMember.organization_id,
            func.count(OrganizationMember.user_id.distinct()),
        )
        .filter(OrganizationMember.user_id.in_([user_id_1, user_id_2]))
        .group_by(OrganizationMember.organization_id)
        .all()
    )
    return any(count >= 2 for _org_id, count in rows)


def can_edit_bid(db: Session, user: User, bid: Bid) -> bool:
    """Edit rights: the author, members of an authoring organization, or colleagues of an authoring user."""
    if bid.author_id == user.id:
        return True
    if bid.author_type == AuthorType.ORGANIZATION.value:
        return is_member(db, user.id, bid.author_id)
    return are_colleagues(db, user.id, bid.author_id)
