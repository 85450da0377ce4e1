"""SQLAlchemy models for organizations, tenders, bids and their ledgers."""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, DateTime, Text, Uuid,
    ForeignKey, CheckConstraint, Index, UniqueConstraint, PrimaryKeyConstraint
)

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrganizationType(str, enum.Enum):
    IE = "IE"
    LLC = "LLC"
    JSC = "JSC"


class TenderStatus(str, enum.Enum):
    CREATED = "Created"
    PUBLISHED = "Published"
    CLOSED = "Closed"


class ServiceType(str, enum.Enum):
    CONSTRUCTION = "Construction"
    DELIVERY = "Delivery"
    MANUFACTURE = "Manufacture"


class AuthorType(str, enum.Enum):
    USER = "User"
    ORGANIZATION = "Organization"


class BidStatus(str, enum.Enum):
    CREATED = "Created"
    PUBLISHED = "Published"
    CANCELED = "Canceled"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ApprovalDecision(str, enum.Enum):
    APPROVE = "Approved"
    REJECT = "Rejected"


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class User(Base):
    """Employee account; seeded externally and never mutated by the workflow."""
    __tablename__ = "employee"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False, index=True)
    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Organization(Base):
    __tablename__ = "organization"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(10), nullable=False, default=OrganizationType.LLC.value)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(type.in_(_values(OrganizationType)), name="chk_organization_type"),
    )


class OrganizationMember(Base):
    """Flat user-to-organization membership ("organization responsible")."""
    __tablename__ = "organization_responsible"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(
        Uuid, ForeignKey("organization.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Uuid, ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_organization_member"),
    )


class Tender(Base):
    """Current state of a tender; history lives in TenderVersion."""
    __tablename__ = "tenders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    version = Column(Integer, nullable=False, default=1)
    organization_id = Column(Uuid, ForeignKey("organization.id"), nullable=False, index=True)
    author_id = Column(Uuid, ForeignKey("employee.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=TenderStatus.CREATED.value, index=True)
    service_type = Column(String(20), nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(status.in_(_values(TenderStatus)), name="chk_tender_status"),
        CheckConstraint(service_type.in_(_values(ServiceType)), name="chk_tender_service_type"),
        CheckConstraint(version >= 1, name="chk_tender_version_positive"),
    )
    # Every UPDATE is guarded by "WHERE version = <version read>"; the application assigns versions.
    __mapper_args__ = {"version_id_col": version, "version_id_generator": False}


class TenderVersion(Base):
    """Immutable snapshot of a tender at one version number."""
    __tablename__ = "tenders_versions"

    id = Column(Uuid, ForeignKey("tenders.id", ondelete="CASCADE"), nullable=False)
    version = Column(Integer, nullable=False)
    organization_id = Column(Uuid, nullable=False)
    author_id = Column(Uuid, nullable=False)
    status = Column(String(20), nullable=False)
    service_type = Column(String(20), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint("id", "version", name="pk_tenders_versions"),
        Index("idx_tenders_versions_updated", "id", "updated_at"),
    )


class Bid(Base):
    """Current state of a bid (proposal); history lives in BidVersion."""
    __tablename__ = "proposals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    version = Column(Integer, nullable=False, default=1)
    tender_id = Column(Uuid, ForeignKey("tenders.id"), nullable=False, index=True)
    author_type = Column(String(20), nullable=False)
    # Equals author_user_id or author_organization_id depending on author_type.
    author_id = Column(Uuid, nullable=False, index=True)
    author_user_id = Column(Uuid, ForeignKey("employee.id"), nullable=True, index=True)
    author_organization_id = Column(Uuid, ForeignKey("organization.id"), nullable=True)
    status = Column(String(20), nullable=False, default=BidStatus.CREATED.value, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(status.in_(_values(BidStatus)), name="chk_bid_status"),
        CheckConstraint(author_type.in_(_values(AuthorType)), name="chk_bid_author_type"),
        CheckConstraint(version >= 1, name="chk_bid_version_positive"),
    )
    __mapper_args__ = {"version_id_col": version, "version_id_generator": False}


class BidVersion(Base):
    """Immutable snapshot of a bid at one version number."""
    __tablename__ = "proposals_versions"

    id = Column(Uuid, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False)
    version = Column(Integer, nullable=False)
    tender_id = Column(Uuid, nullable=False)
    author_type = Column(String(20), nullable=False)
    author_id = Column(Uuid, nullable=False)
    author_user_id = Column(Uuid, nullable=True)
    author_organization_id = Column(Uuid, nullable=True)
    status = Column(String(20), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint("id", "version", name="pk_proposals_versions"),
        Index("idx_proposals_versions_updated", "id", "updated_at"),
    )


class BidApproval(Base):
    """Latest decision of one employee on one bid."""
    __tablename__ = "proposal_approval"

    bid_id = Column(Uuid, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("employee.id", ondelete="CASCADE"), nullable=False)
    decision = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        PrimaryKeyConstraint("bid_id", "user_id", name="pk_proposal_approval"),
        CheckConstraint(decision.in_(_values(ApprovalDecision)), name="chk_approval_decision"),
    )


class BidReview(Base):
    """Latest feedback of one reviewer on one bid."""
    __tablename__ = "proposal_reviews"

    bid_id = Column(Uuid, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("employee.id", ondelete="CASCADE"), nullable=False)
    text = Column(String(1000), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        PrimaryKeyConstraint("bid_id", "user_id", name="pk_proposal_reviews"),
        Index("idx_proposal_reviews_updated", "updated_at"),
    )
