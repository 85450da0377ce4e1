"""Tender lifecycle use-cases: creation, listing, status, edits and rollback."""
from __future__ import annotations

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from ..database import unit_of_work
from ..domain_errors import Forbidden, TenderFinalized
from ..models import ServiceType, Tender, TenderStatus
from ..schemas import TenderCreate, TenderPatch
from ..security import is_member, resolve_user
from ..services.pagination import UNLIMITED, Pagination
from ..services.status_rules import (
    is_tender_closed,
    tender_status_change_allowed,
    tender_status_change_bumps_version,
)
from ..services.versioning import tender_store

logger = logging.getLogger(__name__)


def create_tender_use_case(*, db: Session, username: str, data: TenderCreate) -> Tender:
    """Create a tender on behalf of a member of the owning organization."""
    with unit_of_work(db):
        user = resolve_user(db, username)
        if not is_member(db, user.id, data.organization_id):
            raise Forbidden(details={"username": username})

        tender = Tender(
            organization_id=data.organization_id,
            author_id=user.id,
            status=TenderStatus(data.status).value,
            service_type=ServiceType(data.service_type).value,
            name=data.name,
            description=data.description,
        )
        tender_store.create(db, tender)

    logger.info("tender.created tender=%s org=%s user=%s", tender.id, tender.organization_id, user.id)
    return tender


def list_tenders_use_case(
    *,
    db: Session,
    service_types: Sequence[ServiceType] | None = None,
    pagination: Pagination = UNLIMITED,
) -> list[Tender]:
    """Public listing ordered by name."""
    query = db.query(Tender)
    if service_types:
        query = query.filter(Tender.service_type.in_([ServiceType(item).value for item in service_types]))
    return pagination.apply(query.order_by(Tender.name)).all()


def list_my_tenders_use_case(
    *,
    db: Session,
    username: str,
    pagination: Pagination = UNLIMITED,
) -> list[Tender]:
    user = resolve_user(db, username)
    query = db.query(Tender).filter(Tender.author_id == user.id).order_by(Tender.name)
    return pagination.apply(query).all()


def get_tender_status_use_case(*, db: Session, username: str, tender_id: UUID) -> str:
    """Status is visible to the owning organization, or to anyone once published."""
    user = resolve_user(db, username)
    tender = tender_store.get_current(db, tender_id)
    if is_member(db, user.id, tender.organization_id) or tender.status == TenderStatus.PUBLISHED.value:
        return tender.status
    raise Forbidden(details={"username": username})


def set_tender_status_use_case(
    *,
    db: Session,
    username: str,
    tender_id: UUID,
    status: TenderStatus,
) -> Tender:
    next_status = TenderStatus(status).value
    with unit_of_work(db):
        user = resolve_user(db, username)
        tender = tender_store.get_current(db, tender_id, for_update=True)
        old_status = tender.status

        if not tender_status_change_allowed(current_status=old_status, next_status=next_status):
            raise TenderFinalized()
        if not is_member(db, user.id, tender.organization_id):
            raise Forbidden(details={"username": username})

        tender.status = next_status
        tender_store.update(db, tender, bump_version=tender_status_change_bumps_version(next_status))

    logger.info("tender.status tender=%s %s->%s user=%s", tender.id, old_status, next_status, user.id)
    return tender


def edit_tender_use_case(
    *,
    db: Session,
    username: str,
    tender_id: UUID,
    patch: TenderPatch,
) -> Tender:
    """Apply only the supplied fields and materialize a new version."""
    with unit_of_work(db):
        user = resolve_user(db, username)
        tender = tender_store.get_current(db, tender_id, for_update=True)

        if not is_member(db, user.id, tender.organization_id):
            raise Forbidden(details={"username": username})
        if is_tender_closed(tender.status):
            raise TenderFinalized()

        for name, value in patch.changes().items():
            setattr(tender, name, value)
        tender_store.update(db, tender, bump_version=True)

    logger.info("tender.edited tender=%s version=%s user=%s", tender.id, tender.version, user.id)
    return tender


def rollback_tender_use_case(
    *,
    db: Session,
    username: str,
    tender_id: UUID,
    version: int,
) -> Tender:
    """Restore an old version's content as a new version."""
    with unit_of_work(db):
        user = resolve_user(db, username)
        tender = tender_store.get_current(db, tender_id, for_update=True)

        if not is_member(db, user.id, tender.organization_id):
            raise Forbidden(details={"username": username})
        # Rolling back onto the current version mutates nothing, so a closed tender allows it.
        if tender_store.check_rollback_target(tender, version):
            return tender
        if is_tender_closed(tender.status):
            raise TenderFinalized()

        tender_store.rollback(db, tender, version)

    logger.info("tender.rollback tender=%s target=%s version=%s user=%s", tender.id, version, tender.version, user.id)
    return tender
