from __future__ import annotations

import os

# Must be set before tenders.config is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["POSTGRES_CONN"] = ""
os.environ.setdefault("AUTO_CREATE_SCHEMA", "false")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tenders.database import Base
from tenders.models import (
    AuthorType,
    Bid,
    Organization,
    OrganizationMember,
    ServiceType,
    Tender,
    TenderStatus,
    User,
)
from tenders.schemas import BidCreate, TenderCreate
from tenders.use_cases.bid_workflow import create_bid_use_case
from tenders.use_cases.tender_workflow import create_tender_use_case


@pytest.fixture
def engine():
    sqlite_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(sqlite_engine)
    yield sqlite_engine
    sqlite_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


class World:
    """Builds organizations, employees, tenders and bids for use-case tests."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self._counter = 0

    def organization(self, *, name: str | None = None, employees: int = 0) -> tuple[Organization, list[User]]:
        self._counter += 1
        org = Organization(name=name or f"Org {self._counter}", type="LLC")
        self.db.add(org)
        self.db.flush()
        users = [self.user(organization=org) for _ in range(employees)]
        self.db.commit()
        return org, users

    def user(self, *, username: str | None = None, organization: Organization | None = None) -> User:
        self._counter += 1
        user = User(username=username or f"user{self._counter}", first_name="Test", last_name="User")
        self.db.add(user)
        self.db.flush()
        if organization is not None:
            self.join(user, organization)
        self.db.commit()
        return user

    def join(self, user: User, organization: Organization) -> None:
        self.db.add(OrganizationMember(organization_id=organization.id, user_id=user.id))
        self.db.commit()

    def tender(
        self,
        *,
        author: User,
        organization: Organization,
        status: TenderStatus = TenderStatus.PUBLISHED,
        name: str = "Road repair",
        service_type: ServiceType = ServiceType.CONSTRUCTION,
    ) -> Tender:
        return create_tender_use_case(
            db=self.db,
            username=author.username,
            data=TenderCreate(
                name=name,
                description="Repair 2 km of road",
                service_type=service_type,
                status=status,
                organization_id=organization.id,
                creator_username=author.username,
            ),
        )

    def bid(
        self,
        *,
        tender: Tender,
        author_id,
        author_type: AuthorType = AuthorType.USER,
        name: str = "Offer",
    ) -> Bid:
        return create_bid_use_case(
            db=self.db,
            data=BidCreate(
                name=name,
                description="We can do it in a month",
                tender_id=tender.id,
                author_type=author_type,
                author_id=author_id,
            ),
        )


@pytest.fixture
def world(db) -> World:
    return World(db)
