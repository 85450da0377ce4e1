from __future__ import annotations

from uuid import uuid4

import pytest

from tenders.domain_errors import (
    BidFinalized,
    Forbidden,
    InvalidUser,
    NoBid,
    NoTender,
    NoVersion,
    QuorumNotReached,
)
from tenders.models import ApprovalDecision, AuthorType, BidReview, BidStatus, OrganizationMember, TenderStatus
from tenders.schemas import BidCreate, BidPatch
from tenders.services.pagination import Pagination
from tenders.services.versioning import bid_store, tender_store
from tenders.use_cases.approval_tally import submit_decision_use_case
from tenders.use_cases.bid_workflow import (
    bid_feedback_use_case,
    create_bid_use_case,
    edit_bid_use_case,
    get_bid_status_use_case,
    list_my_bids_use_case,
    list_tender_bids_use_case,
    rollback_bid_use_case,
    set_bid_status_use_case,
)
from tenders.use_cases.tender_workflow import set_tender_status_use_case


@pytest.fixture
def market(world):
    """A published tender of a three-person organization and an independent bidding company."""
    buyer, employees = world.organization(name="Buyer", employees=3)
    seller, (bidder, bidder_colleague) = world.organization(name="Seller", employees=2)
    tender = world.tender(author=employees[0], organization=buyer)
    return {
        "buyer": buyer,
        "employees": employees,
        "seller": seller,
        "bidder": bidder,
        "bidder_colleague": bidder_colleague,
        "tender": tender,
    }


def _publish(db, bid, username: str):
    return set_bid_status_use_case(db=db, username=username, bid_id=bid.id, status=BidStatus.PUBLISHED)


def test_user_bid_derives_author_organization(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)

    assert bid.status == "Created"
    assert bid.version == 1
    assert bid.author_type == "User"
    assert bid.author_user_id == market["bidder"].id
    assert bid.author_organization_id == market["seller"].id
    assert len(bid_store.list_versions(db, bid.id)) == 1


def test_freelancer_bid_has_no_author_organization(world, market) -> None:
    freelancer = world.user(username="freelancer")

    bid = world.bid(tender=market["tender"], author_id=freelancer.id)

    assert bid.author_user_id == freelancer.id
    assert bid.author_organization_id is None


def test_organization_bid(world, market) -> None:
    bid = world.bid(
        tender=market["tender"],
        author_id=market["seller"].id,
        author_type=AuthorType.ORGANIZATION,
    )

    assert bid.author_type == "Organization"
    assert bid.author_user_id is None
    assert bid.author_organization_id == market["seller"].id


def test_bid_with_unknown_author_is_rejected(world, market) -> None:
    with pytest.raises(InvalidUser) as exc:
        world.bid(tender=market["tender"], author_id=uuid4())
    assert exc.value.http_status == 401

    with pytest.raises(InvalidUser):
        world.bid(tender=market["tender"], author_id=uuid4(), author_type=AuthorType.ORGANIZATION)


def test_bid_on_unpublished_tender_reports_missing_tender(db, world, market) -> None:
    draft = world.tender(author=market["employees"][0], organization=market["buyer"], status=TenderStatus.CREATED)

    with pytest.raises(NoTender) as exc:
        world.bid(tender=draft, author_id=market["bidder"].id)
    assert exc.value.code == "TENDER_NOT_FOUND"

    with pytest.raises(NoTender):
        create_bid_use_case(
            db=db,
            data=BidCreate(
                name="Offer",
                tender_id=uuid4(),
                author_type=AuthorType.USER,
                author_id=market["bidder"].id,
            ),
        )


def test_list_my_bids(db, world, market) -> None:
    world.bid(tender=market["tender"], author_id=market["bidder"].id, name="B")
    world.bid(tender=market["tender"], author_id=market["bidder"].id, name="A")
    world.bid(tender=market["tender"], author_id=market["bidder_colleague"].id, name="C")

    mine = list_my_bids_use_case(db=db, username=market["bidder"].username)
    assert [bid.name for bid in mine] == ["A", "B"]
    page = list_my_bids_use_case(db=db, username=market["bidder"].username, pagination=Pagination(limit=1))
    assert [bid.name for bid in page] == ["A"]


def test_list_tender_bids_visibility(db, world, market) -> None:
    tender = market["tender"]
    world.bid(tender=tender, author_id=market["bidder"].id)
    outsider = world.user()

    assert len(list_tender_bids_use_case(db=db, username=outsider.username, tender_id=tender.id)) == 1

    set_tender_status_use_case(
        db=db, username=market["employees"][0].username, tender_id=tender.id, status=TenderStatus.CREATED
    )
    assert len(list_tender_bids_use_case(db=db, username=market["employees"][1].username, tender_id=tender.id)) == 1
    with pytest.raises(Forbidden):
        list_tender_bids_use_case(db=db, username=outsider.username, tender_id=tender.id)


def test_bid_status_visibility(db, world, market) -> None:
    tender = market["tender"]
    bid = world.bid(tender=tender, author_id=market["bidder"].id)
    outsider = world.user()

    assert get_bid_status_use_case(db=db, username=market["bidder"].username, bid_id=bid.id) == "Created"
    assert get_bid_status_use_case(db=db, username=outsider.username, bid_id=bid.id) == "Created"

    set_tender_status_use_case(
        db=db, username=market["employees"][0].username, tender_id=tender.id, status=TenderStatus.CREATED
    )
    assert get_bid_status_use_case(db=db, username=market["bidder"].username, bid_id=bid.id) == "Created"
    assert get_bid_status_use_case(db=db, username=market["employees"][2].username, bid_id=bid.id) == "Created"
    with pytest.raises(Forbidden):
        get_bid_status_use_case(db=db, username=outsider.username, bid_id=bid.id)


def test_missing_bid(db, market) -> None:
    with pytest.raises(NoBid) as exc:
        get_bid_status_use_case(db=db, username=market["bidder"].username, bid_id=uuid4())
    assert exc.value.code == "BID_NOT_FOUND"


def test_edit_by_author_and_colleague(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)

    edited = edit_bid_use_case(
        db=db, username=market["bidder"].username, bid_id=bid.id, patch=BidPatch(name="Better offer")
    )
    assert edited.version == 2
    assert edited.name == "Better offer"
    assert edited.description == "We can do it in a month"

    edited = edit_bid_use_case(
        db=db, username=market["bidder_colleague"].username, bid_id=bid.id, patch=BidPatch(description="Two weeks")
    )
    assert edited.version == 3
    assert edited.description == "Two weeks"


def test_edit_by_stranger_is_forbidden(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)

    with pytest.raises(Forbidden):
        edit_bid_use_case(
            db=db, username=market["employees"][0].username, bid_id=bid.id, patch=BidPatch(name="Hijacked")
        )

    db.expire_all()
    assert bid_store.get_current(db, bid.id).version == 1


def test_organization_bid_is_editable_by_its_members_only(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["seller"].id, author_type=AuthorType.ORGANIZATION)

    edited = edit_bid_use_case(
        db=db, username=market["bidder_colleague"].username, bid_id=bid.id, patch=BidPatch(name="Team offer")
    )
    assert edited.name == "Team offer"
    with pytest.raises(Forbidden):
        edit_bid_use_case(
            db=db, username=market["employees"][0].username, bid_id=bid.id, patch=BidPatch(name="x")
        )


def test_rollback_bid(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)
    username = market["bidder"].username
    edit_bid_use_case(db=db, username=username, bid_id=bid.id, patch=BidPatch(name="Changed", description="Changed"))

    restored = rollback_bid_use_case(db=db, username=username, bid_id=bid.id, version=1)

    assert restored.version == 3
    assert restored.name == "Offer"
    assert restored.description == "We can do it in a month"
    assert restored.status == "Created"

    same = rollback_bid_use_case(db=db, username=username, bid_id=bid.id, version=3)
    assert same.version == 3
    with pytest.raises(NoVersion):
        rollback_bid_use_case(db=db, username=username, bid_id=bid.id, version=4)


def test_author_publishes_and_cancels(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)

    published = _publish(db, bid, market["bidder"].username)
    assert published.status == "Published"
    assert published.version == 2

    canceled = set_bid_status_use_case(
        db=db, username=market["bidder_colleague"].username, bid_id=bid.id, status=BidStatus.CANCELED
    )
    assert canceled.status == "Canceled"
    assert canceled.version == 3


def test_only_author_side_sets_non_decision_status(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)

    with pytest.raises(Forbidden):
        set_bid_status_use_case(
            db=db, username=market["employees"][0].username, bid_id=bid.id, status=BidStatus.PUBLISHED
        )


def test_decision_status_requires_tender_membership(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)
    _publish(db, bid, market["bidder"].username)

    with pytest.raises(Forbidden):
        set_bid_status_use_case(db=db, username=market["bidder"].username, bid_id=bid.id, status=BidStatus.APPROVED)
    with pytest.raises(Forbidden):
        set_bid_status_use_case(db=db, username=market["bidder"].username, bid_id=bid.id, status=BidStatus.REJECTED)


def test_manual_approval_without_quorum(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)
    _publish(db, bid, market["bidder"].username)
    employees = market["employees"]
    submit_decision_use_case(
        db=db, username=employees[0].username, bid_id=bid.id, decision=ApprovalDecision.APPROVE
    )

    with pytest.raises(QuorumNotReached) as exc:
        set_bid_status_use_case(db=db, username=employees[1].username, bid_id=bid.id, status=BidStatus.APPROVED)

    assert exc.value.code == "BID_QUORUM_NOT_REACHED"
    assert exc.value.http_status == 403
    db.expire_all()
    assert bid_store.get_current(db, bid.id).status == "Published"


def test_manual_approval_with_quorum_closes_tender(db, world, market) -> None:
    tender = market["tender"]
    employees = market["employees"]
    bid = world.bid(tender=tender, author_id=market["bidder"].id)
    _publish(db, bid, market["bidder"].username)
    for employee in employees[:2]:
        submit_decision_use_case(
            db=db, username=employee.username, bid_id=bid.id, decision=ApprovalDecision.APPROVE
        )
    # The third employee leaves, so two approvals now cover the whole organization.
    db.query(OrganizationMember).filter(OrganizationMember.user_id == employees[2].id).delete()
    db.commit()

    approved = set_bid_status_use_case(
        db=db, username=employees[0].username, bid_id=bid.id, status=BidStatus.APPROVED
    )

    assert approved.status == "Approved"
    assert approved.version == 3
    db.expire_all()
    closed = tender_store.get_current(db, tender.id)
    assert closed.status == "Closed"
    assert closed.version == 1


def test_manual_rejection_by_tender_member(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)
    _publish(db, bid, market["bidder"].username)

    rejected = set_bid_status_use_case(
        db=db, username=market["employees"][0].username, bid_id=bid.id, status=BidStatus.REJECTED
    )

    assert rejected.status == "Rejected"
    assert rejected.version == 3
    assert tender_store.get_current(db, market["tender"].id).status == "Published"


def test_finalized_bid_is_immutable(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)
    author = market["bidder"].username
    _publish(db, bid, author)
    set_bid_status_use_case(db=db, username=market["employees"][0].username, bid_id=bid.id, status=BidStatus.REJECTED)

    with pytest.raises(BidFinalized) as exc:
        edit_bid_use_case(db=db, username=author, bid_id=bid.id, patch=BidPatch(name="Late edit"))
    assert exc.value.code == "BID_FINALIZED"
    with pytest.raises(BidFinalized):
        rollback_bid_use_case(db=db, username=author, bid_id=bid.id, version=1)
    with pytest.raises(BidFinalized):
        set_bid_status_use_case(db=db, username=author, bid_id=bid.id, status=BidStatus.PUBLISHED)

    db.expire_all()
    current = bid_store.get_current(db, bid.id)
    assert current.status == "Rejected"
    assert current.version == 3


def test_feedback_is_stored_without_touching_bid(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)
    reviewer = market["employees"][1]

    result = bid_feedback_use_case(db=db, username=reviewer.username, bid_id=bid.id, text="Too expensive")
    bid_feedback_use_case(db=db, username=reviewer.username, bid_id=bid.id, text="Still too expensive")

    assert result.version == 1
    reviews = db.query(BidReview).filter(BidReview.bid_id == bid.id).all()
    assert len(reviews) == 1
    assert reviews[0].user_id == reviewer.id
    assert reviews[0].text == "Still too expensive"


def test_feedback_requires_tender_membership(db, world, market) -> None:
    bid = world.bid(tender=market["tender"], author_id=market["bidder"].id)

    with pytest.raises(Forbidden):
        bid_feedback_use_case(db=db, username=market["bidder"].username, bid_id=bid.id, text="Great offer")
