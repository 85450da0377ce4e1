"""Tender/bid status invariants and the approval quorum rule."""

from __future__ import annotations

from ..models import ApprovalDecision, BidStatus, TenderStatus


FINAL_BID_STATUSES: set[str] = {BidStatus.APPROVED.value, BidStatus.REJECTED.value}
# Decisions are accepted only once a bid left the author's hands.
_UNDECIDABLE_BID_STATUSES: set[str] = {BidStatus.CREATED.value, BidStatus.CANCELED.value}
_DECISION_OUTCOME: dict[str, str] = {
    ApprovalDecision.APPROVE.value: BidStatus.APPROVED.value,
    ApprovalDecision.REJECT.value: BidStatus.REJECTED.value,
}


def is_tender_closed(status: str | None) -> bool:
    return status == TenderStatus.CLOSED.value


def tender_status_change_allowed(*, current_status: str, next_status: str) -> bool:
    """Closed is reachable from anywhere; nothing leaves Closed."""
    return not (is_tender_closed(current_status) and next_status != TenderStatus.CLOSED.value)


def tender_status_change_bumps_version(next_status: str) -> bool:
    # Closing a tender does not materialize a new version.
    return next_status != TenderStatus.CLOSED.value


def is_bid_final(status: str | None) -> bool:
    return status in FINAL_BID_STATUSES


def is_decision_status(status: str) -> bool:
    """Statuses that only the tender's organization may set."""
    return status in FINAL_BID_STATUSES


def bid_accepts_decisions(status: str) -> bool:
    return status not in _UNDECIDABLE_BID_STATUSES


def decision_conflicts_with_outcome(*, bid_status: str, decision: str) -> bool:
    """A finalized bid takes confirming votes only, never the opposing one."""
    if not is_bid_final(bid_status):
        return False
    return _DECISION_OUTCOME[decision] != bid_status


def quorum_reached(*, approve_count: int, employee_count: int, threshold: int = 3) -> bool:
    """Both conditions are evaluated literally: small organizations reach quorum with fewer votes."""
    return approve_count >= threshold or approve_count >= employee_count


def tally_outcome(
    *,
    approve_count: int,
    reject_count: int,
    employee_count: int,
    threshold: int = 3,
) -> str | None:
    """Status a bid should move to after a vote, or None when it stays as is."""
    if reject_count > 0:
        return BidStatus.REJECTED.value
    if approve_count > 0 and quorum_reached(
        approve_count=approve_count,
        employee_count=employee_count,
        threshold=threshold,
    ):
        return BidStatus.APPROVED.value
    return None
