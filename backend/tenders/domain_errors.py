"""Domain-level exception primitives with stable machine-readable codes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """Use-case level error with stable code and HTTP mapping."""

    code: str
    http_status: int
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class InvalidUser(DomainError):
    """Username or author reference does not resolve."""

    code: str = "INVALID_USER"
    http_status: int = 401
    message: str = "User does not exist or has no rights for requested action"


@dataclass(eq=False)
class InvalidRequest(DomainError):
    """Malformed parameters or body, rejected before any use case runs."""

    code: str = "INVALID_REQUEST"
    http_status: int = 400
    message: str = "Request parameters are malformed or do not satisfy constraints"


@dataclass(eq=False)
class Forbidden(DomainError):
    code: str = "FORBIDDEN"
    http_status: int = 403
    message: str = "User has no permission for requested action"


@dataclass(eq=False)
class NotFound(DomainError):
    code: str = "NOT_FOUND"
    http_status: int = 404
    message: str = "Requested entity does not exist"


@dataclass(eq=False)
class NoTender(NotFound):
    """Tender is missing, or hidden from the requester (unpublished)."""

    code: str = "TENDER_NOT_FOUND"
    message: str = "Requested tender does not exist or is inaccessible"


@dataclass(eq=False)
class NoBid(NotFound):
    code: str = "BID_NOT_FOUND"
    message: str = "Requested bid does not exist or is inaccessible"


@dataclass(eq=False)
class NoVersion(DomainError):
    code: str = "VERSION_NOT_FOUND"
    http_status: int = 404
    message: str = "Requested version does not exist"


@dataclass(eq=False)
class Finalized(DomainError):
    """Mutation requested against an entity in a terminal state."""

    code: str = "FINALIZED"
    http_status: int = 403
    message: str = "Entity is finalized"


@dataclass(eq=False)
class TenderFinalized(Finalized):
    code: str = "TENDER_FINALIZED"
    message: str = "Requested tender is already closed"


@dataclass(eq=False)
class BidFinalized(Finalized):
    code: str = "BID_FINALIZED"
    message: str = "Requested bid is already approved or rejected"


@dataclass(eq=False)
class QuorumNotReached(DomainError):
    code: str = "BID_QUORUM_NOT_REACHED"
    http_status: int = 403
    message: str = "Requested bid does not have enough votes to be approved"


@dataclass(eq=False)
class VersionConflict(DomainError):
    """Another writer advanced the entity between read and write."""

    code: str = "VERSION_CONFLICT"
    http_status: int = 409
    message: str = "Entity was modified concurrently, retry the request"


@dataclass(eq=False)
class InternalError(DomainError):
    code: str = "INTERNAL_ERROR"
    http_status: int = 500
    message: str = "Internal server error"
