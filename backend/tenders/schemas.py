"""Pydantic schemas for API."""
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import AuthorType, BidStatus, ServiceType, TenderStatus

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
BID_EDIT_DESCRIPTION_MAX_LENGTH = 100
USERNAME_MAX_LENGTH = 50
FEEDBACK_MAX_LENGTH = 1000


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class _Patch(ApiModel):
    """Partial update: only fields present in the payload are applied."""

    def changes(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None:
                continue
            result[name] = value.value if isinstance(value, (ServiceType, TenderStatus, BidStatus)) else value
        return result


# Tender schemas
class TenderCreate(ApiModel):
    name: str = Field(max_length=NAME_MAX_LENGTH)
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LENGTH)
    service_type: ServiceType
    status: TenderStatus = TenderStatus.CREATED
    organization_id: UUID
    creator_username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)


class TenderPatch(_Patch):
    name: Optional[str] = Field(default=None, max_length=NAME_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    service_type: Optional[ServiceType] = None


class TenderResponse(ApiModel):
    id: UUID
    name: str
    description: str
    status: TenderStatus
    service_type: ServiceType
    organization_id: UUID
    version: int
    created_at: datetime


# Bid schemas
class BidCreate(ApiModel):
    name: str = Field(max_length=NAME_MAX_LENGTH)
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LENGTH)
    tender_id: UUID
    author_type: AuthorType
    author_id: UUID


class BidPatch(_Patch):
    name: Optional[str] = Field(default=None, max_length=NAME_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=BID_EDIT_DESCRIPTION_MAX_LENGTH)


class BidResponse(ApiModel):
    id: UUID
    name: str
    description: str
    status: BidStatus
    tender_id: UUID
    author_type: AuthorType
    author_id: UUID
    version: int
    created_at: datetime


class BidReviewResponse(ApiModel):
    bid_id: UUID
    user_id: UUID
    text: str
    created_at: datetime
    updated_at: datetime
