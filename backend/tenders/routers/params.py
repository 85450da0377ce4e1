"""Query-parameter dependencies shared by routers."""
from fastapi import Query

from ..config import settings
from ..schemas import USERNAME_MAX_LENGTH
from ..services.pagination import Pagination


def pagination_params(
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=0, le=settings.MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> Pagination:
    return Pagination(limit=limit, offset=offset)


def username_param(username: str = Query(..., min_length=1, max_length=USERNAME_MAX_LENGTH)) -> str:
    return username
