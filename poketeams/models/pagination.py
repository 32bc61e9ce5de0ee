"""
Page/limit arithmetic shared by every paginated endpoint.

Out-of-range inputs are floored rather than rejected: page and limit are
never below 1.
"""

import math
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from poketeams.config import DEFAULT_LIMIT, DEFAULT_PAGE

FIRST_PAGE = 1
MINIMUM_LIMIT = 1


@dataclass(frozen=True, slots=True)
class PaginationParams:
    page: int
    limit: int
    offset: int


class PaginationMetadata(BaseModel):
    """Pagination block included in list responses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


def create_pagination_params(page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> PaginationParams:
    """Floor page and limit at 1 and compute the row offset."""
    valid_page = max(FIRST_PAGE, page)
    valid_limit = max(MINIMUM_LIMIT, limit)
    return PaginationParams(
        page=valid_page,
        limit=valid_limit,
        offset=(valid_page - FIRST_PAGE) * valid_limit,
    )


def calculate_pagination_metadata(page: int, limit: int, total: int) -> PaginationMetadata:
    valid_limit = max(MINIMUM_LIMIT, limit)
    total_pages = math.ceil(total / valid_limit)
    return PaginationMetadata(
        page=page,
        limit=valid_limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > FIRST_PAGE,
    )
