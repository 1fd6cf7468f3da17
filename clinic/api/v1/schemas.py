"""
Shared API schemas.

Every payload travels in camelCase; requests may use either camelCase or
snake_case keys.
"""

import math
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_serializer
from pydantic.alias_generators import to_camel

from clinic.domain.auth.models import Gender, UserRole


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel):
    """Success envelope; ``message`` is left out entirely when not set"""
    success: bool = True
    message: Optional[str] = None

    @model_serializer(mode="wrap")
    def _omit_empty_message(self, handler):
        data = handler(self)
        if self.message is None:
            data.pop("message", None)
        return data


class PaginatedResponse(ApiResponse):
    total_pages: int
    current_page: int
    total: int


def page_meta(total: int, page: int, limit: int) -> dict:
    """Pagination fields for a list envelope"""
    return {
        "total_pages": math.ceil(total / limit) if limit > 0 else 0,
        "current_page": page,
        "total": total,
    }


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


class UserSummary(CamelModel):
    """User fields nested inside doctor, patient and message payloads"""
    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
