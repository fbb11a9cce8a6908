"""Shared schema base classes."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


def to_wall_clock(value: Optional[datetime]) -> Optional[datetime]:
    """Drop tzinfo; treatment dates are stored as salon local time."""
    if value is not None and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value

