from pydantic import BaseModel, Field
from typing import Optional, List


class Actor(BaseModel):
    """The user a change is attributed to. Operations receive None for system/external callers."""
    full_name: str = Field(..., max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)


class DataAccessFilter(BaseModel):
    """
    Restricts which orders a caller may see.
    City ids take precedence over region ids; an empty filter means unscoped.
    """
    city_ids: List[int] = []
    region_ids: List[int] = []

    @property
    def is_scoped(self) -> bool:
        return bool(self.city_ids or self.region_ids)


class Pagination(BaseModel):
    total: int
    current_page: int
    per_page: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
