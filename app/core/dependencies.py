from fastapi import Header, HTTPException, Request, status
from typing import Optional, List

from app.schemas.common import Actor, DataAccessFilter


def _parse_ids(raw: Optional[str], header_name: str) -> List[int]:
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{header_name} must be a comma separated list of ids",
        )


async def get_actor(
    x_user_name: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
) -> Optional[Actor]:
    # No user header means the call comes from a system or partner integration
    if not x_user_name:
        return None
    return Actor(full_name=x_user_name, email=x_user_email)


async def get_data_access_filter(
    x_city_ids: Optional[str] = Header(default=None),
    x_region_ids: Optional[str] = Header(default=None),
) -> Optional[DataAccessFilter]:
    access = DataAccessFilter(
        city_ids=_parse_ids(x_city_ids, "X-City-Ids"),
        region_ids=_parse_ids(x_region_ids, "X-Region-Ids"),
    )
    return access if access.is_scoped else None


async def get_scheduler(request: Request):
    return getattr(request.app.state, "inventory_release_scheduler", None)
