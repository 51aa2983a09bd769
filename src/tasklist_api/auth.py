from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

USER_ID_HEADER = "X-User-Id"


# PUBLIC_INTERFACE
async def get_current_user_id(
    x_user_id: Optional[str] = Header(
        default=None,
        alias=USER_ID_HEADER,
        description="User identifier for authentication and authorization",
    ),
) -> str:
    """
    Resolve the acting user from the X-User-Id request header.

    Raises:
        HTTPException(401) if the header is missing or blank.
    """
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"'{USER_ID_HEADER}' header is required",
        )
    return x_user_id.strip()
