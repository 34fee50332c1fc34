from typing import Optional

from fastapi import Header, HTTPException, status


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    """
    Caller identity as forwarded by the authenticating gateway

    Raises:
        HTTPException: If the header is missing
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id
