"""Minimal auth dependency.

Identity comes from an upstream gateway; this stub only reads the user id out of a
``Bearer <user_id>`` header. Token verification is not done here.
"""

from typing import Annotated

from fastapi import Header

from backend.tourplan.errors import Unauthenticated


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Extract the caller's user id from the authorization header.

    Args:
        authorization: Authorization header (e.g., "Bearer <user_id>")

    Returns:
        User id

    Raises:
        Unauthenticated: Header missing, not a bearer token, or empty
    """
    if not authorization:
        raise Unauthenticated("User not authenticated")

    if not authorization.startswith("Bearer "):
        raise Unauthenticated("Invalid authorization header format")

    user_id = authorization[7:].strip()  # Strip "Bearer "
    if not user_id:
        raise Unauthenticated("User not authenticated")

    return user_id
