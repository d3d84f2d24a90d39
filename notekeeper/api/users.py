"""
User profile API endpoints.

Driving adapter exposing the authenticated user's own profile.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from notekeeper.auth.dependencies import CurrentUserId, Directory


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["users"])


@router.get("/me")
async def profile(user_id: CurrentUserId, directory: Directory) -> dict:
    """
    Return the profile of the user the bearer token belongs to.

    The stored GitHub token is never included.
    """
    user = await directory.get(user_id)
    if user is None:
        logger.warning(f"Token subject {user_id} has no user record")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user.public_profile()
