# cinesync/api/routes/users.py

from typing import Optional

from fastapi import APIRouter, Depends

from cinesync.core import state
from cinesync.core.errors import Internal
from cinesync.core.logging import get_logger
from cinesync.models.user import SessionUser
from cinesync.services.auth_service import get_current_user

logger = get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/search")
async def search_users(q: Optional[str] = None, user: SessionUser = Depends(get_current_user)):
    """
    Search users to invite to a watch room.

    Queries shorter than two characters return no users rather than an
    error. The caller never appears in their own results.
    """
    if not q or len(q.strip()) < 2:
        return {"users": []}

    try:
        users = state.user_store.search_users_for_invite(q, user.id)
    except Exception:
        logger.exception("Error searching users")
        raise Internal("Failed to search users")

    return {"users": [u.to_json() for u in users]}
