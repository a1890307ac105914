# cinesync/api/routes/watchlist.py

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import ValidationError

from cinesync.core import state
from cinesync.core.errors import AppError, BadRequest, Internal
from cinesync.core.logging import get_logger
from cinesync.models.base import MediaType
from cinesync.models.user import SessionUser
from cinesync.models.watchlist import WatchlistItemData
from cinesync.services.auth_service import get_current_user

logger = get_logger(__name__)

router = APIRouter(prefix="/api/watchlist", tags=["Watchlist"])


@router.get("")
async def get_watchlist(user: SessionUser = Depends(get_current_user)):
    """The caller's watchlist, newest first."""
    items = state.watchlist_store.list_for_user(user.id)
    return {"watchlist": [i.to_json() for i in items]}


@router.post("")
async def add_to_watchlist(request: WatchlistItemData, user: SessionUser = Depends(get_current_user)):
    """Add an item, or refresh its title/poster when already present."""
    try:
        item, _ = state.watchlist_store.add(user.id, request)
    except Exception:
        logger.exception("Error adding to watchlist")
        raise Internal("Failed to add to watchlist")
    return {"success": True, "item": item.to_json()}


@router.delete("")
async def remove_from_watchlist(
    media_id: Optional[int] = Query(None, alias="mediaId"),
    media_type: Optional[MediaType] = Query(None, alias="mediaType"),
    user: SessionUser = Depends(get_current_user),
):
    if media_id is None or media_type is None:
        raise BadRequest("Missing mediaId or mediaType")

    removed = state.watchlist_store.remove(user.id, media_id, media_type)
    return {"success": True, "removed": removed}


@router.get("/check")
async def check_watchlist(
    media_id: Optional[int] = Query(None, alias="mediaId"),
    media_type: Optional[MediaType] = Query(None, alias="mediaType"),
    user: SessionUser = Depends(get_current_user),
):
    if media_id is None or media_type is None:
        raise BadRequest("Missing mediaId or mediaType")

    return {"inWatchlist": state.watchlist_store.contains(user.id, media_id, media_type)}


@router.post("/migrate")
async def migrate_watchlist(
    body: Optional[Dict[str, Any]] = Body(None),
    user: SessionUser = Depends(get_current_user),
):
    """
    Import the watchlist a signed-out client kept in localStorage.

    Body: {"items": [{"mediaId": 603, "mediaType": "movie", "title": "..."}]}

    Items are upserted by (mediaId, mediaType), so submitting the same list
    twice leaves a single entry per title.

    Raises:
        BadRequest: `items` missing or not a list, or an item is malformed
    """
    raw_items = (body or {}).get("items")
    if not isinstance(raw_items, list):
        raise BadRequest("Invalid items array")

    items: List[WatchlistItemData] = []
    for index, raw in enumerate(raw_items):
        try:
            items.append(WatchlistItemData.model_validate(raw))
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise BadRequest(f"Invalid item at index {index}: {field} {first.get('msg')}".strip())

    try:
        return state.watchlist_store.migrate(user.id, items)
    except AppError:
        raise
    except Exception:
        logger.exception("Error migrating watchlist")
        raise Internal("Failed to migrate watchlist")
