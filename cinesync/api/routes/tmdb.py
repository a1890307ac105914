# cinesync/api/routes/tmdb.py

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from cinesync.core import state

router = APIRouter(prefix="/api/tmdb", tags=["TMDB"])

CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=86400"


@router.get("")
async def proxy_status():
    """Whether the proxy has an API key, and which paths it serves."""
    return state.tmdb_client.status()


@router.get("/{path:path}")
async def proxy(path: str, request: Request):
    """
    Forward a GET to TMDB with the server's API key.

    Query parameters are passed through unchanged (any client-supplied
    api_key is dropped). Errors are raised by the client and rendered by the
    app's error handler.
    """
    data = await state.tmdb_client.get(path, request.query_params.multi_items())
    return JSONResponse(content=data, headers={"Cache-Control": CACHE_CONTROL})
