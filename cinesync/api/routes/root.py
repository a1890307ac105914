# cinesync/api/routes/root.py

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from cinesync.core.config import settings

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint - API information.

    Returns basic info about the API and its features.
    """
    return {
        "message": f"{settings.APP_NAME} - Watch Together API",
        "version": settings.VERSION,
        "features": ["watch_rooms", "room_chat", "invites", "watchlist", "tmdb_proxy", "admin"],
        "endpoints": {
            "websocket": "/ws/watch-room/{roomCode}",
            "auth": "/api/auth",
            "watch_room": "/api/watch-room",
            "watchlist": "/api/watchlist",
            "notifications": "/api/notifications",
            "tmdb": "/api/tmdb",
            "health": "/api/health",
        },
    }


@router.get("/robots.txt", response_class=PlainTextResponse)
async def robots():
    """Crawling directives: keep bots out of the API and private pages."""
    site = settings.SITE_URL
    lines = [
        "User-Agent: *",
        "Allow: /",
        "Disallow: /api/",
        "Disallow: /admin/",
        "Disallow: /watch-together",
        "Disallow: /watchlist",
        "",
        "User-Agent: Googlebot",
        "Allow: /",
        "Disallow: /api/",
        "Disallow: /admin/",
        "",
        f"Host: {site}",
        f"Sitemap: {site}/sitemap.xml",
        f"Sitemap: {site}/sitemap-movies.xml",
        f"Sitemap: {site}/sitemap-tv.xml",
    ]
    return "\n".join(lines) + "\n"
