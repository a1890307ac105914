# cinesync/api/routes/health.py
from datetime import datetime, timezone

from fastapi import APIRouter

from cinesync.core import state

router = APIRouter()

@router.get("/api/health")
async def health():
    """
    Health check endpoint.

    Returns current system status, connection counts, and room counts.
    Used by container health probes and monitoring.
    """
    uptime_seconds = (datetime.now(timezone.utc) - state.app_start_time).total_seconds()
    return {
        "status": "healthy",
        "uptime_seconds": round(uptime_seconds, 1),
        "connections": len(state.connection_manager.connection_users),
        "rooms": len(state.room_manager.rooms),
        "active_rooms": state.room_manager.active_rooms_count(),
        "rooms_with_connections": len(state.connection_manager.rooms),
        "tmdb": "ready" if state.tmdb_client.configured else "api_key_missing",
        "pub_sub": "redis" if state.redis_service is not None else "memory",
    }
