# cinesync/api/routes/utils.py

from __future__ import annotations

from cinesync.core import state


async def publish_room_event(room_code: str, event: dict) -> None:
    """
    Fan an event out to everyone watching a room.

    With PUB_SUB_SERVICE=redis the event goes through Redis so sockets held
    by other instances receive it too; the Redis listener then delivers it
    locally. Otherwise it is broadcast straight to this instance's sockets.
    """
    if state.redis_service is not None:
        await state.redis_service.broadcast_to_room(room_code, event)
    else:
        await state.connection_manager.broadcast_to_room(room_code, event)


async def notify_user(user_id: str, event: dict) -> None:
    """Push an event to every open socket of one user, on any instance."""
    if state.redis_service is not None:
        await state.redis_service.send_to_user(user_id, event)
    else:
        await state.connection_manager.send_to_user(user_id, event)


async def close_room_connections(room_code: str, reason: str = "Room closed") -> None:
    """Tell everyone in a closed room and drop their sockets."""
    if state.redis_service is not None:
        await state.redis_service.broadcast_to_room(
            room_code, {"type": "room_closed", "roomCode": room_code, "reason": reason}
        )
    else:
        await state.connection_manager.close_room(room_code, reason)
