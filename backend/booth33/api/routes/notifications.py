"""
Notification inbox endpoints and the live notification stream.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from booth33.api.deps import get_notification_service
from booth33.core.logging import get_logger
from booth33.core.security import decode_access_token, get_current_user_id
from booth33.domain.statuses import NotificationType
from booth33.schemas.notification import BulkUpdateResponse, NotificationResponse, UnreadCountResponse
from booth33.services.cache_service import get_redis, notification_channel
from booth33.services.notification_service import NotificationService

logger = get_logger(__name__)
router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=list[NotificationResponse])
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    type: Optional[NotificationType] = Query(None),
    user_id: int = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    """Newest first."""
    return await service.list_for_user(user_id, limit, type)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user_id: int = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    return UnreadCountResponse(count=await service.unread_count(user_id))


@router.post("/read-all", response_model=BulkUpdateResponse)
async def mark_all_read(
    user_id: int = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    return BulkUpdateResponse(updated=await service.mark_all_read(user_id))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    user_id: int = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    return await service.mark_read(user_id, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: int,
    user_id: int = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    await service.delete(user_id, notification_id)


@router.delete("/", response_model=BulkUpdateResponse)
async def delete_all_notifications(
    user_id: int = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    return BulkUpdateResponse(updated=await service.delete_all(user_id))


@router.websocket("/ws")
async def notification_stream(websocket: WebSocket, token: str = Query(...)):
    """
    Live feed of new notifications for the token's user.

    Browsers can't set headers on a websocket handshake, so the JWT travels as
    the `token` query parameter. Each message is the JSON published by the
    notification service.
    """
    try:
        user = decode_access_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    client = await get_redis()
    if client is None:
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    await websocket.accept()
    channel = notification_channel(user.id)
    pubsub = client.pubsub()
    await pubsub.subscribe(channel)
    logger.info("notification_stream_opened", user_id=user.id)

    try:
        await relay_notifications(websocket, pubsub)
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.aclose()
        logger.info("notification_stream_closed", user_id=user.id)


async def _forward_messages(websocket: WebSocket, pubsub) -> None:
    async for message in pubsub.listen():
        if message["type"] != "message":
            continue
        await websocket.send_text(message["data"])


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def relay_notifications(websocket: WebSocket, pubsub) -> None:
    """
    Forward published notifications until the client goes away.

    A quiet channel never reaches a failing send, so the socket is watched on
    its own task and whichever side finishes first stops the other.
    """
    forward = asyncio.create_task(_forward_messages(websocket, pubsub))
    watch = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        done, _ = await asyncio.wait({forward, watch}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (forward, watch):
            task.cancel()
        await asyncio.gather(forward, watch, return_exceptions=True)

    for task in done:
        exc = task.exception()
        if exc is not None and not isinstance(exc, WebSocketDisconnect):
            raise exc
