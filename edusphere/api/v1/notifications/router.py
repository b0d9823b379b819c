"""Notifications router: own feed, read state, change feed, system broadcast, retention."""

import asyncio
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from edusphere.api.v1.users import service as users_service
from edusphere.auth.dependencies import InvalidCredentials, get_current_user, resolve_user_from_token
from edusphere.auth.rbac import require_roles, school_scope
from edusphere.auth.schemas import CurrentUser
from edusphere.core.config import settings
from edusphere.core.enums import UserRole
from edusphere.core.exceptions import ServiceError
from edusphere.db.session import get_db, get_session_factory

from . import service
from .events import hub
from .schemas import (
    CleanupResponse,
    FanOutResponse,
    FeedVersionResponse,
    MarkAllReadResponse,
    NotificationResponse,
    SystemNotificationCreate,
    UnreadCountResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_my_notifications(
    unread_only: bool = Query(False),
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[NotificationResponse]:
    """Newest first."""
    return await service.list_notifications(db, current_user.id, limit=limit, unread_only=unread_only)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await service.get_unread_count(db, current_user.id))


@router.get("/version", response_model=FeedVersionResponse)
async def feed_version(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeedVersionResponse:
    """Cheap poll: re-fetch the feed only when version moved."""
    return FeedVersionResponse(
        version=hub.version(current_user.id),
        unread_count=await service.get_unread_count(db, current_user.id),
    )


@router.patch("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await service.mark_all_as_read(db, current_user.id))


@router.patch("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    # Unknown ids are a silent no-op
    await service.mark_as_read(db, notification_id, recipient_user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    await service.delete_notification(db, notification_id, recipient_user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/system", response_model=FanOutResponse, status_code=status.HTTP_201_CREATED)
async def send_system_notification(
    payload: SystemNotificationCreate,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> FanOutResponse:
    """Send to explicit user ids, or to every user of the school when none are given."""
    if payload.user_ids:
        recipients = payload.user_ids
        if current_user.role != UserRole.SUPER_ADMIN.value:
            allowed = set(await users_service.list_school_recipient_ids(db, current_user.school_id))
            if any(uid not in allowed for uid in recipients):
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Recipient outside your school")
    else:
        scope = school_scope(current_user, school_id)
        recipients = await users_service.list_school_recipient_ids(db, scope)
    try:
        created = await service.notify_system(db, recipients, payload.title, payload.message, payload.category)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return FanOutResponse(recipients=len(created), notifications=created)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_notifications(
    days_to_keep: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.SUPER_ADMIN)),
) -> CleanupResponse:
    try:
        removed = await service.cleanup_old_notifications(db, days_to_keep)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return CleanupResponse(
        removed=removed,
        days_to_keep=days_to_keep if days_to_keep is not None else settings.notification_retention_days,
    )


@router.websocket("/ws")
async def notification_stream(
    websocket: WebSocket,
    token: str = Query(...),
    sessions: async_sessionmaker = Depends(get_session_factory),
) -> None:
    """
    Push change events for the authenticated user.

    The first message is a snapshot {"kind": "snapshot", "version", "unread_count"};
    every later message is a NotificationEvent. Clients re-fetch the feed on each event.
    """
    # Database access is limited to auth and the snapshot; the stream itself holds no connection
    async with sessions() as db:
        try:
            current_user = await resolve_user_from_token(db, token)
        except InvalidCredentials:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
            return
        queue = hub.subscribe(current_user.id)
        try:
            snapshot = {
                "kind": "snapshot",
                "version": hub.version(current_user.id),
                "unread_count": await service.get_unread_count(db, current_user.id),
            }
        except SQLAlchemyError:
            hub.unsubscribe(current_user.id, queue)
            raise

    receiver = None
    logger.info("Notification stream opened for user %s", current_user.id)
    try:
        await websocket.accept()
        await websocket.send_json(snapshot)
        receiver = asyncio.ensure_future(_drain_client(websocket))
        while True:
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if receiver in done:
                getter.cancel()
                break
            await websocket.send_json(getter.result().as_dict())
    except WebSocketDisconnect:
        pass
    finally:
        if receiver is not None:
            receiver.cancel()
        hub.unsubscribe(current_user.id, queue)
        logger.info("Notification stream closed for user %s", current_user.id)


async def _drain_client(websocket: WebSocket) -> None:
    """Read and discard client frames until the socket closes."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return
