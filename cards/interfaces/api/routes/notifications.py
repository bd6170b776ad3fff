"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

import logging

from anyio import to_thread
from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from cards.application.use_cases.notifications import (
    announce as announce_uc,
    get_unseen_count as get_unseen_count_uc,
    list_notifications as list_notifications_uc,
    mark_all_seen as mark_all_seen_uc,
    mark_notification_read as mark_notification_read_uc,
)
from cards.config import get_settings
from cards.domain.entities import User
from cards.infrastructure.database import SessionLocal, get_db
from cards.infrastructure.notifications import NotificationDispatcher, PresenceRegistry
from cards.interfaces.api.dependencies import (
    get_current_active_user,
    get_dispatcher,
    require_admin,
    resolve_current_user,
)
from cards.interfaces.api.schemas import (
    AnnouncementCreate,
    MarkAllSeenRead,
    MarkReadResult,
    NotificationPageRead,
    NotificationRead,
    UnseenCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)

_POLICY_VIOLATION = 1008


@router.get("/", response_model=NotificationPageRead)
def list_notifications(
    cursor: str | None = Query(None, description="Cursor devuelto por la página anterior"),
    limit: int | None = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationPageRead:
    """Return notifications for the authenticated user, newest first."""

    settings = get_settings()
    page_size = min(limit or settings.notifications_page_size, settings.notifications_page_max)
    try:
        page = list_notifications_uc(db, current_user.id, limit=page_size, cursor=cursor)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return NotificationPageRead(
        items=[NotificationRead.model_validate(item) for item in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.get("/unseen-count", response_model=UnseenCountRead)
def unseen_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UnseenCountRead:
    return UnseenCountRead(unseen_count=get_unseen_count_uc(db, current_user.id))


@router.post("/mark-all-seen", response_model=MarkAllSeenRead)
def mark_all_seen(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MarkAllSeenRead:
    """Clear the unseen badge; per-item read flags are left untouched."""

    return MarkAllSeenRead(modified_count=mark_all_seen_uc(db, current_user.id))


@router.post("/{notification_id}/read", response_model=MarkReadResult)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MarkReadResult:
    try:
        mark_notification_read_uc(db, current_user.id, notification_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return MarkReadResult(success=True)


@router.post(
    "/announcements",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
)
def create_announcement(
    announcement: AnnouncementCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> NotificationRead:
    """Publish a notification visible to every user."""

    notification = announce_uc(
        db, dispatcher, message=announcement.message, payload=announcement.payload
    )
    return NotificationRead.model_validate(notification)


def _authenticate_socket(token: str) -> User:
    session = SessionLocal()
    try:
        return resolve_current_user(token, session)
    finally:
        session.close()


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user.

    The session only receives targeted events after sending
    ``{"type": "register"}``; a disconnect always drops the registration.
    """

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=_POLICY_VIOLATION)
        return

    try:
        user = await to_thread.run_sync(_authenticate_socket, token)
    except HTTPException:
        await websocket.close(code=_POLICY_VIOLATION)
        return
    if not user.is_active:
        await websocket.close(code=_POLICY_VIOLATION)
        return

    registry: PresenceRegistry = websocket.app.state.presence
    await websocket.accept()
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except (ValueError, TypeError, KeyError):
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "register":
                registry.register(user.id, websocket)
                logger.debug("User %s registered a live session", user.id)
                await websocket.send_json(
                    {"type": "registered", "data": {"success": True, "user_id": user.id}}
                )
            elif message_type == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        registry.unregister(websocket)
