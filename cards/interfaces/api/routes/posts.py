"""Rutas para publicaciones y las interacciones que generan notificaciones."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cards.application.use_cases.posts import (
    AlreadyLikedError,
    NotLikedError,
    PostNotFoundError,
    add_comment as add_comment_uc,
    create_post as create_post_uc,
    like_post as like_post_uc,
    unlike_post as unlike_post_uc,
)
from cards.domain.entities import Principal
from cards.infrastructure.database import get_db
from cards.infrastructure.notifications import NotificationDispatcher
from cards.interfaces.api.dependencies import get_current_principal, get_dispatcher
from cards.interfaces.api.schemas import CommentCreate, CommentRead, PostCreate, PostRead

router = APIRouter(prefix="/posts", tags=["posts"])


def _raise_for(exc: ValueError) -> None:
    if isinstance(exc, PostNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, AlreadyLikedError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, NotLikedError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/", response_model=PostRead, status_code=status.HTTP_201_CREATED)
def create_post(
    post_in: PostCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Publica una nueva entrada del usuario autenticado."""

    post = create_post_uc(db, owner=principal, caption=post_in.caption)
    return PostRead.model_validate(post)


@router.post("/{post_id}/like", response_model=PostRead)
def like_post(
    post_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Marca la publicación como favorita y avisa a su autor."""

    try:
        post = like_post_uc(db, dispatcher, post_id=post_id, actor=principal)
    except ValueError as exc:
        _raise_for(exc)
    return PostRead.model_validate(post)


@router.delete("/{post_id}/like", response_model=PostRead)
def unlike_post(
    post_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Retira el me gusta; no genera notificaciones."""

    try:
        post = unlike_post_uc(db, post_id=post_id, actor=principal)
    except ValueError as exc:
        _raise_for(exc)
    return PostRead.model_validate(post)


@router.post(
    "/{post_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    post_id: int,
    comment_in: CommentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Agrega un comentario y avisa al autor de la publicación."""

    try:
        comment = add_comment_uc(
            db, dispatcher, post_id=post_id, actor=principal, text=comment_in.text
        )
    except ValueError as exc:
        _raise_for(exc)
    return CommentRead.model_validate(comment)
