"""Persistence helpers for posts and their likes and comments."""

from __future__ import annotations

from sqlalchemy.orm import Session

from cards.domain.entities import Comment, Like, Post
from cards.infrastructure.models import CommentModel, LikeModel, PostModel
from cards.utils import ensure_app_timezone


class PostRepository:
    """Provide the post operations the notification producers rely on."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, post_id: int) -> Post | None:
        model = self.session.get(PostModel, post_id)
        return self._to_entity(model) if model else None

    def create(self, post: Post) -> Post:
        model = PostModel(user_id=post.user_id, caption=post.caption)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def get_like(self, post_id: int, user_id: int) -> Like | None:
        model = self._get_like_model(post_id, user_id)
        if model is None:
            return None
        return Like(
            post_id=model.post_id,
            user_id=model.user_id,
            created_at=ensure_app_timezone(model.created_at),
        )

    def add_like(self, post_id: int, user_id: int) -> Like:
        model = LikeModel(post_id=post_id, user_id=user_id)
        self.session.add(model)
        post = self.session.get(PostModel, post_id)
        if post is not None:
            post.like_count = (post.like_count or 0) + 1
        self.session.commit()
        self.session.refresh(model)
        return Like(
            post_id=model.post_id,
            user_id=model.user_id,
            created_at=ensure_app_timezone(model.created_at),
        )

    def remove_like(self, post_id: int, user_id: int) -> bool:
        model = self._get_like_model(post_id, user_id)
        if model is None:
            return False
        self.session.delete(model)
        post = self.session.get(PostModel, post_id)
        if post is not None and post.like_count > 0:
            post.like_count -= 1
        self.session.commit()
        return True

    def add_comment(self, comment: Comment) -> Comment:
        model = CommentModel(
            post_id=comment.post_id, user_id=comment.user_id, text=comment.text
        )
        self.session.add(model)
        post = self.session.get(PostModel, comment.post_id)
        if post is not None:
            post.comment_count = (post.comment_count or 0) + 1
        self.session.commit()
        self.session.refresh(model)
        return Comment(
            id=model.id,
            post_id=model.post_id,
            user_id=model.user_id,
            text=model.text,
            created_at=ensure_app_timezone(model.created_at),
        )

    def _get_like_model(self, post_id: int, user_id: int) -> LikeModel | None:
        return (
            self.session.query(LikeModel)
            .filter(LikeModel.post_id == post_id, LikeModel.user_id == user_id)
            .one_or_none()
        )

    @staticmethod
    def _to_entity(model: PostModel) -> Post:
        return Post(
            id=model.id,
            user_id=model.user_id,
            caption=model.caption,
            like_count=model.like_count or 0,
            comment_count=model.comment_count or 0,
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["PostRepository"]
