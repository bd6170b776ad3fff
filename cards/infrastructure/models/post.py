"""SQLAlchemy models for posts, likes and comments."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from cards.infrastructure.database import Base
from cards.utils import now_in_app_naive_datetime


class PostModel(Base):
    __tablename__ = "post"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    caption = Column(String(2200), nullable=False, default="")
    like_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)


class LikeModel(Base):
    __tablename__ = "post_like"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="ux_post_like_user"),)

    id = Column(Integer, primary_key=True)
    post_id = Column(
        Integer, ForeignKey("post.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)


class CommentModel(Base):
    __tablename__ = "comment"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(
        Integer, ForeignKey("post.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)
