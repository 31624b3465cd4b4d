from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from debut.db.base import Base


class PostStatus(StrEnum):
    """Native lifecycle state of a post."""

    PUBLISH = "publish"
    FUTURE = "future"
    DRAFT = "draft"
    PENDING = "pending"
    PRIVATE = "private"


class Post(Base):
    """A content item listed through the post pipeline."""

    __tablename__ = "posts"

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    post_type: Mapped[str] = mapped_column(String(50), nullable=False, default="post", server_default="post", index=True)

    # Publication fields: post_date is server-local, like the appearance date
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PostStatus.DRAFT.value, index=True)
    post_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.now)

    author_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
