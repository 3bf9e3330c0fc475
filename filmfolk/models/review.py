from enum import Enum

from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    Text,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from filmfolk.models.base_model import BaseModel, Base, SoftDeleteMixin


class ReviewStatus(str, Enum):
    PENDING = "pending_moderation"
    PUBLISHED = "published"
    REJECTED = "rejected"


class Review(BaseModel, Base):
    __tablename__ = "reviews"

    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    movie_id = Column(String(36), ForeignKey("movies.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    review_text = Column(Text, nullable=False)

    status = Column(
        SAEnum(ReviewStatus, name="review_status", native_enum=False,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ReviewStatus.PUBLISHED,
    )
    is_thread_locked = Column(Boolean, nullable=False, default=False)

    likes_count = Column(Integer, nullable=False, default=0)
    comments_count = Column(Integer, nullable=False, default=0)

    author = relationship("Account")
    movie = relationship("Movie", back_populates="reviews")
    comments = relationship(
        "ReviewComment",
        back_populates="review",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReviewComment.created_at",
    )

    __table_args__ = (
        UniqueConstraint("account_id", "movie_id", name="uq_reviews_account_movie"),
        CheckConstraint("rating >= 1 AND rating <= 10", name="ck_reviews_rating_range"),
        Index("ix_reviews_movie", "movie_id"),
    )


class ReviewComment(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "review_comments"

    review_id = Column(String(36), ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    parent_comment_id = Column(String(36), ForeignKey("review_comments.id", ondelete="CASCADE"), nullable=True)
    comment_text = Column(Text, nullable=False)

    removed_by_id = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    likes_count = Column(Integer, nullable=False, default=0)

    review = relationship("Review", back_populates="comments")
    author = relationship("Account", foreign_keys=[account_id])
    removed_by = relationship("Account", foreign_keys=[removed_by_id])
