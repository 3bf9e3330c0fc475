from enum import Enum

from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    Text,
    JSON,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from filmfolk.models.base_model import BaseModel, Base


class MovieStatus(str, Enum):
    PENDING = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class Movie(BaseModel, Base):
    __tablename__ = "movies"

    title = Column(String(500), nullable=False)
    release_year = Column(Integer, nullable=False)
    genres = Column(JSON, nullable=False, default=list)
    summary = Column(Text, nullable=True)
    poster_url = Column(Text, nullable=True)
    backdrop_url = Column(Text, nullable=True)
    runtime_minutes = Column(Integer, nullable=True)
    language = Column(String(50), nullable=True)

    # External metadata ids
    tmdb_id = Column(Integer, nullable=True, unique=True)
    imdb_id = Column(String(20), nullable=True)

    status = Column(
        SAEnum(MovieStatus, name="movie_status", native_enum=False,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MovieStatus.PENDING,
    )
    submitted_by_id = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    approved_by_id = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)

    # Aggregates maintained from reviews
    average_rating = Column(Numeric(4, 2), nullable=True)
    total_reviews = Column(Integer, nullable=False, default=0)

    submitted_by = relationship("Account", foreign_keys=[submitted_by_id])
    approved_by = relationship("Account", foreign_keys=[approved_by_id])
    reviews = relationship("Review", back_populates="movie", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("title", "release_year", name="uq_movies_title_year"),
        CheckConstraint("(runtime_minutes IS NULL) OR (runtime_minutes >= 1)", name="ck_movies_runtime_positive"),
        Index("ix_movies_title", "title"),
        Index("ix_movies_status", "status"),
    )
