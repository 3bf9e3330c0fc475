from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from filmfolk.models.base_model import BaseModel, Base


class Follower(BaseModel, Base):
    """follower_id follows following_id."""
    __tablename__ = "followers"

    follower_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    follower = relationship("Account", foreign_keys=[follower_id])
    following = relationship("Account", foreign_keys=[following_id])

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_followers_pair"),
        CheckConstraint("follower_id <> following_id", name="ck_followers_not_self"),
    )
