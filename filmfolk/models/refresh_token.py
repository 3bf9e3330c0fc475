"""
RefreshToken model: the ledger of issued refresh tokens.
Fields:
- token (the signed string, unique; never exposed through the API)
- account_id - FK to accounts.id
- expires_at
- revoked_at (NULL while the token is still usable)
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from filmfolk.models.base_model import BaseModel, Base, as_utc, utcnow


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(Text, nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    account = relationship("Account")

    __table_args__ = (
        Index("ix_refresh_tokens_expires", "expires_at"),
    )

    def is_valid(self, now: datetime | None = None) -> bool:
        """Usable while not revoked and not yet expired."""
        now = now or utcnow()
        return self.revoked_at is None and now < as_utc(self.expires_at)

    def __repr__(self):
        return f"<RefreshToken account={self.account_id} revoked={self.revoked_at is not None}>"
