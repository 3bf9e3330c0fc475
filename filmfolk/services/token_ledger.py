"""
Refresh-token ledger: the persisted record of issued refresh tokens.

Signature checks happen in TokenIssuer; the ledger only answers whether a
given token string was issued to a given account and is still live.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from filmfolk.models.base_model import utcnow
from filmfolk.models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)


class RefreshTokenLedger:
    def __init__(self, storage):
        self.storage = storage

    @property
    def _session(self):
        return self.storage.get_session()

    def record(self, account_id: str, token: str, expires_at: datetime) -> RefreshToken:
        """Stage a ledger row; the caller commits."""
        row = RefreshToken(account_id=account_id, token=token, expires_at=expires_at)
        self.storage.new(row)
        return row

    def find(self, token: str, account_id: str) -> Optional[RefreshToken]:
        return (
            self._session.query(RefreshToken)
            .filter(RefreshToken.token == token, RefreshToken.account_id == account_id)
            .first()
        )

    def revoke(self, token: str, now: datetime | None = None) -> int:
        """
        Revoke every live row holding this token string.
        Already-revoked and unknown tokens change nothing; the return value
        is the number of rows that changed.
        """
        now = now or utcnow()
        changed = (
            self._session.query(RefreshToken)
            .filter(RefreshToken.token == token, RefreshToken.revoked_at.is_(None))
            .update({RefreshToken.revoked_at: now}, synchronize_session="fetch")
        )
        self.storage.save()
        return changed

    def revoke_all(self, account_id: str, now: datetime | None = None) -> int:
        now = now or utcnow()
        changed = (
            self._session.query(RefreshToken)
            .filter(RefreshToken.account_id == account_id, RefreshToken.revoked_at.is_(None))
            .update({RefreshToken.revoked_at: now}, synchronize_session="fetch")
        )
        self.storage.save()
        if changed:
            logger.info("revoked %d refresh token(s) for account %s", changed, account_id)
        return changed
