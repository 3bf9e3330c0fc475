from enum import Enum

from sqlalchemy import Column, String, Integer, DateTime, Text, Index, event
from sqlalchemy.types import Enum as SAEnum

from filmfolk.models.base_model import BaseModel, Base
from filmfolk.utils.exceptions import ValidationError


class AuthProvider(str, Enum):
    EMAIL = "email"
    GOOGLE = "google"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    GUEST = "guest"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"


class Role(str, Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"

    @property
    def level(self) -> int:
        return ROLE_LEVELS[self]

    @classmethod
    def parse(cls, value):
        """Return the Role for value, or None when it is not a known role."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


ROLE_LEVELS = {
    Role.USER: 1,
    Role.MODERATOR: 2,
    Role.ADMIN: 3,
}


class Account(BaseModel, Base):
    __tablename__ = "accounts"

    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=True)  # NULL for social-login accounts
    auth_provider = Column(
        SAEnum(AuthProvider, name="auth_provider", native_enum=False,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AuthProvider.EMAIL,
    )
    provider_id = Column(String(255), nullable=True)
    status = Column(
        SAEnum(AccountStatus, name="account_status", native_enum=False,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AccountStatus.ACTIVE,
    )
    role = Column(
        SAEnum(Role, name="account_role", native_enum=False,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Role.USER,
    )
    avatar_url = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)

    followers_count = Column(Integer, nullable=False, default=0)
    following_count = Column(Integer, nullable=False, default=0)

    last_login_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_accounts_provider", "auth_provider", "provider_id"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


@event.listens_for(Account, "before_insert")
def _check_credentials(mapper, connection, target: Account):
    # Email accounts authenticate with a password; social accounts never do.
    provider = target.auth_provider or AuthProvider.EMAIL
    if provider == AuthProvider.EMAIL and not target.password_hash:
        raise ValidationError("email accounts require a password")
    if provider != AuthProvider.EMAIL and target.password_hash:
        raise ValidationError("social-login accounts cannot have a password")
