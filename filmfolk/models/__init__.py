from filmfolk.models.base_model import Base
from filmfolk.models.account import Account, AccountStatus, AuthProvider, Role
from filmfolk.models.refresh_token import RefreshToken
from filmfolk.models.movie import Movie, MovieStatus
from filmfolk.models.review import Review, ReviewComment, ReviewStatus
from filmfolk.models.follower import Follower
from filmfolk.models.db_storage import DBStorage

__all__ = [
    "Base",
    "Account",
    "AccountStatus",
    "AuthProvider",
    "Role",
    "RefreshToken",
    "Movie",
    "MovieStatus",
    "Review",
    "ReviewComment",
    "ReviewStatus",
    "Follower",
    "DBStorage",
]
