from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from filmfolk.models.base_model import Base
from filmfolk.models.account import Account
from filmfolk.models.refresh_token import RefreshToken
from filmfolk.models.movie import Movie
from filmfolk.models.review import Review, ReviewComment
from filmfolk.models.follower import Follower

# Map model names for easy querying
classes = {
    "Account": Account,
    "RefreshToken": RefreshToken,
    "Movie": Movie,
    "Review": Review,
    "ReviewComment": ReviewComment,
    "Follower": Follower,
}


class DBStorage:
    """
    Storage handle built once per application by create_app() and passed
    down to whatever needs the database. Sessions are request-scoped.
    """
    __engine = None
    __session = None

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize the engine for the given URL"""
        kwargs = {"echo": echo}
        if database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # A single shared connection, otherwise every checkout sees an empty database
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self.__engine = create_engine(database_url, **kwargs)

        # Enable SQLite foreign keys (needed for ON DELETE CASCADE/SET NULL)
        if self.__engine.url.get_backend_name() == "sqlite":
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    @property
    def engine(self):
        return self.__engine

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session; roll back on any failure so the session stays usable"""
        try:
            self.__session.commit()
        except Exception:
            self.__session.rollback()
            raise

    def rollback(self):
        self.__session.rollback()

    def delete(self, obj=None):
        """Delete object if exists (hard delete)"""
        if obj:
            self.__session.delete(obj)

    def get(self, cls, id):
        """Fetch one object by class and ID"""
        if cls in classes.values() and id:
            return self.__session.get(cls, id)
        return None

    def count(self, cls=None):
        """Count objects"""
        if cls:
            return self.__session.query(cls).count()
        return sum(self.__session.query(model).count() for model in classes.values())

    def ping(self):
        """Round-trip to the database; raises if it is unreachable"""
        self.__session.execute(text("SELECT 1"))

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session
