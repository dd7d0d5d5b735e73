"""
Engine and session management.

DBStorage is constructed once at startup with an explicit URL and timeouts
and handed to whatever needs it; nothing looks it up globally.
"""
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import scoped_session, sessionmaker

from models.base_model import Base
from models.user import User
from models.refresh_token import RefreshToken

# Map model names for easy querying
classes = {
    "User": User,
    "RefreshToken": RefreshToken,
}


def _connect_args(url, connect_timeout, statement_timeout_ms):
    backend = url.get_backend_name()
    if backend == "sqlite":
        # sqlite3 busy timeout, seconds
        return {"timeout": connect_timeout, "check_same_thread": False}
    if backend == "postgresql":
        return {
            "connect_timeout": int(connect_timeout),
            "options": f"-c statement_timeout={int(statement_timeout_ms)}",
        }
    return {}


class DBStorage:
    __engine = None
    __session = None

    def __init__(self, database_url, connect_timeout=5, statement_timeout_ms=5000,
                 pool_timeout=5, echo=False):
        """Build the engine; every store call is bounded by the timeouts given here."""
        engine_kwargs = {"echo": echo}
        url = make_url(database_url)
        engine_kwargs["connect_args"] = _connect_args(url, connect_timeout, statement_timeout_ms)
        if url.get_backend_name() != "sqlite":
            engine_kwargs.update(pool_pre_ping=True, pool_timeout=pool_timeout)

        self.__engine = create_engine(database_url, **engine_kwargs)

        if self.__engine.url.get_backend_name() == "sqlite":
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                # Let SQLAlchemy emit BEGIN itself (see _begin_immediate)
                dbapi_connection.isolation_level = None
                # Enable SQLite foreign keys (needed for ON DELETE CASCADE)
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

            @event.listens_for(self.__engine, "begin")
            def _begin_immediate(conn):
                # Take the write lock up front: concurrent writers then wait on
                # the busy timeout instead of failing with "database is locked".
                conn.exec_driver_sql("BEGIN IMMEDIATE")

        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

    def reload(self):
        """Create tables if they do not exist."""
        Base.metadata.create_all(self.__engine)

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session"""
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
        if cls in classes.values():
            return self.__session.get(cls, id)
        return None

    def count(self, cls=None):
        """Count objects"""
        if cls:
            return self.__session.query(cls).count()
        total = 0
        for model in classes.values():
            total += self.__session.query(model).count()
        return total

    def ping(self):
        """Run a trivial query; raises on connectivity failure."""
        with self.__engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self):
        """Remove session (for API teardown)"""
        self.__session.remove()

    def dispose(self):
        self.close()
        self.__engine.dispose()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session
