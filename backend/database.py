# database.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.engine import Engine
import config


def make_engine(url: str = config.DATABASE_URL, **kwargs) -> Engine:
    kwargs.setdefault("echo", config.DEBUG)
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, future=True, **kwargs)


def make_session_factory(bind: Engine) -> sessionmaker:
    # Records leave the session as dicts, but keep attributes loaded after commit anyway
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


engine = make_engine()

# Enforce foreign keys for SQLite
@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = make_session_factory(engine)
Base = declarative_base()


def init_db(bind: Engine = None):
    """Create missing tables and make sure the reserved system user exists."""
    import models  # noqa: F401  (registers tables on Base)
    import crud

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    with make_session_factory(bind)() as db:
        crud.ensure_system_user(db)
