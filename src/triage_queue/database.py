from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings


def _normalize_database_url(url: str) -> str:
    if url.startswith("postgres://"):
        # SQLAlchemy expects postgresql+psycopg2
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


def build_engine(url: str, busy_timeout_ms: int = settings.sqlite_busy_timeout_ms, **kwargs) -> Engine:
    """Create an engine, applying the SQLite pragmas the queue lock relies on."""
    url = _normalize_database_url(url)
    is_sqlite = url.startswith("sqlite")

    # SQLite requires check_same_thread=False for FastAPI
    connect_args = kwargs.pop("connect_args", {})
    if is_sqlite:
        connect_args.setdefault("check_same_thread", False)

    engine = create_engine(
        url,
        future=True,
        pool_pre_ping=not is_sqlite,
        connect_args=connect_args,
        **kwargs,
    )

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


DATABASE_URL = _normalize_database_url(settings.database_url)

engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
Base = declarative_base()


def init_db(bind: Engine = engine):
    """Initialize database tables (for SQLite dev mode)."""
    from . import models  # noqa: F401
    Base.metadata.create_all(bind=bind)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
