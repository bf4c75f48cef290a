import logging

from sqlmodel import SQLModel, create_engine, Session
from .config import settings
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)


if settings.database_url.startswith("sqlite"):
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False, "timeout": 60},
        poolclass=NullPool,  # avoid multiple pooled connections holding write locks
    )
    # Configure SQLite pragmas to reduce locking
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL;")
            conn.exec_driver_sql("PRAGMA busy_timeout=60000;")
    except OperationalError:
        # The database may be momentarily locked (e.g. during reloader startup).
        logger.warning("Could not apply SQLite pragmas; continuing with defaults")
else:
    engine = create_engine(
        settings.database_url,
        pool_pre_ping=True,
    )


def get_session():
    with Session(engine) as session:
        yield session


def init_db(bind=None):
    from .models import user, record  # noqa: F401  (register tables)

    SQLModel.metadata.create_all(bind or engine)
