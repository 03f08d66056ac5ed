"""Database setup and configuration."""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from contact_service.shared.config import get_database_url
from contact_service.shared.errors import StorageError

Base = declarative_base()

# PostgreSQL connection pool configuration
DEFAULT_ENGINE_KWARGS = {
    "pool_pre_ping": True,  # Verify connections before using
    "pool_recycle": 3600,  # Recycle connections after 1 hour
}
CONNECT_TIMEOUT_SECONDS = 5


def utcnow() -> datetime:
    """Timezone-naive UTC now, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DatabaseHandle:
    """
    Process-lifetime owner of the SQLAlchemy engine.

    The engine is created on first use. Concurrent first callers block on the
    same lock and reuse the engine the winner created; tables are created once
    as part of that initialization. There is no teardown.
    """

    def __init__(self, url: Optional[str] = None, **engine_kwargs):
        self._url = url
        self._engine_kwargs = engine_kwargs
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._engine is not None

    def connect(self) -> Engine:
        if self._engine is not None:
            return self._engine

        with self._lock:
            if self._engine is None:
                url = self._url or get_database_url()
                kwargs = dict(DEFAULT_ENGINE_KWARGS)
                if url.startswith("postgresql"):
                    kwargs["connect_args"] = {"connect_timeout": CONNECT_TIMEOUT_SECONDS}
                kwargs.update(self._engine_kwargs)

                try:
                    engine = create_engine(url, **kwargs)
                    init_db(engine)
                except SQLAlchemyError as e:
                    logging.error(f"Database initialization error: {str(e)}", exc_info=True)
                    raise StorageError(detail=str(e))

                self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=engine)
                self._engine = engine
                logging.info("Database connection established")
        return self._engine

    def session(self):
        self.connect()
        return self._sessionmaker()


def init_db(engine: Engine) -> None:
    """Initialize database tables."""
    # Models register themselves on Base when imported
    from contact_service.shared.contact import database as contact_models  # noqa: F401
    from contact_service.shared.push import database as push_models  # noqa: F401

    # Use checkfirst=True to avoid errors if tables already exist
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logging.info("Database tables initialized successfully")


def get_db(request: Request):
    """Dependency to get database session."""
    db = request.app.state.database.session()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
