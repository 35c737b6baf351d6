import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tasktide.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Always use the correct connect_args for SQLite
is_sqlite = settings.database_url.startswith("sqlite")
connect_args = {"check_same_thread": False} if is_sqlite else {}
logger.debug(f"Database connection: {'SQLite' if is_sqlite else 'PostgreSQL'}")
engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    pool_pre_ping=not is_sqlite,
)

# Store objects are handed across session boundaries, so keep their loaded state
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)