import time
import logging
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import settings

logger = logging.getLogger(__name__)

def normalize_url(db_url: str) -> str:
    """Points bare postgres URLs at the psycopg 3 driver."""
    if db_url.startswith("postgres://"):
        db_url = "postgresql://" + db_url[len("postgres://"):]
    if db_url.startswith("postgresql://"):
        db_url = "postgresql+psycopg://" + db_url[len("postgresql://"):]
    return db_url

def _connect(db_url: str, retries: int) -> Engine:
    db_url = normalize_url(db_url)
    is_sqlite = db_url.startswith("sqlite")
    candidate = create_engine(
        db_url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        pool_pre_ping=True,
    )

    delay = 2
    for attempt in range(1, retries + 1):
        try:
            with candidate.connect() as conn:
                conn.execute(text("SELECT 1"))
            break
        except Exception as e:
            if attempt == retries:
                logger.error(f"Giving up on {db_url.split('@')[-1]} after {retries} attempts")
                raise
            logger.warning(f"Database not reachable (attempt {attempt}/{retries}), retrying in {delay}s: {e}")
            time.sleep(delay)
            delay *= 2

    if is_sqlite:
        # WAL keeps SQLite usable from the threadpool FastAPI runs sync handlers in
        @event.listens_for(candidate, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.close()
    return candidate

def build_engine(primary: str, secondary: str | None = None, retries: int = 3) -> Engine:
    try:
        return _connect(primary, retries)
    except Exception:
        if not secondary:
            raise
        logger.warning("Primary database unavailable, using SECONDARY_DATABASE_URL")
        return _connect(secondary, retries)

engine = build_engine(settings.database_url, settings.secondary_database_url, settings.db_connect_retries)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
