from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional
import logging
import time

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from alembic import command
from alembic.config import Config

from sitecatalog.config import settings
from sitecatalog.exceptions import StorageError

logger = logging.getLogger(__name__)

Base = declarative_base()

# Session.info key counting open CatalogStore transactions
TRANSACTION_DEPTH_KEY = "sitecatalog.transaction_depth"
# Set when a statement failed inside an open transaction; the outermost block must roll back
TRANSACTION_FAILED_KEY = "sitecatalog.transaction_failed"

ALEMBIC_INI_PATH = Path(__file__).resolve().parents[2] / "alembic.ini"


def build_engine(database_url: Optional[str] = None) -> Engine:
    """Create an engine; pool sizing applies only to server databases"""
    url = database_url or settings.database_url
    options = {
        "pool_pre_ping": True,
        "echo": settings.db_echo,
    }
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            connect_args={
                "connect_timeout": settings.db_connect_timeout,
            },
        )
    return create_engine(url, **options)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return build_engine()


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    return sessionmaker(autoflush=False, bind=get_engine())


def get_db() -> Iterator[Session]:
    """Yield a session and always close it"""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def commit_or_flush(db: Session) -> None:
    """Commit, unless an enclosing catalog transaction owns the commit"""
    if db.info.get(TRANSACTION_DEPTH_KEY, 0):
        db.flush()
    else:
        db.commit()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Group several catalog writes into one commit.

    Writes inside the block only flush. The outermost block commits on success
    and rolls back everything on any exception. A storage failure inside the
    block poisons it: even if the caller catches the StorageError, the block
    rolls back on exit and raises StorageError instead of committing.
    """
    depth = db.info.get(TRANSACTION_DEPTH_KEY, 0)
    if depth == 0:
        db.info.pop(TRANSACTION_FAILED_KEY, None)
    db.info[TRANSACTION_DEPTH_KEY] = depth + 1
    try:
        yield db
        if depth == 0:
            if db.info.pop(TRANSACTION_FAILED_KEY, False):
                raise StorageError("transaction rolled back: a statement inside it failed")
            db.commit()
    except Exception:
        if depth == 0:
            db.info.pop(TRANSACTION_FAILED_KEY, None)
            db.rollback()
        raise
    finally:
        db.info[TRANSACTION_DEPTH_KEY] = depth


@contextmanager
def storage_errors(db: Session, operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as StorageError.

    Outside a catalog transaction the session is rolled back here. Inside one,
    the rollback is left to the outermost block, which is marked as failed.
    """
    try:
        yield
    except SQLAlchemyError as e:
        if db.info.get(TRANSACTION_DEPTH_KEY, 0):
            db.info[TRANSACTION_FAILED_KEY] = True
        else:
            db.rollback()
        logger.error(f"Storage failure during {operation}: {e}", exc_info=True)
        raise StorageError(f"{operation} failed: {e}") from e


def create_tables(engine: Engine) -> None:
    """Create all shard tables (for development/testing only)"""
    import sitecatalog.models  # noqa: F401  registers every shard model

    Base.metadata.create_all(engine)


def wait_for_database(database_url: Optional[str] = None, max_retries: int = 30, retry_delay: float = 2) -> bool:
    """Wait for database to be available with retry logic"""
    url = database_url or settings.database_url
    # Keep credentials out of the log
    db_url_display = url.split("@")[-1]
    logger.info(f"Waiting for database connection to {db_url_display}...")

    for attempt in range(1, max_retries + 1):
        test_engine = build_engine(url)
        try:
            with test_engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection successful")
            return True
        except SQLAlchemyError as e:
            if attempt < max_retries:
                logger.warning(f"Database connection attempt {attempt}/{max_retries} failed: {e}. Retrying in {retry_delay}s...")
                time.sleep(retry_delay)
            else:
                logger.error(f"Database connection failed after {max_retries} attempts: {e}")
                raise StorageError(f"Database unreachable: {e}") from e
        finally:
            test_engine.dispose()
    return False


def init_db(database_url: Optional[str] = None, max_retries: int = 30, retry_delay: float = 2) -> None:
    """Initialize database by running Alembic migrations to head"""
    url = database_url or settings.database_url
    logger.info("Running database migrations...")
    wait_for_database(url, max_retries=max_retries, retry_delay=retry_delay)

    if not ALEMBIC_INI_PATH.exists():
        raise FileNotFoundError(f"Could not find alembic.ini at {ALEMBIC_INI_PATH}")

    logger.info(f"Using Alembic config: {ALEMBIC_INI_PATH}")
    alembic_cfg = Config(str(ALEMBIC_INI_PATH))
    # ConfigParser interpolation treats % as special
    alembic_cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))

    try:
        command.upgrade(alembic_cfg, "head")
    except Exception as e:
        logger.error(f"Error running migrations: {e}", exc_info=True)
        raise

    logger.info("Database migrations completed successfully")
