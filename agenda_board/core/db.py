"""
SQLAlchemy engine, session, and base. DB path from config or default.
"""
import logging
from pathlib import Path
from contextlib import contextmanager
from typing import Generator, Iterable, Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, declarative_base, Session

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine = None
_SessionLocal = None

DEFAULT_DB_DIR = Path.home() / ".agenda_board"


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Context manager for a single DB session. Commits on success, rolls back on error."""
    if _SessionLocal is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def missing_tables(table_names: Iterable[str]) -> list:
    """Return the names from table_names that do not exist in the database."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    inspector = inspect(_engine)
    return [name for name in table_names if not inspector.has_table(name)]


def _default_db_url() -> str:
    DEFAULT_DB_DIR.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{DEFAULT_DB_DIR / 'agendas.db'}"


def init_db(
    config_data: Optional[dict] = None,
    db_url: Optional[str] = None,
    create_tables: bool = True,
) -> None:
    """
    Initialize database engine and create tables.
    config_data: app config dict; used for database.url / database.path if db_url not given.
    db_url: optional SQLAlchemy URL override.
    create_tables: set False to open an existing database without creating missing tables.
    """
    global _engine, _SessionLocal

    if _engine is not None:
        logger.debug("Database already initialized")
        return

    if db_url is None and config_data:
        db_config = config_data.get("database") or {}
        db_url = db_config.get("url")
        path = db_config.get("path")
        if not db_url and path:
            path = Path(path).expanduser().resolve()
            path.parent.mkdir(parents=True, exist_ok=True)
            db_url = f"sqlite:///{path}"

    if not db_url:
        db_url = _default_db_url()

    connect_args = {}
    if db_url.startswith("sqlite"):
        # Tasks run on timer threads and the API on a worker pool
        connect_args["check_same_thread"] = False
    _engine = create_engine(db_url, echo=False, future=True, connect_args=connect_args)

    # Import all model modules so tables are registered with Base
    from agenda_board.core import models as _core_models  # noqa: F401
    from agenda_board.agenda import models as _agenda_models  # noqa: F401

    if create_tables:
        Base.metadata.create_all(_engine)
    _SessionLocal = sessionmaker(bind=_engine, autocommit=False, autoflush=False, expire_on_commit=False)
    logger.info(f"Database initialized: {db_url.split('?')[0]}")


def dispose_db() -> None:
    """Dispose the engine so init_db() can be called again (tests, config reload)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
        logger.debug("Database engine disposed")
    _engine = None
    _SessionLocal = None
