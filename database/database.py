import contextlib
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from database.models import Base


def build_engine(url: str, pool_size: int = 10, max_overflow: int = 20, echo: bool = False) -> Engine:
    """Create an engine; SQLite URLs skip pool sizing and allow cross-thread use."""
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=pool_size,
        max_overflow=max_overflow,
        echo=echo
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False keeps loaded rows readable after the unit of work closes
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)


@contextlib.contextmanager
def db_session_scope(session_factory: sessionmaker, session: Optional[Session] = None):
    """Provide a transactional scope around a series of operations."""
    session = session or session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
