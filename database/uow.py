import contextlib
import logging

from sqlalchemy.orm import sessionmaker

from database.repository import MatchingRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def match_uow(session_factory: sessionmaker):
    """Per-unit-of-work transaction scope.

    Yields a MatchingRepository bound to a fresh Session. Commits on success,
    rolls back on exception, always closes. Sessions are never shared
    between threads; every batch worker opens its own unit of work.

    Usage:
        with match_uow(session_factory) as repo:
            student = repo.students.get_by_id(student_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    session = session_factory()
    try:
        repo = MatchingRepository(session)
        yield repo
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
