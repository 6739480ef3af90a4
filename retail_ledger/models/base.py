"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. The engine and session factory
live on an explicitly constructed ``Database`` handle: the
process bootstrap (``create_app`` or a test fixture) builds it
and passes it to whoever needs a session.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from retail_ledger.errors import ConcurrencyConflictError, PersistenceError

logger = logging.getLogger(__name__)


# --- Base Model Class ---
# Every database model (Account, Transaction, ...) inherits
# from this class. SQLAlchemy uses it to track all models and
# generate the correct SQL for table creation.
class Base(DeclarativeBase):
    pass


class Database:
    """
    Storage handle: one engine, one session factory.

    pool_pre_ping=True tests connections before using them,
    which handles cases where the database restarted or a
    connection went stale.

    autocommit=False / autoflush=False: we explicitly control
    when SQL is sent and when changes are saved, which is what
    makes debit + credit + journal all-or-nothing.
    """

    def __init__(self, url: str, echo: bool = False):
        connect_args = {}
        if url.startswith("sqlite"):
            # Sessions are used from worker threads
            connect_args["check_same_thread"] = False

        self.url = url
        self.engine = create_engine(
            url,
            pool_pre_ping=True,
            echo=echo,
            connect_args=connect_args,
        )
        self.session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_all(self) -> None:
        """Create every table known to Base.metadata (tests and dev only)."""
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def unit_of_work(self) -> Iterator[Session]:
        """
        Run a block inside one database transaction.

        Commits when the block finishes, rolls back on any error.
        SQLAlchemy errors are translated into ledger errors so
        callers never see driver exceptions: a failed optimistic
        version check becomes ConcurrencyConflictError (retryable),
        anything else becomes PersistenceError.
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except StaleDataError as e:
            session.rollback()
            raise ConcurrencyConflictError(
                f"Concurrent update detected: {e}"
            ) from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Unit of work failed, rolled back", exc_info=True)
            raise PersistenceError(f"Storage failure: {e}") from e
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()


# --- Dependency for FastAPI ---
def get_db(request: Request):
    """
    Provide a database session for a single request.

    This is a generator that FastAPI uses as a dependency.
    It creates a session from the Database handle stored on
    the application, gives it to the endpoint function, and
    guarantees cleanup when the request finishes, even if an
    error occurs.
    """
    database: Database = request.app.state.database
    db = database.session_factory()
    try:
        yield db
    finally:
        db.close()
