"""
Execution Store

Persistence of execution aggregates (execution + steps) on top of SQLAlchemy.

Every operation runs inside a unit of work:

    with store.unit_of_work() as repo:
        execution = repo.get(execution_id)
        execution.add_step(step)
    # committed here

The unit of work commits on clean exit and rolls back on any exception,
translating low-level SQLAlchemy errors into X-Ray exceptions:

- IntegrityError             → IdCollisionError
- StaleDataError             → ConcurrentWriteError
- OperationalError (locked)  → ConcurrentWriteError
- other SQLAlchemyError      → InternalError (logged with a correlation id)
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from .exceptions import (
    ConcurrentWriteError,
    IdCollisionError,
    InternalError,
    OperationCancelledError,
    XRayException,
)
from .logging_config import new_correlation_id
from ..models import XRayExecution, XRayStep

logger = logging.getLogger(__name__)


class ExecutionRepository:
    """Aggregate operations bound to one session (one transaction)."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, execution: XRayExecution) -> None:
        """Insert a new aggregate. The INSERT is flushed so id collisions surface here."""
        self.session.add(execution)
        self.session.flush()

    def get(self, execution_id: str) -> Optional[XRayExecution]:
        return self.session.get(XRayExecution, execution_id)

    def list_all(self) -> List[XRayExecution]:
        stmt = select(XRayExecution).order_by(
            XRayExecution.start_time.desc(),
            XRayExecution.created_at.desc(),
        )
        return list(self.session.scalars(stmt).all())

    def exists(self, execution_id: str) -> bool:
        stmt = select(XRayExecution.execution_id).where(XRayExecution.execution_id == execution_id)
        return self.session.scalar(stmt) is not None

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(XRayExecution)) or 0

    def delete(self, execution: XRayExecution) -> None:
        # ORM delete cascades to steps (cascade="all, delete-orphan")
        self.session.delete(execution)

    def delete_all(self) -> int:
        total = self.count()
        self.session.execute(delete(XRayStep))
        self.session.execute(delete(XRayExecution))
        return total


class ExecutionStore:
    """Session factory wrapper handing out units of work."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def unit_of_work(
        self,
        cancel_event: Optional[threading.Event] = None
    ) -> Generator[ExecutionRepository, None, None]:
        """
        Open a transaction.

        Args:
            cancel_event: Optional cancellation signal. Checked before the
                work starts and again right before commit; when set, the
                transaction is rolled back and OperationCancelledError raised.
        """
        _check_cancelled(cancel_event)

        session = self.session_factory()
        try:
            yield ExecutionRepository(session)
            _check_cancelled(cancel_event)
            session.commit()
        except XRayException:
            session.rollback()
            raise
        except StaleDataError as e:
            session.rollback()
            raise ConcurrentWriteError(f"Aggregate modified concurrently: {e}") from e
        except IntegrityError as e:
            session.rollback()
            raise IdCollisionError(f"Identifier already exists: {e.orig}") from e
        except OperationalError as e:
            session.rollback()
            if _is_lock_error(e):
                raise ConcurrentWriteError(f"Database busy: {e.orig}") from e
            raise _internal_error(e) from e
        except SQLAlchemyError as e:
            session.rollback()
            raise _internal_error(e) from e
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()


def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError()


def _is_lock_error(error: OperationalError) -> bool:
    message = str(error.orig).lower()
    return "locked" in message or "deadlock" in message or "could not serialize" in message


def _internal_error(error: SQLAlchemyError) -> InternalError:
    correlation_id = new_correlation_id()
    logger.error(
        f"Store failure (correlation_id={correlation_id}): {error}",
        extra={"correlation_id": correlation_id, "error_type": type(error).__name__},
    )
    return InternalError(f"Store failure: {type(error).__name__}", correlation_id=correlation_id)
