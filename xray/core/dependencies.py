"""
Explicit dependency record shared by the tracer and the query service,
plus the conflict-retry loop both of them run their units of work through.
"""

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, TypeVar

from .clock import Clock, SystemClock
from .exceptions import ConcurrentWriteError, ConflictError, IdCollisionError
from .ids import IdGenerator
from .json_encoder import JsonEncoder
from .settings import Settings
from .store import ExecutionRepository, ExecutionStore
from ..database import create_db_engine, create_session_factory, init_db

logger = logging.getLogger(__name__)

T = TypeVar("T")



@dataclass
class RetryPolicy:
    """
    Retry budget for conflicting writes.

    max_attempts counts the first try, so 2 means one retry.
    """
    max_attempts: int = 10
    backoff_seconds: float = 0.005

    def __post_init__(self):
        if self.max_attempts < 2:
            raise ValueError("RetryPolicy needs at least one retry (max_attempts >= 2)")

    def sleep(self, attempt: int) -> None:
        if self.backoff_seconds <= 0:
            return
        # Linear backoff with jitter so concurrent writers spread out
        time.sleep(self.backoff_seconds * attempt * (0.5 + random.random()))


@dataclass
class TracerDependencies:
    store: ExecutionStore
    clock: Clock = field(default_factory=SystemClock)
    ids: IdGenerator = field(default_factory=IdGenerator)
    encoder: JsonEncoder = field(default_factory=JsonEncoder)
    retry: RetryPolicy = field(default_factory=RetryPolicy)


def build_dependencies(settings: Optional[Settings] = None) -> TracerDependencies:
    """Wire engine, store and helpers from settings (environment by default)."""
    settings = settings or Settings.from_env()

    engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
    if settings.auto_create_tables:
        init_db(engine)

    return TracerDependencies(
        store=ExecutionStore(create_session_factory(engine)),
        retry=RetryPolicy(
            max_attempts=max(settings.max_retries, 2),
            backoff_seconds=settings.retry_backoff_ms / 1000.0,
        ),
    )


def run_with_retries(
    deps: TracerDependencies,
    operation: str,
    attempt: Callable[[ExecutionRepository], T],
    cancel_event: Optional[threading.Event] = None,
    on_collision: Optional[Callable[[], None]] = None,
) -> T:
    """
    Run attempt inside a unit of work, retrying write conflicts.

    Each retry opens a fresh unit of work, so the attempt re-reads the
    aggregate. on_collision runs before retrying an IdCollisionError.

    Raises:
        ConflictError: still conflicting after deps.retry.max_attempts
    """
    policy = deps.retry
    last_error: Optional[ConflictError] = None

    for attempt_number in range(1, policy.max_attempts + 1):
        try:
            with deps.store.unit_of_work(cancel_event) as repo:
                result = attempt(repo)
            return result
        except IdCollisionError as e:
            last_error = e
            if on_collision is not None:
                on_collision()
        except ConcurrentWriteError as e:
            last_error = e

        logger.debug(
            f"{operation}: write conflict on attempt {attempt_number}/{policy.max_attempts}, retrying",
            extra={"operation": operation, "error": last_error.message},
        )
        if attempt_number < policy.max_attempts:
            policy.sleep(attempt_number)

    logger.warning(
        f"{operation}: giving up after {policy.max_attempts} attempts",
        extra={"operation": operation, "error": last_error.message if last_error else None},
    )
    raise last_error
