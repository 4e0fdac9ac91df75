"""
Execution query service - consumer-facing reads and deletes.
"""

import logging
from typing import List

from .dependencies import TracerDependencies, run_with_retries
from .exceptions import NotFoundError
from .store import ExecutionRepository
from ..models import XRayExecution

logger = logging.getLogger(__name__)


class ExecutionQueryService:
    """List, fetch and delete recorded executions."""

    def __init__(self, deps: TracerDependencies):
        self.deps = deps

    def list_executions(self) -> List[XRayExecution]:
        """All executions, newest start_time first, each with its steps."""
        with self.deps.store.unit_of_work() as repo:
            executions = repo.list_all()

        logger.info(f"Retrieved {len(executions)} executions")
        return executions

    def get_execution(self, execution_id: str) -> XRayExecution:
        with self.deps.store.unit_of_work() as repo:
            execution = repo.get(execution_id)
            if execution is None:
                raise NotFoundError(execution_id)

        logger.info(f"Retrieved execution: {execution_id} with {len(execution.steps)} steps")
        return execution

    def delete_execution(self, execution_id: str) -> None:
        """
        Delete one execution and its steps.

        The delete is version checked; a step appended after the load makes
        it conflict, and it is retried with a fresh read.
        """
        def attempt(repo: ExecutionRepository) -> None:
            execution = repo.get(execution_id)
            if execution is None:
                raise NotFoundError(execution_id)
            repo.delete(execution)

        run_with_retries(self.deps, "delete_execution", attempt)

        logger.info(f"Deleted execution: {execution_id}")

    def delete_all_executions(self) -> int:
        """Delete every execution and step. Returns how many executions were removed."""
        with self.deps.store.unit_of_work() as repo:
            total = repo.delete_all()

        logger.info(f"Deleted all {total} executions")
        return total

    def count_executions(self) -> int:
        with self.deps.store.unit_of_work() as repo:
            return repo.count()
