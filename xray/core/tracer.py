"""
X-Ray Tracer

Producer-facing API. A pipeline opens an execution, records one step per
unit of work, and closes the execution as completed or failed:

    tracer = XRayTracer(deps)
    execution_id = tracer.start_execution({"pipeline": "competitor_selection"})
    tracer.record_step(execution_id, StepRecord(
        step_name="keyword_generation",
        input={"product_title": title},
        output={"keywords": keywords},
        reasoning="Extracted material, capacity and feature",
    ))
    tracer.end_execution(execution_id)

Each operation is one unit of work against the store: either all of its
effect is committed or none of it. Log lines are written after the commit,
so a logged operation is a durable one.

Write conflicts are retried internally:
- ConcurrentWriteError: re-read the aggregate, keep the step id and timestamp
- IdCollisionError: generate a fresh id
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from .dependencies import TracerDependencies, run_with_retries
from .exceptions import (
    BadInputError,
    ConflictingStateError,
    IdCollisionError,
    NotFoundError,
)
from .status import ExecutionStatus
from .store import ExecutionRepository
from ..models import XRayExecution, XRayStep

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class StepRecord:
    """What a producer reports for one step. Only step_name is required."""
    step_name: str
    input: Any = None
    output: Any = None
    reasoning: Optional[str] = None
    metadata: Any = None


class XRayTracer:
    """Opens, appends to and closes executions."""

    def __init__(self, deps: TracerDependencies):
        self.deps = deps

    # ========================================================================
    # START
    # ========================================================================

    def start_execution(self, context: Any = None, cancel_event: Optional[threading.Event] = None) -> str:
        """
        Open a new execution in IN_PROGRESS state.

        Args:
            context: Producer value describing the run (encoded to JSON)
            cancel_event: Optional cancellation signal

        Returns:
            The new execution id (exec_xxxxxxxx)

        Raises:
            BadInputError: context is not JSON encodable (nothing is persisted)
        """
        context_json = self.deps.encoder.encode(context, field="context")

        def attempt(repo: ExecutionRepository) -> XRayExecution:
            now = self.deps.clock.now()
            execution = XRayExecution(
                execution_id=self.deps.ids.execution_id(),
                start_time=now,
                status=ExecutionStatus.in_progress().to_wire(),
                context=context_json,
                created_at=now,
            )
            repo.add(execution)
            return execution

        execution = self._run("start_execution", attempt, cancel_event)

        logger.info(f"Started execution: {execution.execution_id}", extra={"execution_id": execution.execution_id})
        return execution.execution_id

    # ========================================================================
    # STEPS
    # ========================================================================

    def record_step(
        self,
        execution_id: str,
        step_record: StepRecord,
        cancel_event: Optional[threading.Event] = None
    ) -> str:
        """
        Append a step to an in-progress execution.

        Returns:
            The new step id (step_xxxxxxxx)

        Raises:
            NotFoundError: execution does not exist
            BadInputError: empty step_name, non-string reasoning or unencodable
                input/output/metadata
            ConflictingStateError: execution already completed or failed
        """
        step_name = step_record.step_name
        if not isinstance(step_name, str) or not step_name.strip():
            raise BadInputError("stepName must be a non-empty string", field="stepName")
        if step_record.reasoning is not None and not isinstance(step_record.reasoning, str):
            raise BadInputError("reasoning must be a string", field="reasoning")

        encoder = self.deps.encoder
        input_json = encoder.encode(step_record.input, field="input")
        output_json = encoder.encode(step_record.output, field="output")
        metadata_json = (
            encoder.encode(step_record.metadata, field="metadata")
            if step_record.metadata is not None
            else None
        )

        # Assigned on the first attempt and kept across concurrent-write retries
        assigned = {"step_id": None, "timestamp": None}

        def on_collision() -> None:
            assigned["step_id"] = None

        def attempt(repo: ExecutionRepository) -> XRayStep:
            if assigned["timestamp"] is None:
                assigned["timestamp"] = self.deps.clock.now()
            if assigned["step_id"] is None:
                assigned["step_id"] = self.deps.ids.step_id()

            execution = self._load_in_progress(repo, execution_id)
            if any(existing.step_id == assigned["step_id"] for existing in execution.steps):
                raise IdCollisionError(f"Step id already exists: {assigned['step_id']}")

            step = XRayStep(
                step_id=assigned["step_id"],
                step_name=step_name,
                timestamp=assigned["timestamp"],
                input=input_json,
                output=output_json,
                reasoning=step_record.reasoning,
                step_metadata=metadata_json,
                created_at=self.deps.clock.now(),
            )
            execution.add_step(step)
            return step

        step = self._run("record_step", attempt, cancel_event, on_collision=on_collision)

        logger.debug(
            f"Recorded step '{step_name}' for execution {execution_id}",
            extra={"execution_id": execution_id, "step_id": step.step_id},
        )
        return step.step_id

    # ========================================================================
    # END / FAIL
    # ========================================================================

    def end_execution(self, execution_id: str, cancel_event: Optional[threading.Event] = None) -> None:
        """
        Mark an in-progress execution COMPLETED.

        Raises:
            NotFoundError, ConflictingStateError
        """
        def attempt(repo: ExecutionRepository) -> XRayExecution:
            execution = self._load_in_progress(repo, execution_id)
            execution.complete(self.deps.clock.now())
            return execution

        execution = self._run("end_execution", attempt, cancel_event)

        logger.info(
            f"Completed execution: {execution_id} (duration: {execution.duration_ms}ms)",
            extra={"execution_id": execution_id, "duration_ms": execution.duration_ms},
        )

    def fail_execution(
        self,
        execution_id: str,
        reason: Optional[str],
        cancel_event: Optional[threading.Event] = None
    ) -> None:
        """
        Mark an in-progress execution FAILED:<reason>.

        The status is truncated to the 500-character column width.

        Raises:
            NotFoundError, ConflictingStateError
        """
        def attempt(repo: ExecutionRepository) -> XRayExecution:
            execution = self._load_in_progress(repo, execution_id)
            execution.fail(self.deps.clock.now(), reason)
            return execution

        self._run("fail_execution", attempt, cancel_event)

        logger.error(
            f"Failed execution: {execution_id} - Reason: {reason}",
            extra={"execution_id": execution_id},
        )

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _load_in_progress(self, repo: ExecutionRepository, execution_id: str) -> XRayExecution:
        execution = repo.get(execution_id)
        if execution is None:
            raise NotFoundError(execution_id)
        if execution.state.is_terminal:
            raise ConflictingStateError(execution_id, execution.status)
        return execution

    def _run(
        self,
        operation: str,
        attempt: Callable[[ExecutionRepository], T],
        cancel_event: Optional[threading.Event],
        on_collision: Optional[Callable[[], None]] = None,
    ) -> T:
        return run_with_retries(self.deps, operation, attempt, cancel_event, on_collision)
