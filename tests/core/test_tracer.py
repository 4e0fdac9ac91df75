"""
Unit Tests for XRayTracer

Tests cover:
- Execution lifecycle (start, record steps, end, fail)
- Input validation (empty step name, unencodable values)
- Operations on missing or terminal executions
- Conflict retries (id collisions, concurrent writes)
- Cancellation
"""

import threading
from contextlib import contextmanager
from datetime import datetime

import pytest

from xray.core.dependencies import RetryPolicy, TracerDependencies
from xray.core.exceptions import (
    BadInputError,
    ConcurrentWriteError,
    ConflictingStateError,
    NotFoundError,
    OperationCancelledError,
)
from xray.core.ids import IdGenerator
from xray.core.status import STATUS_MAX_LENGTH
from xray.core.tracer import StepRecord, XRayTracer


class FrozenClock:
    def now(self):
        return datetime(2026, 10, 19, 12, 0, 0)


class ScriptedIds(IdGenerator):
    """Hands out pre-set ids first, then random ones"""

    def __init__(self, execution_ids=(), step_ids=()):
        self.execution_ids = list(execution_ids)
        self.step_ids = list(step_ids)

    def execution_id(self) -> str:
        return self.execution_ids.pop(0) if self.execution_ids else super().execution_id()

    def step_id(self) -> str:
        return self.step_ids.pop(0) if self.step_ids else super().step_id()


class AlwaysConflictingStore:
    def __init__(self):
        self.attempts = 0

    @contextmanager
    def unit_of_work(self, cancel_event=None):
        self.attempts += 1
        raise ConcurrentWriteError("Aggregate modified concurrently")
        yield


# ============================================================================
# LIFECYCLE
# ============================================================================

@pytest.mark.unit
def test_start_execution(tracer, query, complex_context):
    execution_id = tracer.start_execution(complex_context)

    execution = query.get_execution(execution_id)
    assert execution_id.startswith("exec_")
    assert execution.status == "IN_PROGRESS"
    assert execution.end_time is None
    assert execution.context == complex_context
    assert execution.steps == []


@pytest.mark.unit
def test_start_execution_without_context(tracer, query):
    execution_id = tracer.start_execution()

    assert query.get_execution(execution_id).context is None


@pytest.mark.unit
def test_record_steps_in_order(tracer, query):
    execution_id = tracer.start_execution({"pipeline": "test"})

    first = tracer.record_step(execution_id, StepRecord(
        step_name="keyword_generation",
        input={"title": "bottle"},
        output={"keywords": ["steel", "bottle"]},
        reasoning="Two keywords",
    ))
    second = tracer.record_step(execution_id, StepRecord(step_name="candidate_search"))

    steps = query.get_execution(execution_id).steps
    assert [step.step_id for step in steps] == [first, second]
    assert steps[0].step_name == "keyword_generation"
    assert steps[0].input == {"title": "bottle"}
    assert steps[0].output == {"keywords": ["steel", "bottle"]}
    assert steps[0].reasoning == "Two keywords"
    assert steps[0].step_metadata is None
    assert steps[1].input is None
    assert steps[1].output is None
    assert steps[0].timestamp < steps[1].timestamp


@pytest.mark.unit
def test_record_step_with_metadata(tracer, query):
    execution_id = tracer.start_execution()

    tracer.record_step(execution_id, StepRecord(step_name="filter", metadata={"threshold": 3.8}))

    assert query.get_execution(execution_id).steps[0].step_metadata == {"threshold": 3.8}


@pytest.mark.unit
def test_end_execution(tracer, query):
    execution_id = tracer.start_execution()
    tracer.record_step(execution_id, StepRecord(step_name="only"))

    tracer.end_execution(execution_id)

    execution = query.get_execution(execution_id)
    assert execution.status == "COMPLETED"
    assert execution.end_time >= execution.steps[-1].timestamp >= execution.start_time
    assert execution.duration_ms >= 0


@pytest.mark.unit
def test_fail_execution(tracer, query):
    execution_id = tracer.start_execution()

    tracer.fail_execution(execution_id, "No qualified products found")

    execution = query.get_execution(execution_id)
    assert execution.status == "FAILED:No qualified products found"
    assert execution.end_time is not None


@pytest.mark.unit
def test_fail_execution_truncates_reason(tracer, query):
    execution_id = tracer.start_execution()

    tracer.fail_execution(execution_id, "x" * 2000)

    status = query.get_execution(execution_id).status
    assert len(status) == STATUS_MAX_LENGTH
    assert status.startswith("FAILED:")


@pytest.mark.unit
def test_fail_execution_without_reason(tracer, query):
    execution_id = tracer.start_execution()

    tracer.fail_execution(execution_id, None)

    assert query.get_execution(execution_id).status == "FAILED:"


@pytest.mark.unit
def test_frozen_clock_keeps_ordering(store, query):
    tracer = XRayTracer(TracerDependencies(
        store=store,
        clock=FrozenClock(),
        retry=RetryPolicy(max_attempts=3, backoff_seconds=0),
    ))
    execution_id = tracer.start_execution()
    names = ["a", "b", "c", "d"]
    for name in names:
        tracer.record_step(execution_id, StepRecord(step_name=name))
    tracer.end_execution(execution_id)

    execution = query.get_execution(execution_id)
    assert [step.step_name for step in execution.steps] == names
    assert execution.duration_ms == 0


# ============================================================================
# BAD INPUT
# ============================================================================

@pytest.mark.unit
@pytest.mark.parametrize("step_name", ["", "   ", None])
def test_empty_step_name_rejected(tracer, query, step_name):
    execution_id = tracer.start_execution()

    with pytest.raises(BadInputError):
        tracer.record_step(execution_id, StepRecord(step_name=step_name))

    assert query.get_execution(execution_id).steps == []


@pytest.mark.unit
def test_unencodable_context_persists_nothing(tracer, query):
    context = {"name": "loop"}
    context["self"] = context

    with pytest.raises(BadInputError):
        tracer.start_execution(context)

    assert query.count_executions() == 0


@pytest.mark.unit
def test_unencodable_step_output_rejected(tracer, query):
    execution_id = tracer.start_execution()

    with pytest.raises(BadInputError) as exc_info:
        tracer.record_step(execution_id, StepRecord(step_name="x", output={"value": float("nan")}))

    assert exc_info.value.field == "output"
    assert query.get_execution(execution_id).steps == []


# ============================================================================
# MISSING / TERMINAL EXECUTIONS
# ============================================================================

@pytest.mark.unit
def test_record_step_on_missing_execution(tracer):
    with pytest.raises(NotFoundError) as exc_info:
        tracer.record_step("exec_missing0", StepRecord(step_name="x"))

    assert exc_info.value.execution_id == "exec_missing0"


@pytest.mark.unit
@pytest.mark.parametrize("operation", ["end", "fail"])
def test_end_or_fail_missing_execution(tracer, operation):
    with pytest.raises(NotFoundError):
        if operation == "end":
            tracer.end_execution("exec_missing0")
        else:
            tracer.fail_execution("exec_missing0", "boom")


@pytest.mark.unit
def test_record_step_after_end(tracer, query):
    execution_id = tracer.start_execution()
    tracer.end_execution(execution_id)

    with pytest.raises(ConflictingStateError):
        tracer.record_step(execution_id, StepRecord(step_name="late"))

    assert query.get_execution(execution_id).steps == []


@pytest.mark.unit
def test_double_end_keeps_first_outcome(tracer, query):
    execution_id = tracer.start_execution()
    tracer.fail_execution(execution_id, "first")

    with pytest.raises(ConflictingStateError):
        tracer.end_execution(execution_id)
    with pytest.raises(ConflictingStateError):
        tracer.fail_execution(execution_id, "second")

    assert query.get_execution(execution_id).status == "FAILED:first"


# ============================================================================
# CONFLICT RETRIES
# ============================================================================

@pytest.mark.unit
def test_execution_id_collision_retried(store, clock, query):
    ids = ScriptedIds(execution_ids=["exec_aaaaaaaa", "exec_aaaaaaaa", "exec_bbbbbbbb"])
    tracer = XRayTracer(TracerDependencies(
        store=store, clock=clock, ids=ids,
        retry=RetryPolicy(max_attempts=3, backoff_seconds=0),
    ))

    first = tracer.start_execution({"n": 1})
    second = tracer.start_execution({"n": 2})

    assert first == "exec_aaaaaaaa"
    assert second == "exec_bbbbbbbb"
    assert query.get_execution(first).context == {"n": 1}
    assert query.get_execution(second).context == {"n": 2}


@pytest.mark.unit
def test_step_id_collision_retried(store, clock, query):
    ids = ScriptedIds(step_ids=["step_aaaaaaaa", "step_aaaaaaaa", "step_bbbbbbbb"])
    tracer = XRayTracer(TracerDependencies(
        store=store, clock=clock, ids=ids,
        retry=RetryPolicy(max_attempts=3, backoff_seconds=0),
    ))
    execution_id = tracer.start_execution()

    tracer.record_step(execution_id, StepRecord(step_name="one"))
    second = tracer.record_step(execution_id, StepRecord(step_name="two"))

    assert second == "step_bbbbbbbb"
    steps = query.get_execution(execution_id).steps
    assert [step.step_id for step in steps] == ["step_aaaaaaaa", "step_bbbbbbbb"]


@pytest.mark.unit
def test_gives_up_after_max_attempts(clock):
    store = AlwaysConflictingStore()
    tracer = XRayTracer(TracerDependencies(
        store=store, clock=clock,
        retry=RetryPolicy(max_attempts=4, backoff_seconds=0),
    ))

    with pytest.raises(ConcurrentWriteError):
        tracer.start_execution()

    assert store.attempts == 4


@pytest.mark.unit
def test_retry_policy_requires_a_retry():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=1)


# ============================================================================
# CANCELLATION
# ============================================================================

@pytest.mark.unit
def test_cancelled_start_persists_nothing(tracer, query):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(OperationCancelledError):
        tracer.start_execution({"pipeline": "x"}, cancel_event=cancel)

    assert query.count_executions() == 0


@pytest.mark.unit
def test_cancel_during_record_step_rolls_back(store, query):
    cancel = threading.Event()

    class CancellingClock:
        """Signals cancellation once the step timestamp has been read"""

        def __init__(self):
            self.armed = False

        def now(self):
            if self.armed:
                cancel.set()
            return datetime(2026, 10, 19, 12, 0, 0)

    clock = CancellingClock()
    tracer = XRayTracer(TracerDependencies(
        store=store, clock=clock,
        retry=RetryPolicy(max_attempts=3, backoff_seconds=0),
    ))
    execution_id = tracer.start_execution()
    clock.armed = True

    with pytest.raises(OperationCancelledError):
        tracer.record_step(execution_id, StepRecord(step_name="x"), cancel_event=cancel)

    execution = query.get_execution(execution_id)
    assert execution.steps == []
    assert execution.status == "IN_PROGRESS"


@pytest.mark.unit
def test_cancelled_end_leaves_execution_in_progress(tracer, query):
    execution_id = tracer.start_execution()
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(OperationCancelledError):
        tracer.end_execution(execution_id, cancel_event=cancel)

    assert query.get_execution(execution_id).status == "IN_PROGRESS"


# ============================================================================
# INPUT SHAPE
# ============================================================================

@pytest.mark.unit
def test_deeply_nested_input_rejected(tracer, query):
    execution_id = tracer.start_execution()
    deep = []
    for _ in range(5000):
        deep = [deep]

    with pytest.raises(BadInputError) as exc_info:
        tracer.record_step(execution_id, StepRecord(step_name="deep", input=deep))

    assert exc_info.value.field == "input"
    assert query.get_execution(execution_id).steps == []


@pytest.mark.unit
@pytest.mark.parametrize("reasoning", [{"why": 1}, 42, ["a", "b"]])
def test_non_string_reasoning_rejected(tracer, query, reasoning):
    execution_id = tracer.start_execution()

    with pytest.raises(BadInputError) as exc_info:
        tracer.record_step(execution_id, StepRecord(step_name="x", reasoning=reasoning))

    assert exc_info.value.field == "reasoning"
    assert query.get_execution(execution_id).steps == []
