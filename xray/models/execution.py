"""
Execution Model
Root aggregate of a recorded pipeline trace
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, JSON, String
from sqlalchemy.orm import relationship
from sqlalchemy.orm.attributes import flag_modified

from . import Base
from ..core.status import STATUS_MAX_LENGTH, ExecutionStatus


class XRayExecution(Base):
    """
    Execution Model

    One run of a pipeline. Owns its steps: saving the execution inserts
    newly appended steps, deleting it deletes all of them.
    """
    __tablename__ = "xray_executions"

    execution_id = Column(String(64), primary_key=True)

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=True)

    # IN_PROGRESS, COMPLETED or FAILED:<reason>
    status = Column(String(STATUS_MAX_LENGTH), nullable=False, default="IN_PROGRESS")

    # Producer-supplied context, encoded to a JSON tree
    # Example: {"pipeline": "competitor_selection", "referenceProduct": {...}}
    context = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)

    # Optimistic lock: concurrent writers to the same aggregate conflict on this
    version = Column(Integer, nullable=False)

    steps = relationship(
        "XRayStep",
        back_populates="execution",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="[XRayStep.timestamp, XRayStep.sequence]",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def state(self) -> ExecutionStatus:
        return ExecutionStatus.parse(self.status)

    @property
    def duration_ms(self) -> int:
        if self.end_time is None or self.start_time is None:
            return 0
        return (self.end_time - self.start_time) // timedelta(milliseconds=1)

    def add_step(self, step) -> None:
        """Append a step, assigning its insertion index."""
        step.sequence = len(self.steps)
        self.steps.append(step)
        # Force an UPDATE of this row so the version check covers the append
        flag_modified(self, "status")

    def complete(self, now: datetime) -> None:
        self.end_time = self._end_instant(now)
        self.status = ExecutionStatus.completed().to_wire()

    def fail(self, now: datetime, reason: Optional[str]) -> None:
        self.end_time = self._end_instant(now)
        self.status = ExecutionStatus.failed(reason).to_wire()

    def _end_instant(self, now: datetime) -> datetime:
        # Keep start_time <= step.timestamp <= end_time even with a skewed clock
        candidates = [now, self.start_time]
        candidates.extend(step.timestamp for step in self.steps)
        return max(instant for instant in candidates if instant is not None)

    def __repr__(self):
        return f"<XRayExecution(execution_id='{self.execution_id}', status='{self.status}', steps={len(self.steps)})>"
