"""
Step Model
One recorded unit of work inside an execution
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from . import Base


class XRayStep(Base):
    """
    Step Model

    Immutable once recorded. Holds a back reference to its execution,
    which is never serialized when the step is embedded in the execution.
    """
    __tablename__ = "xray_steps"

    step_id = Column(String(64), primary_key=True)
    step_name = Column(String(255), nullable=False)

    timestamp = Column(DateTime, nullable=False)

    # JSON trees produced by JsonEncoder
    input = Column(JSON, nullable=True)
    output = Column(JSON, nullable=True)

    reasoning = Column(Text, nullable=True)

    # "metadata" is reserved on declarative classes
    step_metadata = Column("metadata", JSON, nullable=True)

    execution_id = Column(
        String(64),
        ForeignKey("xray_executions.execution_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Insertion index within the execution, tie-break for equal timestamps
    sequence = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=datetime.now)

    execution = relationship("XRayExecution", back_populates="steps")

    __table_args__ = (
        Index("idx_xray_steps_execution_order", "execution_id", "timestamp", "sequence"),
    )

    def __repr__(self):
        return f"<XRayStep(step_id='{self.step_id}', step_name='{self.step_name}', execution_id='{self.execution_id}')>"
