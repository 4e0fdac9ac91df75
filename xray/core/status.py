"""
Execution status as a tagged value.

Stored and serialized as a single string for compatibility with existing
clients: "IN_PROGRESS", "COMPLETED" or "FAILED:<reason>".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Width of xray_executions.status
STATUS_MAX_LENGTH = 500

FAILED_PREFIX = "FAILED:"


class StatusKind(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class ExecutionStatus:
    kind: StatusKind
    reason: Optional[str] = None

    @classmethod
    def in_progress(cls) -> "ExecutionStatus":
        return cls(StatusKind.IN_PROGRESS)

    @classmethod
    def completed(cls) -> "ExecutionStatus":
        return cls(StatusKind.COMPLETED)

    @classmethod
    def failed(cls, reason: Optional[str]) -> "ExecutionStatus":
        return cls(StatusKind.FAILED, reason or "")

    @property
    def is_terminal(self) -> bool:
        return self.kind != StatusKind.IN_PROGRESS

    def to_wire(self) -> str:
        """
        Render the status column value.

        Python strings index by code point, so slicing never splits a
        multi-byte UTF-8 sequence.
        """
        if self.kind == StatusKind.FAILED:
            return (FAILED_PREFIX + (self.reason or ""))[:STATUS_MAX_LENGTH]
        return self.kind.value

    @classmethod
    def parse(cls, value: Optional[str]) -> "ExecutionStatus":
        if not value or value == StatusKind.IN_PROGRESS.value:
            return cls.in_progress()
        if value == StatusKind.COMPLETED.value:
            return cls.completed()
        if value.startswith(FAILED_PREFIX):
            # Older rows were written as "FAILED: reason"
            return cls.failed(value[len(FAILED_PREFIX):].lstrip(" "))
        raise ValueError(f"Unknown execution status: {value!r}")

    def __str__(self) -> str:
        return self.to_wire()
