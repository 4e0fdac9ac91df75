"""
Pydantic schemas for API responses

Wire keys are camelCase; steps embedded in an execution never carry
their parent executionId.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# EXECUTION SCHEMAS
# ============================================================================

class StepResponse(CamelModel):
    """Schema for a step embedded in its execution"""
    step_id: str
    step_name: str
    timestamp: datetime
    input: Optional[Any] = None
    output: Optional[Any] = None
    reasoning: Optional[str] = None
    metadata: Optional[Any] = Field(None, validation_alias="step_metadata", serialization_alias="metadata")
    created_at: datetime


class ExecutionResponse(CamelModel):
    """Schema for a full execution aggregate"""
    execution_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str
    context: Optional[Any] = None
    steps: List[StepResponse] = Field(default_factory=list)
    created_at: datetime
    duration_ms: int = 0

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "executionId": "exec_1a2b3c4d",
                "startTime": "2026-10-19T10:15:30.123456",
                "endTime": "2026-10-19T10:15:30.456789",
                "status": "COMPLETED",
                "context": {"pipeline": "competitor_selection"},
                "steps": [
                    {
                        "stepId": "step_5e6f7a8b",
                        "stepName": "keyword_generation",
                        "timestamp": "2026-10-19T10:15:30.200000",
                        "input": {"product_title": "..."},
                        "output": {"keywords": ["..."]},
                        "reasoning": "...",
                        "metadata": None,
                        "createdAt": "2026-10-19T10:15:30.200000",
                    }
                ],
                "createdAt": "2026-10-19T10:15:30.123456",
                "durationMs": 333,
            }
        }
    )


# ============================================================================
# DEMO SCHEMAS
# ============================================================================

class DemoResponse(CamelModel):
    """Result of running the example producer"""
    execution_id: Optional[str]
    message: str
    success: bool


# ============================================================================
# GENERIC SCHEMAS
# ============================================================================

class MessageResponse(BaseModel):
    """Generic message response"""
    message: str


class ErrorResponse(BaseModel):
    """Error response"""
    error: str
    status_code: int
    correlation_id: Optional[str] = None
