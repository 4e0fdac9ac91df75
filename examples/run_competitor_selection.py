"""
Run the Competitor Selection demo pipeline against the configured database

Uses DATABASE_URL (default: sqlite:///./xray.db), records the trace and
prints it step by step.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from xray.core.dependencies import build_dependencies
from xray.core.logging_config import setup_logging
from xray.core.query import ExecutionQueryService
from xray.core.tracer import XRayTracer
from xray.demo import CompetitorSelectionPipeline

setup_logging(level="INFO")

print("=" * 70)
print("X-Ray - Competitor Selection Demo")
print("=" * 70)

deps = build_dependencies()
execution_id = CompetitorSelectionPipeline(XRayTracer(deps)).run()

execution = ExecutionQueryService(deps).get_execution(execution_id)

print(f"\nExecution: {execution.execution_id}")
print(f"Status:    {execution.status}")
print(f"Duration:  {execution.duration_ms}ms")

for index, step in enumerate(execution.steps, start=1):
    print("\n" + "-" * 70)
    print(f"[{index}] {step.step_name} @ {step.timestamp.isoformat()}")
    print(f"    {step.reasoning}")

selected = execution.steps[-1].output["selected_competitor"]
print("\n" + "=" * 70)
print(f"Selected competitor: {selected['title']} ({selected['asin']})")
print("=" * 70)
