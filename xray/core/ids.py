"""
Identifier generation for executions and steps.

Format: "<prefix>_" + first 8 hex digits of a random UUID4.
"""

import uuid

EXECUTION_PREFIX = "exec"
STEP_PREFIX = "step"


class IdGenerator:
    """Generates execution and step identifiers"""

    def generate(self, prefix: str) -> str:
        return f"{prefix}_{uuid.uuid4().hex[:8]}"

    def execution_id(self) -> str:
        return self.generate(EXECUTION_PREFIX)

    def step_id(self) -> str:
        return self.generate(STEP_PREFIX)
