#!/usr/bin/env python3
"""
Clear ALL recorded executions

Deletes every row from xray_executions and xray_steps.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from xray.core.dependencies import build_dependencies
from xray.core.exceptions import XRayException
from xray.core.query import ExecutionQueryService


def main() -> int:
    print("\nClearing all executions...")

    query = ExecutionQueryService(build_dependencies())

    try:
        total = query.delete_all_executions()
    except XRayException as e:
        print(f"   Error: {e.message}")
        return 1

    if total:
        print(f"   {total} executions deleted")
    else:
        print("   Nothing to delete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
