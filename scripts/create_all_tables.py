"""
Create all X-Ray tables in the configured database

Tables:
1. xray_executions
2. xray_steps

For versioned schema changes use Alembic instead:
    alembic upgrade head
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sqlalchemy import inspect

from xray.core.settings import Settings
from xray.database import create_db_engine, init_db

settings = Settings.from_env()

print("=" * 70)
print("X-Ray - Create All Tables")
print("=" * 70)
print(f"\nDatabase: {settings.database_url[:40]}...")

try:
    engine = create_db_engine(settings.database_url)
    init_db(engine)

    tables = inspect(engine).get_table_names()
    print("\nTables in database:")
    for table in sorted(tables):
        print(f"   - {table}")

    engine.dispose()

except Exception as e:
    print(f"\nError: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
