#!/usr/bin/env python3
"""
Quick checks so the backend can start. Run from backend/:
  python scripts/check_backend.py
"""
import os
import sys
from pathlib import Path

# Run from backend/
backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))


def main():
    errors = []

    # 1) .env
    env_file = backend_dir / ".env"
    if not env_file.exists():
        errors.append("backend/.env missing. Copy from .env.example and set DATABASE_URL, INBOX_API_URL, CORE_API_URL.")
    else:
        print("OK  .env exists")

    # 2) DB connection and migrated tables
    try:
        from sqlalchemy import inspect

        from inbox_feed.db.session import engine
        from inbox_feed.db.tables import ALL_TABLE_NAMES

        existing = set(inspect(engine).get_table_names())
        missing = [t for t in ALL_TABLE_NAMES if t not in existing]
        if missing:
            errors.append(f"Tables missing: {', '.join(missing)}. Run: alembic upgrade head")
            print("FAIL Tables missing:", ", ".join(missing))
        else:
            print("OK  Database connection and tables (DATABASE_URL)")
    except Exception as e:
        errors.append(f"Database: {e}")
        print("FAIL Database:", e)

    # 3) App import (catches missing deps, bad imports)
    try:
        from inbox_feed.main import app  # noqa: F401
        print("OK  App import (inbox_feed.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)
        print("\nFix the above, then run:")
        print("  cd backend && uvicorn inbox_feed.main:app --reload --host 0.0.0.0 --port 8000")
        return 1

    # 4) Push sink is optional; warn only
    from inbox_feed.config import settings

    if not settings.push_events_url:
        print("WARN PUSH_EVENTS_URL not set; pushes will be skipped")

    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        return 1

    print("\nAll checks passed. Start with: uvicorn inbox_feed.main:app --host 0.0.0.0 --port 8000")
    return 0


if __name__ == "__main__":
    sys.exit(main())
