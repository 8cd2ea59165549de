#!/usr/bin/env python3
"""Delete every feed item (feed_settings are kept). Subscribers repopulate via subscribe/backfill
and new events. Run from backend: python scripts/clear_feed_items.py
"""
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import text

from inbox_feed.db.session import SessionLocal
from inbox_feed.db.tables import FEED_TABLE_NAMES


def main():
    db = SessionLocal()
    try:
        # TRUNCATE is near-instant; DELETE can be slow on large feeds
        db.execute(text(f"TRUNCATE TABLE {', '.join(FEED_TABLE_NAMES)}"))
        db.commit()
        print("Cleared:", ", ".join(FEED_TABLE_NAMES))
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
