#!/usr/bin/env python3
"""Run one auto-archive sweep now (same as the hourly scheduler job).
Run from backend: python scripts/run_auto_archive.py
"""
import logging
import sys
from pathlib import Path

# Ensure backend is on path when run as script
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from inbox_feed.db.session import SessionLocal
from inbox_feed.services.feed_store import FeedItemStore


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    db = SessionLocal()
    try:
        archived = FeedItemStore(db).auto_archive()
        print(f"Archived {archived} feed items.")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
