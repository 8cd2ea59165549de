"""
Single source of truth for database tables that exist after migrations (001–002).

Use these names when writing raw SQL (e.g. TRUNCATE).
"""
# All tables that exist in the DB. Must match models and migrations.
ALL_TABLE_NAMES = (
    "feed_items",
    "feed_settings",
)

# Tables cleared when resetting feed state (TRUNCATE).
FEED_TABLE_NAMES = (
    "feed_items",
)
