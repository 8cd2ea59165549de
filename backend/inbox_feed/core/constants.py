"""
Centralized constants for the feed engine, scheduler and consumers.

Change job ids, subjects or ranking tables here instead of scattering literals across
services and routes. Tunables that differ per environment live in config.Settings.
"""
# Scheduler job IDs (must match ids used in main.py add_job)
AUTO_ARCHIVE_JOB_ID = "feed_auto_archive"

# Inbound event subjects; one sequential consumer per subject
SUBJECT_FEED_UPDATED = "inbox.feed.updated"
SUBJECT_VOTE_CREATED = "inbox.vote.created"
SUBJECT_FEED_SETTINGS_UPDATED = "inbox.feed_settings.updated"
CONSUMER_SUBJECTS = (
    SUBJECT_FEED_UPDATED,
    SUBJECT_VOTE_CREATED,
    SUBJECT_FEED_SETTINGS_UPDATED,
)

# Settings defaults when the subscriber has no feed_settings row
DEFAULT_AUTOARCHIVE_AFTER_DAYS = 7
DEFAULT_ARCHIVE_PROPOSAL_AFTER_VOTE = False

# Timeline tie-break weights: same timestamp -> lower weight first
ACTION_WEIGHT_CREATED = 1
ACTION_WEIGHT_DEFAULT = 2
ACTION_WEIGHT_QUORUM_REACHED = 3
ACTION_WEIGHT_ENDED = 4

# "By actuality" rank of snapshot.state; anything else sorts after these
PROPOSAL_STATE_RANK = {
    "active": 0,
    "pending": 1,
    "succeeded": 2,
    "failed": 3,
    "defeated": 4,
    "canceled": 5,
}
PROPOSAL_STATE_RANK_UNKNOWN = len(PROPOSAL_STATE_RANK)
ACTIVE_PROPOSAL_STATES = frozenset({"active", "pending"})

# Mark-by-time cutoffs ignore sub-second precision of client timestamps
MARK_BY_TIME_SLACK_SECONDS = 1

SECONDS_PER_DAY = 86400
