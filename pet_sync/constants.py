"""Numeric policy and defaults for the pet sync engine."""

DIFFICULTIES = ("easy", "normal", "hard")
DEFAULT_DIFFICULTY = "normal"

# Decay: points per hour, scaled by difficulty.
BASE_DECAY_RATE = 0.4
DECAY_MULTIPLIERS = {
    "easy": 0.5,
    "normal": 1.0,
    "hard": 2.0,
}

# XP gain scaling. Inverted relative to decay: hard decays fastest AND earns least.
XP_MULTIPLIERS = {
    "easy": 1.2,
    "normal": 1.0,
    "hard": 0.8,
}

STAT_MIN = 0
STAT_MAX = 100
VITALS = ("hunger", "happiness", "health")

DEFAULT_PET_STATS = {
    "hunger": 50,
    "happiness": 50,
    "health": 50,
}

# Normalized event kinds produced by the activity feed.
EVENT_PUSH = "push"
EVENT_PR_OPENED = "pull_request_opened"
EVENT_PR_MERGED = "pull_request_merged"
EVENT_REVIEW_SUBMITTED = "review_submitted"

EVENT_SCORES = {
    EVENT_PUSH: {"hunger": 15, "happiness": 5, "xp": 10, "solo": 1.0, "social": 0.0},
    EVENT_PR_OPENED: {"hunger": 0, "happiness": 15, "xp": 10, "solo": 0.0, "social": 0.0},
    EVENT_PR_MERGED: {"hunger": 0, "happiness": 30, "xp": 25, "solo": 0.0, "social": 2.0},
    EVENT_REVIEW_SUBMITTED: {"hunger": 0, "happiness": 20, "xp": 15, "solo": 0.0, "social": 2.0},
}

# Affinity -> trait, in tie-break order.
AFFINITY_TRAITS = {
    "solo": "lone_coder",
    "social": "collaborator",
}
DEFAULT_TRAIT = "lone_coder"
TRAIT_TRACKING_DAYS = 7

STAGE_NAMES = {
    0: "egg",
    1: "hatchling",
    2: "fledgling",
    3: "adult",
    4: "elder",
    5: "legendary",
}
TERMINAL_STAGE = 5
TRAIT_LOCK_STAGE = 2

# Current stage -> requirements to advance to the next one.
EVOLUTION_THRESHOLDS = {
    0: {"days": 3, "xp": 0},
    1: {"days": 7, "xp": 100},
    2: {"days": 30, "xp": 500},
    3: {"days": 90, "xp": 1500},
    4: {"days": 365, "xp": 5000},
}

DEFAULT_STALE_MINUTES = 30
DEFAULT_BATCH_SIZE = 50
DEFAULT_FEED_TIMEOUT_SECONDS = 15
FEED_LOOKBACK_HOURS = 6
MAX_EVENTS_PER_FETCH = 100

DEFAULT_STATE_FILE = ".petgotchi/state.json"

# Ledger entries older than this (relative to the watermark) can no longer be
# returned by the feed. Must stay above FEED_LOOKBACK_HOURS.
PROCESSED_EVENT_RETENTION_HOURS = 48

DEFAULT_LOCK_TIMEOUT_SECONDS = 30
