"""Trait affinity tally and the one-time trait decision."""

import copy
from datetime import datetime, timedelta

from .constants import AFFINITY_TRAITS, DEFAULT_TRAIT, TRAIT_TRACKING_DAYS
from .time_utils import to_float, to_iso8601


def new_tally(user_id: str, now: datetime) -> dict:
    """Empty, unlocked tally tracking for the next week."""
    return {
        "user_id": user_id,
        "scores": {affinity: 0.0 for affinity in AFFINITY_TRAITS},
        "tracking_until": to_iso8601(now + timedelta(days=TRAIT_TRACKING_DAYS)),
        "is_locked": False,
    }


def accumulate(tally: dict, affinity_delta: dict) -> dict:
    """
    Add affinity scores to the tally.

    A locked tally is returned unchanged; the deltas are discarded.
    Negative deltas are ignored so scores stay monotonic.
    """
    if tally.get("is_locked"):
        return tally

    updated = copy.deepcopy(tally)
    scores = updated.setdefault("scores", {})
    for affinity, delta in affinity_delta.items():
        delta = to_float(delta, 0.0)
        if delta <= 0:
            continue
        scores[affinity] = to_float(scores.get(affinity), 0.0) + delta
    return updated


def decide_trait(tally: dict | None) -> str:
    """
    Pick the trait whose affinity has the strictly highest score.

    Ties, an empty tally, or no tally at all resolve to the default trait.
    """
    if not tally:
        return DEFAULT_TRAIT

    scores = tally.get("scores", {})
    ranked = [
        (to_float(scores.get(affinity), 0.0), trait)
        for affinity, trait in AFFINITY_TRAITS.items()
    ]
    best_score = max(score for score, _ in ranked)
    leaders = [trait for score, trait in ranked if score == best_score]
    if len(leaders) != 1:
        return DEFAULT_TRAIT
    return leaders[0]


def lock_tally(tally: dict) -> dict:
    """Return a locked copy of the tally."""
    locked = copy.deepcopy(tally)
    locked["is_locked"] = True
    return locked
