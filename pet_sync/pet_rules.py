"""Pet stat, decay, and streak rules."""

from datetime import date, datetime, timedelta

from .constants import (
    BASE_DECAY_RATE,
    DECAY_MULTIPLIERS,
    DEFAULT_DIFFICULTY,
    STAGE_NAMES,
    STAT_MAX,
    STAT_MIN,
    VITALS,
)
from .time_utils import to_float, to_int


def calculate_decay(hours_elapsed: float, difficulty: str) -> float:
    """
    Stat decay for an elapsed duration.

    decay = hours * 0.4 * multiplier (easy=0.5, normal=1.0, hard=2.0).
    The result is not clamped; callers clamp the stats it is applied to.
    """
    multiplier = DECAY_MULTIPLIERS.get(difficulty, DECAY_MULTIPLIERS[DEFAULT_DIFFICULTY])
    return hours_elapsed * BASE_DECAY_RATE * multiplier


def clamp_stat(value: float) -> float:
    """Clamp a vital into the [0, 100] range."""
    return max(STAT_MIN, min(STAT_MAX, value))


def apply_stat_changes(pet: dict, bonuses: dict, decay: float) -> dict:
    """
    Combine summed event bonuses with decay into the next stat values.

    Vitals are clamped once, after bonuses and decay are both applied.
    Health receives no bonus from ordinary events. XP only grows.
    """
    updated = {}
    for stat_name in VITALS:
        bonus = to_float(bonuses.get(stat_name), 0.0) if stat_name != "health" else 0.0
        updated[stat_name] = clamp_stat(to_float(pet.get(stat_name), 0.0) + bonus - decay)

    xp_gain = max(0.0, to_float(bonuses.get("xp"), 0.0))
    updated["xp"] = to_float(pet.get("xp"), 0.0) + xp_gain
    return updated


def roll_streak(pet: dict, today: date) -> dict:
    """
    Advance streak counters for a day with push activity.

    Same day keeps the streak, the following day extends it, a gap restarts it.
    A day before the last recorded one leaves the counters alone.
    """
    current = max(0, to_int(pet.get("streak_current"), 0))
    longest = max(0, to_int(pet.get("streak_longest"), 0))
    last_date = pet.get("streak_last_date")

    try:
        last_day = datetime.strptime(last_date, "%Y-%m-%d").date() if last_date else None
    except ValueError:
        last_day = None

    if last_day is not None and today < last_day:
        return {"streak_current": current, "streak_longest": max(longest, current), "streak_last_date": last_date}
    if last_day == today:
        current = max(current, 1)
    elif last_day is not None and last_day + timedelta(days=1) == today:
        current += 1
    else:
        current = 1

    return {
        "streak_current": current,
        "streak_longest": max(longest, current),
        "streak_last_date": today.isoformat(),
    }


def stage_name(stage: int) -> str:
    """Human label for a stage ordinal."""
    return STAGE_NAMES.get(stage, f"stage_{stage}")
