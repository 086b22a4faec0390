"""Map activity feed events to stat deltas and trait affinity."""

from .constants import AFFINITY_TRAITS, DEFAULT_DIFFICULTY, EVENT_SCORES, XP_MULTIPLIERS


def empty_score() -> dict:
    """Score with every delta at zero."""
    return {
        "hunger": 0.0,
        "happiness": 0.0,
        "xp": 0.0,
        "affinity": {affinity: 0.0 for affinity in AFFINITY_TRAITS},
    }


def score_event(event: dict, difficulty: str) -> dict:
    """
    Score a single normalized event.

    Unknown kinds score zero. XP is scaled by the difficulty XP multiplier.
    """
    score = empty_score()
    row = EVENT_SCORES.get(event.get("kind"))
    if row is None:
        return score

    xp_multiplier = XP_MULTIPLIERS.get(difficulty, XP_MULTIPLIERS[DEFAULT_DIFFICULTY])
    score["hunger"] = float(row["hunger"])
    score["happiness"] = float(row["happiness"])
    score["xp"] = row["xp"] * xp_multiplier
    for affinity in score["affinity"]:
        score["affinity"][affinity] = float(row.get(affinity, 0.0))
    return score


def combine_scores(total: dict, score: dict) -> dict:
    """Fold one event score into a running batch total."""
    combined = empty_score()
    for key in ("hunger", "happiness", "xp"):
        combined[key] = total.get(key, 0.0) + score.get(key, 0.0)

    for source in (total, score):
        for affinity, value in source.get("affinity", {}).items():
            combined["affinity"][affinity] = combined["affinity"].get(affinity, 0.0) + value
    return combined
