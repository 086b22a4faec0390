"""Evolution stages and trait locking."""

from datetime import datetime

from .constants import EVOLUTION_THRESHOLDS, TERMINAL_STAGE, TRAIT_LOCK_STAGE
from .pet_rules import stage_name
from .repository import PetRepository
from .time_utils import days_between, get_current_time, parse_iso_datetime, to_float, to_int, to_iso8601
from .traits import decide_trait, lock_tally, new_tally


def next_stage_ready(pet: dict, now: datetime) -> bool:
    """
    True when both the age and XP requirements for the next stage are met.

    The terminal stage never advances.
    """
    stage = to_int(pet.get("stage"), 0)
    threshold = EVOLUTION_THRESHOLDS.get(stage)
    if threshold is None or stage >= TERMINAL_STAGE:
        return False

    born_at = parse_iso_datetime(pet.get("born_at"))
    if born_at is None:
        return False

    age_days = days_between(born_at, now)
    xp = to_float(pet.get("xp"), 0.0)
    return age_days >= threshold["days"] and xp >= threshold["xp"]


def check_evolution(repo: PetRepository, pet: dict, now: datetime | None = None) -> dict | None:
    """
    Advance the pet by at most one stage and fire that stage's side effects.

    Returns a description of the transition, or None when nothing changed.
    """
    now = now or get_current_time()
    if not next_stage_ready(pet, now):
        return None

    previous_stage = to_int(pet.get("stage"), 0)
    new_stage = previous_stage + 1
    updates = {
        "stage": new_stage,
        "updated_at": to_iso8601(now),
    }

    if new_stage == 1:
        updates["hatched_at"] = to_iso8601(now)

    with repo.transaction():
        if new_stage == TRAIT_LOCK_STAGE:
            tally = repo.get_trait_tally(pet["user_id"])
            if not pet.get("trait"):
                updates["trait"] = decide_trait(tally)
                updates["trait_locked_at"] = to_iso8601(now)
            if tally is None:
                tally = new_tally(pet["user_id"], now)
            if not tally.get("is_locked"):
                repo.upsert_trait_tally(pet["user_id"], lock_tally(tally))

        if new_stage == TERMINAL_STAGE:
            updates["legendary_achieved"] = True
            updates["legendary_achieved_at"] = to_iso8601(now)

        updated_pet = repo.update_stats(pet["pet_id"], updates)
        repo.add_notification(
            pet["user_id"],
            "evolved",
            {
                "pet_id": pet["pet_id"],
                "from_stage": previous_stage,
                "to_stage": new_stage,
                "stage_name": stage_name(new_stage),
                "trait": updated_pet.get("trait"),
            },
        )

    print(f"    Evolved: {stage_name(previous_stage)} -> {stage_name(new_stage)}")
    return {
        "pet_id": pet["pet_id"],
        "from_stage": previous_stage,
        "to_stage": new_stage,
        "trait": updated_pet.get("trait"),
        "pet": updated_pet,
    }
