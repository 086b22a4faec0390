"""Retirement of Legendary pets into the Hall of Fame."""

from datetime import datetime

from .constants import DEFAULT_TRAIT, TERMINAL_STAGE
from .errors import IneligibleStage, NotFound
from .repository import PetRepository
from .time_utils import get_current_time, to_float, to_int, to_iso8601


def build_hall_of_fame_entry(pet: dict, retired_at: datetime) -> dict:
    """Snapshot the fields that outlive the pet."""
    return {
        "user_id": pet.get("user_id"),
        "pet_id": pet.get("pet_id"),
        "name": pet.get("name"),
        "stage": to_int(pet.get("stage"), 0),
        "trait": pet.get("trait") or DEFAULT_TRAIT,
        "difficulty": pet.get("difficulty"),
        "xp": to_float(pet.get("xp"), 0.0),
        "streak_longest": to_int(pet.get("streak_longest"), 0),
        "born_at": pet.get("born_at"),
        "retired_at": to_iso8601(retired_at),
    }


def retire_pet(repo: PetRepository, pet_id: str, now: datetime | None = None) -> dict:
    """
    Move a Legendary pet into the Hall of Fame.

    The history entry is written before the live pet is deleted, and both
    happen in one repository transaction.
    """
    now = now or get_current_time()

    with repo.transaction():
        pet = repo.get_pet_by_id(pet_id)
        if pet is None:
            raise NotFound(f"Pet {pet_id} not found")
        if to_int(pet.get("stage"), 0) < TERMINAL_STAGE:
            raise IneligibleStage("Only Legendary pets can be retired to the Hall of Fame")

        entry = repo.add_hall_of_fame_entry(build_hall_of_fame_entry(pet, now))
        repo.delete_pet(pet_id)

    print(f"Retired {pet.get('name')} to the Hall of Fame")
    return {"retired": True, "entry_id": entry["entry_id"]}


def list_hall_of_fame(repo: PetRepository, user_id: str) -> list[dict]:
    """A user's retired pets, most recent first."""
    return repo.list_hall_of_fame(user_id)
