"""Creating a user's pet."""

from datetime import datetime

from .constants import DEFAULT_DIFFICULTY, DEFAULT_PET_STATS, DIFFICULTIES
from .errors import NotFound
from .repository import PetRepository
from .time_utils import get_current_time, to_iso8601
from .traits import new_tally


def build_new_pet(user_id: str, name: str, difficulty: str, now: datetime) -> dict:
    """Initial record for a freshly adopted egg."""
    timestamp = to_iso8601(now)
    return {
        "user_id": user_id,
        "name": name,
        "stage": 0,
        "trait": None,
        **DEFAULT_PET_STATS,
        "xp": 0.0,
        "streak_current": 0,
        "streak_longest": 0,
        "streak_last_date": None,
        "legendary_achieved": False,
        "legendary_achieved_at": None,
        "difficulty": difficulty,
        "born_at": timestamp,
        "hatched_at": None,
        "trait_locked_at": None,
        "created_at": timestamp,
        "updated_at": timestamp,
    }


def adopt_pet(
    repo: PetRepository,
    user_id: str,
    name: str,
    difficulty: str = DEFAULT_DIFFICULTY,
    now: datetime | None = None,
) -> dict:
    """
    Create the user's pet and start a fresh trait tally.

    Difficulty is fixed here for the life of the pet. A tally locked by a
    previously retired pet is replaced.
    """
    now = now or get_current_time()
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty}")
    name = (name or "").strip()
    if not name:
        raise ValueError("Pet name must not be empty")

    with repo.transaction():
        if repo.get_user(user_id) is None:
            raise NotFound(f"User {user_id} not found")
        pet = repo.create_pet(build_new_pet(user_id, name, difficulty, now))
        repo.reset_trait_tally(user_id, new_tally(user_id, now))

    print(f"Adopted {name} ({difficulty}) for user {user_id}")
    return pet
