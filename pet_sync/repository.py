"""Collaborator contracts consumed by the sync engine."""

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Protocol


class PetRepository(Protocol):
    """Transactional record store for users, pets, tallies, and history."""

    def get_user(self, user_id: str) -> dict | None: ...

    def upsert_user(self, user: dict) -> dict: ...

    def list_due_users(self, stale_before: datetime, limit: int) -> list[dict]: ...

    def get_pet(self, user_id: str) -> dict | None: ...

    def get_pet_by_id(self, pet_id: str) -> dict | None: ...

    def create_pet(self, pet: dict) -> dict: ...

    def update_stats(self, pet_id: str, partial_stats: dict) -> dict: ...

    def delete_pet(self, pet_id: str) -> None: ...

    def get_trait_tally(self, user_id: str) -> dict | None: ...

    def upsert_trait_tally(self, user_id: str, partial: dict) -> dict: ...

    def reset_trait_tally(self, user_id: str, tally: dict) -> dict: ...

    def is_event_processed(self, event_id: str, user_id: str) -> bool: ...

    def mark_event_processed(self, event_id: str, user_id: str) -> None: ...

    def prune_processed_events(self, user_id: str, before: datetime) -> int: ...

    def add_hall_of_fame_entry(self, entry: dict) -> dict: ...

    def list_hall_of_fame(self, user_id: str) -> list[dict]: ...

    def add_notification(self, user_id: str, notification_type: str, payload: dict) -> dict: ...

    def list_notifications(self, user_id: str, unseen_only: bool = True) -> list[dict]: ...

    def mark_notifications_seen(self, user_id: str, notification_ids: list[str] | None = None) -> int: ...

    def advance_watermark(self, user_id: str, timestamp: datetime) -> None: ...

    def transaction(self) -> AbstractContextManager: ...


class ActivityFeed(Protocol):
    """Remote source of a user's coding events."""

    def fetch_events_since(
        self,
        username: str,
        credential: str | None,
        watermark: datetime | None,
    ) -> tuple[list[dict], str | None]:
        """Return (events, error). Unavailability yields ([], message)."""
        ...
