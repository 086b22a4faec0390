"""Processed-event ledger: which feed events were already scored per user."""

from datetime import datetime, timedelta

from .constants import PROCESSED_EVENT_RETENTION_HOURS
from .repository import PetRepository


def is_processed(repo: PetRepository, event_id: str, user_id: str) -> bool:
    """True when this (event, user) pair has already been scored."""
    if not event_id:
        return False
    return repo.is_event_processed(str(event_id), user_id)


def mark_processed(repo: PetRepository, event_id: str, user_id: str) -> None:
    """Record the pair; marking twice is a no-op."""
    if not event_id:
        return
    repo.mark_event_processed(str(event_id), user_id)


def claim_unprocessed(repo: PetRepository, events: list[dict], user_id: str) -> list[dict]:
    """
    Check-then-mark each event and return the ones that were eligible.

    Events without an id are never claimed. Duplicates inside one batch are
    claimed once.
    """
    claimed = []
    for event in events:
        event_id = event.get("id")
        if not event_id or is_processed(repo, event_id, user_id):
            continue
        mark_processed(repo, event_id, user_id)
        claimed.append(event)
    return claimed


def prune_ledger(repo: PetRepository, user_id: str, watermark: datetime | None) -> int:
    """
    Forget entries the feed can no longer return.

    The feed never reaches further back than its lookback before the
    watermark, so anything marked well before that is dead weight.
    """
    if watermark is None:
        return 0
    return repo.prune_processed_events(user_id, watermark - timedelta(hours=PROCESSED_EVENT_RETENTION_HOURS))
