"""Periodic sync: feed events + decay -> stats -> evolution, per due user."""

from datetime import date, datetime, timedelta, timezone

from .config import get_batch_size, get_stale_minutes
from .constants import DEFAULT_DIFFICULTY, EVENT_PUSH
from .event_scoring import combine_scores, empty_score, score_event
from .evolution import check_evolution
from .ledger import claim_unprocessed, prune_ledger
from .pet_rules import apply_stat_changes, calculate_decay, roll_streak
from .repository import ActivityFeed, PetRepository
from .time_utils import get_current_time, hours_between, parse_iso_datetime, to_iso8601
from .traits import accumulate, new_tally


def push_days(events: list[dict], now: datetime) -> list[date]:
    """UTC calendar days with at least one push, oldest first."""
    days = set()
    for event in events:
        if event.get("kind") != EVENT_PUSH:
            continue
        created_at = parse_iso_datetime(event.get("created_at")) or now
        days.add(created_at.astimezone(timezone.utc).date())
    return sorted(days)


def record_affinity(repo: PetRepository, user_id: str, affinity_delta: dict, now: datetime) -> dict | None:
    """Fold a batch's affinity into the user's tally unless it is locked."""
    if not any(value > 0 for value in affinity_delta.values()):
        return None

    tally = repo.get_trait_tally(user_id) or new_tally(user_id, now)
    if tally.get("is_locked"):
        return tally
    return repo.upsert_trait_tally(user_id, accumulate(tally, affinity_delta))


def sync_user(repo: PetRepository, feed: ActivityFeed, user: dict, now: datetime | None = None) -> dict:
    """
    Run one sync pass for a single user.

    Ledger claims, the tally write, and the stat write commit together; if
    any of them fails, none of the events count as processed. Evolution is
    evaluated afterwards against the persisted stats. The watermark is left
    to the caller.
    """
    now = now or get_current_time()
    user_id = user["user_id"]
    result = {
        "user_id": user_id,
        "status": "skipped",
        "events_scored": 0,
        "feed_error": None,
        "evolution": None,
    }

    if repo.get_pet(user_id) is None:
        return result

    watermark = parse_iso_datetime(user.get("last_sync"))
    events, feed_error = feed.fetch_events_since(
        user.get("github_username"),
        user.get("access_token"),
        watermark,
    )
    result["feed_error"] = feed_error

    with repo.transaction():
        pet = repo.get_pet(user_id)
        if pet is None:
            return result
        difficulty = pet.get("difficulty") or DEFAULT_DIFFICULTY

        claimed = claim_unprocessed(repo, events, user_id)
        total = empty_score()
        for event in claimed:
            total = combine_scores(total, score_event(event, difficulty))
        record_affinity(repo, user_id, total["affinity"], now)

        hours_elapsed = hours_between(watermark, now)
        decay = calculate_decay(hours_elapsed, difficulty)
        updates = apply_stat_changes(pet, total, decay)
        streak: dict = {}
        for day in push_days(claimed, now):
            streak = roll_streak({**pet, **streak}, day)
        updates.update(streak)
        prune_ledger(repo, user_id, watermark)
        updates["updated_at"] = to_iso8601(now)
        updated_pet = repo.update_stats(pet["pet_id"], updates)

    print(
        f"    Scored {len(claimed)} new events over {hours_elapsed:.2f}h "
        f"(decay {decay:.2f}): hunger={updated_pet['hunger']:.1f}, "
        f"happiness={updated_pet['happiness']:.1f}, health={updated_pet['health']:.1f}, "
        f"xp={updated_pet['xp']:.1f}"
    )

    result["status"] = "synced"
    result["events_scored"] = len(claimed)
    result["evolution"] = check_evolution(repo, updated_pet, now)
    return result


def sync_due_users(
    repo: PetRepository,
    feed: ActivityFeed,
    now: datetime | None = None,
    stale_minutes: int | None = None,
    batch_size: int | None = None,
) -> dict:
    """
    Sync every user whose watermark is older than the staleness window.

    Failures are isolated per user, and every selected user's watermark is
    advanced whether their pass succeeded or not.
    """
    now = now or get_current_time()
    if stale_minutes is None:
        stale_minutes = get_stale_minutes()
    if batch_size is None:
        batch_size = get_batch_size()
    stale_before = now - timedelta(minutes=stale_minutes)

    users = repo.list_due_users(stale_before, batch_size)
    summary = {
        "users_checked": len(users),
        "users_synced": 0,
        "users_skipped": 0,
        "users_failed": 0,
        "events_scored": 0,
        "evolutions": 0,
        "failures": [],
    }
    print(f"Syncing {len(users)} due users (stale before {stale_before.isoformat()})")

    for user in users:
        user_id = user["user_id"]
        label = user.get("github_username") or user_id
        print(f"  Checking {label}")
        try:
            result = sync_user(repo, feed, user, now)
        except Exception as e:
            print(f"  Sync failed for user {label}: {e}")
            summary["users_failed"] += 1
            summary["failures"].append({"user_id": user_id, "error": str(e)})
        else:
            if result["status"] == "synced":
                summary["users_synced"] += 1
                summary["events_scored"] += result["events_scored"]
                if result["evolution"]:
                    summary["evolutions"] += 1
            else:
                summary["users_skipped"] += 1
                print("    No pet adopted, skipping")

        try:
            repo.advance_watermark(user_id, now)
        except Exception as e:
            print(f"  Error advancing watermark for {label}: {e}")

    return summary
