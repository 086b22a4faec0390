"""JSON-document implementation of the pet repository."""

import copy
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from filelock import FileLock, Timeout

from .config import get_lock_timeout
from .errors import NotFound, PersistenceFailure
from .io_utils import load_json_file, write_json_file
from .time_utils import get_current_time, parse_iso_datetime, to_iso8601

COLLECTIONS = {
    "users": dict,
    "pets": dict,
    "trait_tallies": dict,
    "processed_events": dict,
    "hall_of_fame": list,
    "notifications": list,
}


def _serialize(record: dict) -> dict:
    """Copy a record with datetimes rendered as ISO strings."""
    return {
        key: to_iso8601(value) if isinstance(value, datetime) else copy.deepcopy(value)
        for key, value in record.items()
    }


def empty_document() -> dict:
    return {name: factory() for name, factory in COLLECTIONS.items()}


class JsonPetStore:
    """
    Keeps every collection in a single JSON document.

    Each mutation is a load-modify-write of the whole document. Calls made
    inside ``transaction()`` share one in-memory copy that is written once
    when the outermost block exits cleanly, and dropped if it raises.

    The outermost transaction holds a lock file next to the document from
    load to write, so separate processes (the scheduled sync and a manual
    retirement) never overwrite each other's commits.
    """

    def __init__(self, path: Path | str, lock_timeout: float | None = None) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_suffix(".lock")
        self.lock_timeout = lock_timeout if lock_timeout is not None else get_lock_timeout()
        self._lock = threading.RLock()
        self._active: dict | None = None

    @contextmanager
    def _file_lock(self):
        lock = FileLock(str(self.lock_path), timeout=self.lock_timeout)
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            lock.acquire()
        except Timeout as e:
            raise PersistenceFailure(f"Timed out waiting for lock on {self.path}") from e
        except OSError as e:
            raise PersistenceFailure(f"Could not lock {self.path}: {e}") from e
        try:
            yield
        finally:
            lock.release()

    def _load(self) -> dict:
        data = load_json_file(self.path) or {}
        document = empty_document()
        for name, factory in COLLECTIONS.items():
            value = data.get(name)
            if isinstance(value, factory):
                document[name] = value
        return document

    @contextmanager
    def transaction(self):
        with self._lock:
            if self._active is not None:
                yield self._active
                return

            with self._file_lock():
                document = self._load()
                self._active = document
                try:
                    yield document
                    write_json_file(self.path, document)
                finally:
                    self._active = None

    def _read(self) -> dict:
        with self._lock:
            if self._active is not None:
                return self._active
            return self._load()

    # Users

    def get_user(self, user_id: str) -> dict | None:
        user = self._read()["users"].get(user_id)
        return copy.deepcopy(user) if user else None

    def upsert_user(self, user: dict) -> dict:
        with self.transaction() as doc:
            users = doc["users"]
            user_id = user.get("user_id")
            if not user_id:
                username = user.get("github_username")
                user_id = next(
                    (uid for uid, existing in users.items() if username and existing.get("github_username") == username),
                    None,
                ) or str(uuid.uuid4())

            existing = users.get(user_id, {})
            record = {
                "user_id": user_id,
                "github_username": existing.get("github_username"),
                "access_token": existing.get("access_token"),
                "created_at": existing.get("created_at") or to_iso8601(get_current_time()),
                "last_sync": existing.get("last_sync"),
            }
            record.update(_serialize(user))
            record["user_id"] = user_id
            users[user_id] = record
            return copy.deepcopy(record)

    def list_due_users(self, stale_before: datetime, limit: int) -> list[dict]:
        due = []
        for user in self._read()["users"].values():
            last_sync = parse_iso_datetime(user.get("last_sync"))
            if last_sync is None or last_sync < stale_before:
                due.append((last_sync, user))

        # Never-synced users first, then oldest watermark.
        due.sort(key=lambda item: (item[0] is not None, item[0] or stale_before))
        return [copy.deepcopy(user) for _, user in due[:max(0, limit)]]

    def advance_watermark(self, user_id: str, timestamp: datetime) -> None:
        with self.transaction() as doc:
            user = doc["users"].get(user_id)
            if user is None:
                raise NotFound(f"User {user_id} not found")
            user["last_sync"] = to_iso8601(timestamp)

    # Pets

    def get_pet(self, user_id: str) -> dict | None:
        for pet in self._read()["pets"].values():
            if pet.get("user_id") == user_id:
                return copy.deepcopy(pet)
        return None

    def get_pet_by_id(self, pet_id: str) -> dict | None:
        pet = self._read()["pets"].get(pet_id)
        return copy.deepcopy(pet) if pet else None

    def create_pet(self, pet: dict) -> dict:
        with self.transaction() as doc:
            user_id = pet.get("user_id")
            if any(existing.get("user_id") == user_id for existing in doc["pets"].values()):
                raise PersistenceFailure(f"User {user_id} already has an active pet")

            record = _serialize(pet)
            record["pet_id"] = record.get("pet_id") or str(uuid.uuid4())
            if record["pet_id"] in doc["pets"]:
                raise PersistenceFailure(f"Pet {record['pet_id']} already exists")
            doc["pets"][record["pet_id"]] = record
            return copy.deepcopy(record)

    def update_stats(self, pet_id: str, partial_stats: dict) -> dict:
        with self.transaction() as doc:
            pet = doc["pets"].get(pet_id)
            if pet is None:
                raise NotFound(f"Pet {pet_id} not found")
            pet.update(_serialize(partial_stats))
            if "updated_at" not in partial_stats:
                pet["updated_at"] = to_iso8601(get_current_time())
            return copy.deepcopy(pet)

    def delete_pet(self, pet_id: str) -> None:
        with self.transaction() as doc:
            if doc["pets"].pop(pet_id, None) is None:
                raise NotFound(f"Pet {pet_id} not found")

    # Trait tallies

    def get_trait_tally(self, user_id: str) -> dict | None:
        tally = self._read()["trait_tallies"].get(user_id)
        return copy.deepcopy(tally) if tally else None

    def upsert_trait_tally(self, user_id: str, partial: dict) -> dict:
        with self.transaction() as doc:
            tallies = doc["trait_tallies"]
            existing = tallies.get(user_id)
            if existing is not None and existing.get("is_locked"):
                return copy.deepcopy(existing)

            record = existing or {"user_id": user_id, "scores": {}, "tracking_until": None, "is_locked": False}
            record.update(_serialize(partial))
            record["user_id"] = user_id
            tallies[user_id] = record
            return copy.deepcopy(record)

    def reset_trait_tally(self, user_id: str, tally: dict) -> dict:
        """Replace the tally outright, locked or not. Used when a new pet starts."""
        with self.transaction() as doc:
            record = _serialize(tally)
            record["user_id"] = user_id
            doc["trait_tallies"][user_id] = record
            return copy.deepcopy(record)

    # Processed events

    def is_event_processed(self, event_id: str, user_id: str) -> bool:
        return event_id in self._read()["processed_events"].get(user_id, {})

    def mark_event_processed(self, event_id: str, user_id: str) -> None:
        with self.transaction() as doc:
            ledger = doc["processed_events"].setdefault(user_id, {})
            ledger.setdefault(event_id, to_iso8601(get_current_time()))

    def prune_processed_events(self, user_id: str, before: datetime) -> int:
        """Drop ledger entries marked before ``before``; returns how many went."""
        with self.transaction() as doc:
            ledger = doc["processed_events"].get(user_id, {})
            stale = [
                event_id
                for event_id, marked_at in ledger.items()
                if (parse_iso_datetime(marked_at) or before) < before
            ]
            for event_id in stale:
                del ledger[event_id]
            return len(stale)

    # History and notifications

    def add_hall_of_fame_entry(self, entry: dict) -> dict:
        with self.transaction() as doc:
            record = _serialize(entry)
            record["entry_id"] = record.get("entry_id") or str(uuid.uuid4())
            doc["hall_of_fame"].append(record)
            return copy.deepcopy(record)

    def list_hall_of_fame(self, user_id: str) -> list[dict]:
        entries = [entry for entry in self._read()["hall_of_fame"] if entry.get("user_id") == user_id]
        entries.sort(key=lambda entry: entry.get("retired_at") or "", reverse=True)
        return copy.deepcopy(entries)

    def add_notification(self, user_id: str, notification_type: str, payload: dict) -> dict:
        with self.transaction() as doc:
            record = {
                "notification_id": str(uuid.uuid4()),
                "user_id": user_id,
                "type": notification_type,
                "payload": _serialize(payload),
                "created_at": to_iso8601(get_current_time()),
                "seen": False,
            }
            doc["notifications"].append(record)
            return copy.deepcopy(record)

    def list_notifications(self, user_id: str, unseen_only: bool = True) -> list[dict]:
        notifications = [
            notification
            for notification in self._read()["notifications"]
            if notification.get("user_id") == user_id and not (unseen_only and notification.get("seen"))
        ]
        notifications.sort(key=lambda notification: notification.get("created_at") or "", reverse=True)
        return copy.deepcopy(notifications)

    def mark_notifications_seen(self, user_id: str, notification_ids: list[str] | None = None) -> int:
        """Flag the user's notifications (all, or just the given ids) as seen."""
        wanted = set(notification_ids) if notification_ids is not None else None
        marked = 0
        with self.transaction() as doc:
            for notification in doc["notifications"]:
                if notification.get("user_id") != user_id or notification.get("seen"):
                    continue
                if wanted is not None and notification.get("notification_id") not in wanted:
                    continue
                notification["seen"] = True
                marked += 1
        return marked
