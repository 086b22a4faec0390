import json
import sys
import tempfile
import threading
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch


SCRIPT_DIR = Path(__file__).resolve().parents[1]
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from pet_sync import ledger, prestige
from pet_sync.errors import NotFound, PersistenceFailure
from pet_sync.store import JsonPetStore


FIXED_NOW = datetime(2026, 2, 13, 12, 0, tzinfo=timezone.utc)


class JsonPetStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tempdir = tempfile.TemporaryDirectory()
        self.state_file = Path(self.tempdir.name) / "nested" / "state.json"
        self.store = JsonPetStore(self.state_file)

    def tearDown(self) -> None:
        self.tempdir.cleanup()

    def test_missing_file_reads_as_empty(self) -> None:
        self.assertIsNone(self.store.get_user("u1"))
        self.assertIsNone(self.store.get_pet("u1"))
        self.assertEqual(self.store.list_due_users(FIXED_NOW, 10), [])
        self.assertFalse(self.state_file.exists())

    def test_upsert_user_keeps_watermark_and_matches_username(self) -> None:
        created = self.store.upsert_user({"github_username": "octo", "access_token": "t1"})
        self.store.advance_watermark(created["user_id"], FIXED_NOW)

        updated = self.store.upsert_user({"github_username": "octo", "access_token": "t2"})

        self.assertEqual(updated["user_id"], created["user_id"])
        self.assertEqual(updated["access_token"], "t2")
        self.assertEqual(updated["last_sync"], "2026-02-13T12:00:00+00:00")
        with open(self.state_file) as f:
            self.assertEqual(len(json.load(f)["users"]), 1)

    def test_create_pet_enforces_one_pet_per_user(self) -> None:
        pet = self.store.create_pet({"user_id": "u1", "name": "Byte", "born_at": FIXED_NOW})
        self.assertEqual(pet["born_at"], "2026-02-13T12:00:00+00:00")
        self.assertEqual(self.store.get_pet("u1")["pet_id"], pet["pet_id"])

        with self.assertRaises(PersistenceFailure):
            self.store.create_pet({"user_id": "u1", "name": "Second"})

    def test_update_and_delete_missing_pet_raise_not_found(self) -> None:
        with self.assertRaises(NotFound):
            self.store.update_stats("missing", {"hunger": 10})
        with self.assertRaises(NotFound):
            self.store.delete_pet("missing")
        with self.assertRaises(NotFound):
            self.store.advance_watermark("missing", FIXED_NOW)

    def test_returned_records_are_copies(self) -> None:
        pet = self.store.create_pet({"user_id": "u1", "name": "Byte"})
        pet["name"] = "Mutated"
        self.assertEqual(self.store.get_pet_by_id(pet["pet_id"])["name"], "Byte")

    def test_transaction_rolls_back_everything_on_error(self) -> None:
        pet = self.store.create_pet({"user_id": "u1", "name": "Byte", "hunger": 50})

        with self.assertRaises(RuntimeError):
            with self.store.transaction():
                self.store.update_stats(pet["pet_id"], {"hunger": 99})
                self.store.mark_event_processed("e1", "u1")
                self.assertEqual(self.store.get_pet("u1")["hunger"], 99)
                raise RuntimeError("boom")

        self.assertEqual(self.store.get_pet("u1")["hunger"], 50)
        self.assertFalse(self.store.is_event_processed("e1", "u1"))

    def test_nested_transactions_commit_once(self) -> None:
        pet = self.store.create_pet({"user_id": "u1", "name": "Byte", "hunger": 50})
        with self.store.transaction():
            with self.store.transaction():
                self.store.update_stats(pet["pet_id"], {"hunger": 70})
            self.store.mark_event_processed("e1", "u1")

        self.assertEqual(self.store.get_pet("u1")["hunger"], 70)
        self.assertTrue(self.store.is_event_processed("e1", "u1"))

    def test_list_due_users_orders_by_watermark_and_limits(self) -> None:
        for user_id, minutes_ago in (("fresh", 5), ("old", 120), ("older", 600)):
            self.store.upsert_user({"user_id": user_id})
            self.store.advance_watermark(user_id, FIXED_NOW - timedelta(minutes=minutes_ago))
        self.store.upsert_user({"user_id": "never"})

        stale_before = FIXED_NOW - timedelta(minutes=30)
        due = [user["user_id"] for user in self.store.list_due_users(stale_before, 10)]
        self.assertEqual(due, ["never", "older", "old"])

        limited = [user["user_id"] for user in self.store.list_due_users(stale_before, 2)]
        self.assertEqual(limited, ["never", "older"])

    def test_locked_tally_rejects_upserts_until_reset(self) -> None:
        self.store.upsert_trait_tally("u1", {"scores": {"solo": 2.0, "social": 0.0}})
        self.store.upsert_trait_tally("u1", {"is_locked": True})

        unchanged = self.store.upsert_trait_tally("u1", {"scores": {"solo": 0.0, "social": 9.0}})
        self.assertEqual(unchanged["scores"], {"solo": 2.0, "social": 0.0})

        reset = self.store.reset_trait_tally("u1", {"scores": {"solo": 0.0, "social": 0.0}, "is_locked": False})
        self.assertFalse(reset["is_locked"])
        self.assertEqual(self.store.get_trait_tally("u1")["scores"]["solo"], 0.0)

    def test_ledger_claims_each_event_once(self) -> None:
        events = [{"id": "e1"}, {"id": "e2"}, {"id": "e1"}, {"kind": "push"}]

        first = ledger.claim_unprocessed(self.store, events, "u1")
        second = ledger.claim_unprocessed(self.store, events, "u1")
        other_user = ledger.claim_unprocessed(self.store, events, "u2")

        self.assertEqual([event["id"] for event in first], ["e1", "e2"])
        self.assertEqual(second, [])
        self.assertEqual(len(other_user), 2)
        self.assertTrue(ledger.is_processed(self.store, "e2", "u1"))
        self.assertFalse(ledger.is_processed(self.store, "", "u1"))

    def test_hall_of_fame_and_notifications_newest_first(self) -> None:
        self.store.add_hall_of_fame_entry({"user_id": "u1", "name": "A", "retired_at": "2026-01-01T00:00:00+00:00"})
        self.store.add_hall_of_fame_entry({"user_id": "u1", "name": "B", "retired_at": "2026-02-01T00:00:00+00:00"})
        self.store.add_hall_of_fame_entry({"user_id": "u2", "name": "C", "retired_at": "2026-03-01T00:00:00+00:00"})

        names = [entry["name"] for entry in self.store.list_hall_of_fame("u1")]
        self.assertEqual(names, ["B", "A"])

        note = self.store.add_notification("u1", "evolved", {"to_stage": 1})
        self.assertFalse(note["seen"])
        self.assertEqual(len(self.store.list_notifications("u1")), 1)
        self.assertEqual(self.store.list_notifications("u2"), [])

    def test_mark_notifications_seen(self) -> None:
        first = self.store.add_notification("u1", "evolved", {"to_stage": 1})
        self.store.add_notification("u1", "evolved", {"to_stage": 2})
        self.store.add_notification("u2", "evolved", {"to_stage": 1})

        self.assertEqual(self.store.mark_notifications_seen("u1", [first["notification_id"]]), 1)
        unseen = self.store.list_notifications("u1")
        self.assertEqual([note["payload"]["to_stage"] for note in unseen], [2])

        self.assertEqual(self.store.mark_notifications_seen("u1"), 1)
        self.assertEqual(self.store.list_notifications("u1"), [])
        self.assertEqual(len(self.store.list_notifications("u1", unseen_only=False)), 2)
        self.assertEqual(len(self.store.list_notifications("u2")), 1)

    def test_prune_processed_events_drops_old_entries(self) -> None:
        with self.store.transaction() as doc:
            doc["processed_events"]["u1"] = {
                "old": "2026-01-01T00:00:00+00:00",
                "recent": "2026-02-13T11:00:00+00:00",
            }
            doc["processed_events"]["u2"] = {"old": "2026-01-01T00:00:00+00:00"}

        self.assertEqual(self.store.prune_processed_events("u1", FIXED_NOW - timedelta(days=2)), 1)
        self.assertFalse(self.store.is_event_processed("old", "u1"))
        self.assertTrue(self.store.is_event_processed("recent", "u1"))
        self.assertTrue(self.store.is_event_processed("old", "u2"))

        self.assertEqual(ledger.prune_ledger(self.store, "u1", None), 0)
        self.assertEqual(ledger.prune_ledger(self.store, "u2", FIXED_NOW), 1)

    def test_separate_instances_on_one_file_do_not_lose_commits(self) -> None:
        legendary = self.store.create_pet({"user_id": "ua", "name": "Ace", "stage": 5})
        other_pet = self.store.create_pet({"user_id": "ub", "name": "Bit", "hunger": 50})
        second_store = JsonPetStore(self.state_file)
        results: dict = {}

        def retire() -> None:
            results["retire"] = prestige.retire_pet(second_store, legendary["pet_id"], now=FIXED_NOW)

        with patch("builtins.print"):
            with self.store.transaction():
                self.store.update_stats(other_pet["pet_id"], {"hunger": 80})
                worker = threading.Thread(target=retire)
                worker.start()
                worker.join(timeout=0.3)
                # Blocked on the file lock until this transaction commits.
                self.assertTrue(worker.is_alive())
            worker.join(timeout=10)

        self.assertFalse(worker.is_alive())
        self.assertTrue(results["retire"]["retired"])
        self.assertIsNone(self.store.get_pet_by_id(legendary["pet_id"]))
        self.assertEqual(self.store.get_pet("ub")["hunger"], 80)
        self.assertEqual(len(self.store.list_hall_of_fame("ua")), 1)

    def test_lock_timeout_raises_persistence_failure(self) -> None:
        pet = self.store.create_pet({"user_id": "u1", "name": "Byte", "hunger": 50})
        impatient = JsonPetStore(self.state_file, lock_timeout=0.1)

        with self.store.transaction():
            with self.assertRaises(PersistenceFailure):
                impatient.update_stats(pet["pet_id"], {"hunger": 10})

        self.assertEqual(impatient.update_stats(pet["pet_id"], {"hunger": 10})["hunger"], 10)

    def test_corrupt_file_raises_persistence_failure(self) -> None:
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        self.state_file.write_text("{not json", encoding="utf-8")

        with self.assertRaises(PersistenceFailure):
            self.store.get_pet("u1")

        self.state_file.write_text("[1, 2]", encoding="utf-8")
        with self.assertRaises(PersistenceFailure):
            self.store.list_due_users(FIXED_NOW, 5)


if __name__ == "__main__":
    unittest.main()
