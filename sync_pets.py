#!/usr/bin/env python3
"""
Petgotchi Sync

Run on a schedule: pulls GitHub activity for every user whose pet is due,
applies decay and event bonuses, evaluates evolution, and advances each
user's sync watermark.

Environment Variables:
    PETGOTCHI_STATE_FILE: JSON store path (default .petgotchi/state.json)
    GH_TOKEN: GitHub token used for users without their own credential
    PETGOTCHI_STALE_MINUTES: Minutes before a user is due again (default 30)
    PETGOTCHI_BATCH_SIZE: Maximum users per run (default 50)
    PETGOTCHI_FEED_TIMEOUT: GitHub request timeout in seconds (default 15)
    PETGOTCHI_LOCK_TIMEOUT: Seconds to wait for the store lock (default 30)
"""

import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from pet_sync.activity_feed import GithubActivityFeed
from pet_sync.config import get_state_file
from pet_sync.errors import PersistenceFailure
from pet_sync.output_utils import set_output
from pet_sync.store import JsonPetStore
from pet_sync.sync import sync_due_users
from pet_sync.time_utils import get_current_time


def main() -> int:
    """Main entry point."""
    print("=" * 50)
    print("Petgotchi Sync")
    print("=" * 50)

    now = get_current_time()
    state_file = get_state_file()
    print(f"\nStore: {state_file}")
    print(f"Run time: {now.isoformat()}\n")

    store = JsonPetStore(state_file)
    feed = GithubActivityFeed()

    try:
        summary = sync_due_users(store, feed, now=now)
    except PersistenceFailure as e:
        print(f"Error: could not read due users: {e}")
        return 1

    print("\nOutputs:")
    set_output("users_checked", str(summary["users_checked"]))
    set_output("users_synced", str(summary["users_synced"]))
    set_output("users_failed", str(summary["users_failed"]))
    set_output("events_scored", str(summary["events_scored"]))
    set_output("evolutions", str(summary["evolutions"]))

    print("\n" + "=" * 50)
    print("Sync complete!")
    print("=" * 50)

    return 0


if __name__ == "__main__":
    sys.exit(main())
