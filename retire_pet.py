#!/usr/bin/env python3
"""
Petgotchi Retirement

Moves a Legendary pet into its owner's Hall of Fame.

Usage:
    retire_pet.py <pet_id>

Environment Variables:
    PETGOTCHI_STATE_FILE: JSON store path (default .petgotchi/state.json)
    PETGOTCHI_LOCK_TIMEOUT: Seconds to wait for the store lock (default 30)
"""

import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from pet_sync.config import get_state_file
from pet_sync.errors import PetSyncError
from pet_sync.output_utils import set_output
from pet_sync.prestige import retire_pet
from pet_sync.store import JsonPetStore


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1 or not args[0].strip():
        print("Usage: retire_pet.py <pet_id>")
        return 2

    store = JsonPetStore(get_state_file())
    try:
        result = retire_pet(store, args[0].strip())
    except PetSyncError as e:
        print(f"Error: {e}")
        set_output("retired", "false")
        return 1

    set_output("retired", "true")
    set_output("entry_id", result["entry_id"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
