#!/usr/bin/env python
"""Watch attendance import progress in real-time.

Usage:
    python scripts/watch_import.py <import_id>
    python scripts/watch_import.py imp-1234567890ab
    python scripts/watch_import.py --latest
"""

import argparse
import sys
import time
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config import load_settings
from storage.progress_log import get_latest_import_id, get_progress


def clear_line():
    """Clear the current line in terminal."""
    sys.stdout.write('\r' + ' ' * 80 + '\r')
    sys.stdout.flush()


def format_progress_bar(current: int, total: int, width: int = 30) -> str:
    """Create a progress bar string."""
    if total == 0:
        return "[" + "-" * width + "]"

    filled = int(width * current / total)
    bar = "#" * filled + "." * (width - filled)
    pct = (current / total) * 100
    return f"[{bar}] {pct:.0f}%"


def watch_import(import_id: str, db_path: Path, poll_interval: float = 1.0):
    """Follow the progress log of an import run until it ends."""
    print("=" * 60)
    print(f"Monitoring: {import_id}")
    print("=" * 60)
    print()

    last_id = 0
    while True:
        try:
            entries = get_progress(import_id, db_path, since_id=last_id)
            for entry in entries:
                timestamp = entry["created_at"].split("T")[1][:8] if "T" in entry["created_at"] else entry["created_at"]
                clear_line()
                print(f"  [{timestamp}] {entry['message']}")
                last_id = entry["id"]

            if entries:
                latest = entries[-1]
                bar = format_progress_bar(latest["current"], latest["total"])
                sys.stdout.write(f"  Progress: {bar} {latest['current']}/{latest['total']} employees")
                sys.stdout.flush()

                if latest["status"] in ("completed", "error"):
                    print()
                    print()
                    print(f"Import {latest['status']}: {latest['message']}")
                    print(f"   Records imported: {latest['imported']}, employees failed: {latest['failed']}")
                    break

            time.sleep(poll_interval)

        except KeyboardInterrupt:
            print()
            print("\nMonitoring stopped.")
            break


def main():
    parser = argparse.ArgumentParser(description="Watch attendance import progress in real-time")
    parser.add_argument("import_id", nargs="?", help="Import ID to monitor (e.g., imp-1234567890ab)")
    parser.add_argument("--latest", action="store_true", help="Monitor the most recent import")
    parser.add_argument("--interval", type=float, default=1.0, help="Poll interval in seconds (default: 1.0)")

    args = parser.parse_args()
    db_path = load_settings().db_path

    if not db_path.exists():
        print(f"Error: Database not found at {db_path}")
        return

    import_id = args.import_id
    if args.latest or not import_id:
        import_id = get_latest_import_id(db_path)
        if not import_id:
            print("No imports found in database")
            return
        print(f"Monitoring latest import: {import_id}")

    watch_import(import_id, db_path, args.interval)


if __name__ == "__main__":
    main()
