#!/usr/bin/env python3
"""
Snapshot Inspection Script

Prints the latest persisted registration snapshot and optionally exports it
to CSV or saves the last error screenshot to disk.

Usage:
    python scripts/inspect_snapshot.py
    python scripts/inspect_snapshot.py --csv data/csvs/registrations.csv
    python scripts/inspect_snapshot.py --screenshot error-screenshot.png
"""

import argparse
import csv
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from config.database import BlobStorage, SnapshotStore, SCREENSHOT_NAME
from config.settings import Settings
from monitoring.exceptions import NotFoundError, StorageError
from monitoring.models import FIELDS


def export_snapshot_to_csv(snapshot, csv_path):
    """
    Write the snapshot registrations to a CSV file, one row per registration.

    Returns:
        int: Number of rows written
    """
    csv_path = Path(csv_path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    with open(csv_path, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(FIELDS)
        for registration in snapshot.registrations:
            writer.writerow([getattr(registration, name) for name in FIELDS])

    return len(snapshot.registrations)


def print_snapshot(snapshot):
    print(f"📅 Captured: {snapshot.timestamp}")
    print(f"📊 Registrations: {len(snapshot.registrations)}")
    print("=" * 50)
    for index, registration in enumerate(snapshot.registrations, 1):
        print(f"{index:>3}. {registration.polideportivo} | {registration.subcategoria} | {registration.horario}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Inspect the latest registration snapshot")
    parser.add_argument("--csv", help="Export registrations to this CSV file")
    parser.add_argument("--screenshot", help="Save the last error screenshot to this file")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    storage = BlobStorage(settings.database_url, settings.public_base_url)

    try:
        storage.init()
        try:
            snapshot = SnapshotStore(storage).load()
        except NotFoundError:
            print("⚠️  No snapshot stored yet. Run the monitor first.")
            snapshot = None

        if snapshot is not None:
            print_snapshot(snapshot)
            if args.csv:
                count = export_snapshot_to_csv(snapshot, args.csv)
                print(f"✅ Exported {count} rows to {args.csv}")

        if args.screenshot:
            try:
                blob = storage.get(SCREENSHOT_NAME)
            except NotFoundError:
                print("⚠️  No error screenshot stored")
            else:
                Path(args.screenshot).write_bytes(blob.content)
                print(f"✅ Screenshot saved to {args.screenshot}")

        return 0

    except StorageError as e:
        print(f"❌ Error reading storage: {e}")
        return 1
    finally:
        storage.dispose()


if __name__ == "__main__":
    sys.exit(main())
