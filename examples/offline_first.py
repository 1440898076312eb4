#!/usr/bin/env python3
"""Offline-first example for Feeding Sync.

This example demonstrates:
1. Building a FeedingTracker against an in-memory remote store
2. Logging and deleting feedings while offline (queued + cached)
3. Reconnecting, which drains the queue and refreshes the cache
4. Reading daily totals

Run this example:
    python examples/offline_first.py
"""

import tempfile
from pathlib import Path

from feeding_sync import ClientConfig, FeedingTracker, InMemoryRemoteStore
from feeding_sync.events import CONNECTIVITY_CHANGED, SYNC_FINISHED
from feeding_sync.overview import daily_totals


def main():
    with tempfile.TemporaryDirectory() as temp_dir:
        remote = InMemoryRemoteStore()
        tracker = FeedingTracker(
            ClientConfig(data_dir=Path(temp_dir)),
            remote=remote,
            initial_online=False,
        )

        tracker.events.subscribe(
            lambda name, payload: print(f"    [event] {name}: {payload}"),
            CONNECTIVITY_CHANGED,
        )
        tracker.events.subscribe(
            lambda name, payload: print(f"    [event] {name}: {payload['created']} created, "
                                        f"{payload['deleted']} deleted"),
            SYNC_FINISHED,
        )

        print("=" * 60)
        print("Feeding Sync - Offline-First Example")
        print("=" * 60)

        # ---------------------------------------------------------------------
        # Step 1: Log feedings while offline
        # ---------------------------------------------------------------------
        print("\n[1] Offline: logging 60ml, 120ml and 30ml...")
        first = tracker.service.create_feeding(60)
        tracker.service.create_feeding(120)
        mistake = tracker.service.create_feeding(30)

        print(f"    Pending changes: {tracker.service.pending_count()}")
        print(f"    Remote rows: {len(remote.ids())}")

        # ---------------------------------------------------------------------
        # Step 2: Delete one of them, still offline
        # ---------------------------------------------------------------------
        print("\n[2] Offline: deleting the 30ml entry...")
        tracker.service.delete_feeding(mistake.id)
        print(f"    Pending changes: {tracker.service.pending_count()}  (create+delete collapsed)")
        print(f"    Cached feedings: {len(tracker.cache.get_all())}")

        # ---------------------------------------------------------------------
        # Step 3: Reconnect
        # ---------------------------------------------------------------------
        print("\n[3] Back online...")
        tracker.connectivity.set_online(True)
        print(f"    Pending changes: {tracker.service.pending_count()}")
        print(f"    Remote rows: {len(remote.ids())}")
        print(f"    First feeding synced: {first.id in remote.ids()}")

        # ---------------------------------------------------------------------
        # Step 4: Summaries
        # ---------------------------------------------------------------------
        print("\n[4] Daily totals...")
        for day in daily_totals(tracker.service.list_feedings(), tracker.config.timezone):
            print(f"    {day.date}: {day.total}ml in {day.count} feedings")

        tracker.stop()


if __name__ == "__main__":
    main()
