from __future__ import annotations

import threading

from conftest import TODAY


def test_concurrent_views_are_not_lost(manager) -> None:
    workers = 24
    barrier = threading.Barrier(workers)
    errors = []

    def worker() -> None:
        barrier.wait()
        try:
            manager.record_stats_event(TODAY, "view")
        except Exception as exc:  # pragma: no cover - surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert manager.get_stats(TODAY).views == workers


def test_concurrent_mixed_events(manager) -> None:
    kinds = ["view", "check", "solve"] * 8
    threads = [threading.Thread(target=manager.record_stats_event, args=(TODAY, kind)) for kind in kinds]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    stats = manager.get_stats(TODAY)
    assert (stats.views, stats.checks, stats.solves) == (8, 8, 8)
