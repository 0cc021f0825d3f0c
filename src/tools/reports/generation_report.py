"""Aggregation helpers for generation event logs."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping

__all__ = ["aggregate"]


def _load_events(paths: Iterable[Path]) -> Iterable[Mapping[str, Any]]:
    for path in paths:
        for line in path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            yield json.loads(line)


def aggregate(paths: Iterable[Path], *, top: int = 5) -> Dict[str, Any]:
    flows: Counter = Counter()
    kinds: Counter = Counter()
    samples = 0
    clue_total = 0
    trials_total = 0
    elapsed_total = 0
    missed_target = 0
    for event in _load_events(paths):
        if event.get("event") != "generation":
            continue
        samples += 1
        flows[str(event.get("flow", "unknown"))] += 1
        for kind in event.get("variants") or []:
            kinds[str(kind)] += 1
        clue_count = int(event.get("clue_count", 0))
        clue_total += clue_count
        trials_total += int(event.get("trials", 0))
        elapsed_total += int(event.get("elapsed_ms", 0))
        if clue_count > int(event.get("clue_target", clue_count)):
            missed_target += 1

    def _mean(total: int) -> float:
        return round(total / samples, 2) if samples else 0.0

    return {
        "total_events": samples,
        "flows": dict(flows),
        "top_variants": kinds.most_common(top),
        "mean_clue_count": _mean(clue_total),
        "mean_trials": _mean(trials_total),
        "mean_elapsed_ms": _mean(elapsed_total),
        "above_clue_target": missed_target,
    }
