from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

import pytest

import project_config
from contracts.grid import values_to_text
from contracts.payload import PuzzlePayload
from lifecycle import PuzzleManager, PuzzleStore
from orchestrator import log as event_log

SOLUTION_TEXT = (
    "123456789"
    "456789123"
    "789123456"
    "214365897"
    "365897214"
    "897214365"
    "531642978"
    "642978531"
    "978531642"
)
SOLUTION = [int(ch) for ch in SOLUTION_TEXT]
TODAY = "2024-01-01"


class FakeEngine:
    """Deterministic engine stub: fixed solution, pluggable uniqueness answer."""

    def __init__(self, unique: Optional[Callable[[str], bool]] = None, solution: Sequence[int] = SOLUTION) -> None:
        self.unique = unique or (lambda text: True)
        self.solution = list(solution)
        self.built: List[str] = []
        self.checks = 0
        self.solution_requests: List[list] = []

    def build_solver_with_givens(self, puzzle_text, variants):
        self.built.append(puzzle_text)
        return puzzle_text

    def check_unique_solution(self, handle, rng):
        self.checks += 1
        rng.random()
        return self.unique(handle)

    def full_solution_for(self, variants, rng):
        self.solution_requests.append(list(variants))
        return list(self.solution)

    def raw_constraint_list(self, variants):
        return []


class FakeRenderer:
    render_version = 7

    def __init__(self) -> None:
        self.calls = 0

    def render(self, puzzle_text, constraints, options=None):
        self.calls += 1
        return f"<svg data-clues='{sum(ch != '.' for ch in puzzle_text)}'/>"


class FixedClock:
    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


def make_payload(blanks: Sequence[int] = (0, 10, 20), constraints=(), seed: int = 42) -> PuzzlePayload:
    values = list(SOLUTION)
    for idx in blanks:
        values[idx] = 0
    puzzle = values_to_text(values)
    return PuzzlePayload(
        puzzle=puzzle,
        solution=tuple(SOLUTION),
        constraints=tuple(constraints),
        seed=seed,
        clue_count=81 - len(blanks),
    )


@pytest.fixture(autouse=True)
def _isolated_events(tmp_path):
    event_log.configure(tmp_path / "events", enabled=False)
    yield
    event_log.configure(tmp_path / "events", enabled=False)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 1, 1, 12, 30, 15, 123456, tzinfo=timezone.utc))


@pytest.fixture
def store(tmp_path) -> PuzzleStore:
    store = PuzzleStore(f"sqlite:///{tmp_path / 'puzzles.db'}", busy_timeout_s=30)
    yield store
    store.dispose()


@pytest.fixture
def manager(store, fake_engine, fake_renderer, clock) -> PuzzleManager:
    return PuzzleManager(store, engine=fake_engine, renderer=fake_renderer, clock=clock)


@pytest.fixture
def client(manager, fake_engine, fake_renderer):
    from webapp import create_app

    app = create_app(manager, engine=fake_engine, renderer=fake_renderer)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def reload_config():
    project_config.reload()
    yield project_config
    project_config.reload()
