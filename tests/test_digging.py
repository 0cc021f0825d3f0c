from __future__ import annotations

import pytest

from contracts.errors import BuildError, ClueTargetError, GenerationError, SolveError, ValidationError
from contracts.grid import count_clues
from contracts.variants import Killer
from orchestrator import DigReport, SeededRandom, dig_puzzle, shuffle_positions
from ports import EngineAdapter

from conftest import SOLUTION, FakeEngine


def test_shuffle_is_a_seeded_permutation() -> None:
    first = list(range(81))
    second = list(range(81))
    shuffle_positions(SeededRandom(123), first)
    shuffle_positions(SeededRandom(123), second)
    assert sorted(first) == list(range(81))
    assert first == second
    assert first != list(range(81))


def test_shuffle_draws_from_the_generator_in_fisher_yates_order() -> None:
    class Recorder:
        def __init__(self) -> None:
            self.bounds = []

        def randrange(self, n: int) -> int:
            self.bounds.append(n)
            return 0

    rng = Recorder()
    positions = list(range(5))
    shuffle_positions(rng, positions)
    assert rng.bounds == [5, 4, 3, 2]
    assert positions == [1, 2, 3, 4, 0]


@pytest.mark.parametrize("target", [81, 82, -1])
def test_clue_target_out_of_range_fails_before_work(target: int) -> None:
    engine = FakeEngine()
    with pytest.raises(ClueTargetError):
        dig_puzzle(SOLUTION, target, [], SeededRandom(1), engine)
    assert engine.built == []


def test_clue_target_error_is_a_validation_error() -> None:
    assert issubclass(ClueTargetError, ValidationError)


def test_stops_as_soon_as_target_is_reached() -> None:
    engine = FakeEngine()
    report = DigReport(clue_target=30)
    puzzle = dig_puzzle(SOLUTION, 30, [], SeededRandom(9), engine, report)
    assert count_clues(puzzle) == 30
    assert report.trials == 51
    assert report.removed == 51
    assert engine.checks == 51


def test_zero_target_is_accepted_when_everything_stays_unique() -> None:
    puzzle = dig_puzzle(SOLUTION, 0, [], SeededRandom(9), FakeEngine())
    assert puzzle == "." * 81


def test_rejected_removals_keep_more_clues_than_target() -> None:
    engine = FakeEngine(unique=lambda text: False)
    report = DigReport(clue_target=20)
    puzzle = dig_puzzle(SOLUTION, 20, [], SeededRandom(4), engine, report)
    assert count_clues(puzzle) == 81
    assert report.trials == 81
    assert report.rejected == 81


def test_blank_cells_passed_the_oracle_when_blanked() -> None:
    protected = {0, 40, 80}

    def unique(text: str) -> bool:
        return all(text[idx] != "." for idx in protected)

    puzzle = dig_puzzle(SOLUTION, 10, [], SeededRandom(2), FakeEngine(unique=unique))
    assert all(puzzle[idx] != "." for idx in protected)
    assert count_clues(puzzle) >= 10
    for idx, ch in enumerate(puzzle):
        assert ch == "." or int(ch) == SOLUTION[idx]


def test_engine_failures_during_trials_keep_the_clue() -> None:
    class Flaky(FakeEngine):
        def check_unique_solution(self, handle, rng):
            if handle.count(".") % 2:
                raise SolveError("budget exhausted")
            return True

    report = DigReport(clue_target=60)
    puzzle = dig_puzzle(SOLUTION, 60, [], SeededRandom(3), Flaky(), report)
    assert count_clues(puzzle) == 81
    assert report.engine_failures == report.trials == 81


def test_rejected_initial_grid_aborts() -> None:
    class Broken(FakeEngine):
        def build_solver_with_givens(self, puzzle_text, variants):
            raise BuildError("illegal variant")

    with pytest.raises(GenerationError):
        dig_puzzle(SOLUTION, 30, [], SeededRandom(1), Broken())


def test_solution_breaking_the_variants_aborts_with_the_real_engine() -> None:
    cage = Killer(((0, 0), (0, 1)), 4, True)
    with pytest.raises(GenerationError):
        dig_puzzle(SOLUTION, 30, [cage], SeededRandom(1), EngineAdapter(max_nodes=10_000))


def test_same_seed_same_puzzle() -> None:
    def unique(text: str) -> bool:
        return text.count(".") < 40

    first = dig_puzzle(SOLUTION, 20, [], SeededRandom(77), FakeEngine(unique=unique))
    second = dig_puzzle(SOLUTION, 20, [], SeededRandom(77), FakeEngine(unique=unique))
    assert first == second


def test_real_engine_digs_a_unique_puzzle() -> None:
    engine = EngineAdapter(max_nodes=100_000)
    rng = SeededRandom(2024)
    puzzle = dig_puzzle(SOLUTION, 45, [], rng, engine)
    assert count_clues(puzzle) >= 45
    handle = engine.build_solver_with_givens(puzzle, [])
    assert handle.solve() == SOLUTION
    assert engine.check_unique_solution(handle, SeededRandom(1))
