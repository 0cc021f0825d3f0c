from __future__ import annotations

import random

import pytest

import engine
from contracts.errors import BuildError, SolveError
from contracts.grid import NN, values_to_text
from contracts.variants import Arrow, Killer, King, Knight, KropkiBlack, KropkiWhite, Queen, Thermo
from engine import Solver, build_solver, expand, full_solution
from ports import EngineAdapter

from conftest import SOLUTION, SOLUTION_TEXT


def _is_valid_sudoku(grid) -> bool:
    rows = [grid[r * 9:(r + 1) * 9] for r in range(9)]
    cols = [grid[c::9] for c in range(9)]
    boxes = [
        [grid[(br + dr) * 9 + bc + dc] for dr in range(3) for dc in range(3)]
        for br in (0, 3, 6)
        for bc in (0, 3, 6)
    ]
    return all(sorted(group) == list(range(1, 10)) for group in rows + cols + boxes)


def _givens(**cells: int) -> list:
    values = [0] * NN
    for key, digit in cells.items():
        r, c = int(key[1]), int(key[2])
        values[r * 9 + c] = digit
    return values


def test_base_constraints_come_first() -> None:
    constraints = expand([King()])
    assert [con.kind for con in constraints[:27]] == ["row"] * 9 + ["column"] * 9 + ["box"] * 9
    assert {con.kind for con in constraints[27:]} == {"king"}


def test_build_rejects_bad_text() -> None:
    with pytest.raises(BuildError):
        build_solver("1" * 80, [])
    with pytest.raises(BuildError):
        build_solver("x" * 81, [])


@pytest.mark.parametrize(
    "variant",
    [
        KropkiWhite((0, 0), (1, 1)),
        KropkiBlack((0, 8), (0, 9)),
        Thermo(((0, 0), (0, 2))),
        Thermo(((0, 0), (0, 1), (0, 0))),
        Thermo(tuple((r, r % 2) for r in range(9)) + ((8, 1),)),
        Arrow(((4, 4),)),
        Killer(((0, 0), (0, 1)), 2, True),
        Killer(((0, 0), (0, 0)), 4, False),
    ],
)
def test_illegal_variants_raise_build_error(variant) -> None:
    with pytest.raises(BuildError):
        build_solver(SOLUTION_TEXT, [variant])


def test_solved_grid_is_unique() -> None:
    solver = build_solver(SOLUTION_TEXT, [])
    assert solver.count_solutions() == 1


def test_few_blanks_stay_unique_and_empty_grid_is_not() -> None:
    text = "." + SOLUTION_TEXT[1:40] + "." + SOLUTION_TEXT[41:]
    assert build_solver(text, []).has_unique_solution(random.Random(1))
    assert build_solver("." * 81, []).count_solutions(2, random.Random(1)) == 2


def test_conflicting_givens_have_no_solution() -> None:
    with pytest.raises(BuildError):
        build_solver("11" + "." * 79, [])
    solver = Solver(expand([]), _givens(c00=1, c01=1))
    assert solver.consistent is False
    assert solver.count_solutions() == 0
    assert solver.solve() is None


def test_full_solution_is_valid_and_seeded() -> None:
    first = full_solution([], random.Random(5))
    second = full_solution([], random.Random(5))
    assert _is_valid_sudoku(first)
    assert first == second


def test_full_solution_respects_local_variants() -> None:
    cage = Killer(((0, 0), (0, 1)), 3, True)
    grid = full_solution([cage], random.Random(11))
    assert _is_valid_sudoku(grid)
    assert {grid[0], grid[1]} == {1, 2}


def test_node_budget_raises_solve_error() -> None:
    solver = Solver(expand([]), [0] * NN, max_nodes=5)
    with pytest.raises(SolveError):
        solver.count_solutions(2)


@pytest.mark.parametrize(
    "variant, ok",
    [
        (KropkiWhite((0, 1), (0, 2)), True),
        (KropkiBlack((0, 1), (0, 2)), False),
        (KropkiBlack((0, 0), (0, 1)), True),
        (Thermo(((0, 0), (0, 1), (0, 2))), True),
        (Thermo(((0, 2), (0, 1), (0, 0))), False),
        (Arrow(((0, 2), (0, 1), (0, 0))), True),
        (Arrow(((0, 0), (0, 1))), False),
        (Killer(((0, 0), (0, 1)), 3, True), True),
        (Killer(((0, 0), (0, 1)), 4, True), False),
    ],
)
def test_local_variants_against_known_solution(variant, ok) -> None:
    solver = Solver(expand([variant]), SOLUTION)
    assert solver.count_solutions() == (1 if ok else 0)
    if ok:
        assert build_solver(SOLUTION_TEXT, [variant]).has_unique_solution()
    else:
        with pytest.raises(BuildError):
            build_solver(SOLUTION_TEXT, [variant])


def test_global_variants_reject_conflicting_givens() -> None:
    king_clash = _givens(c22=5, c33=5)
    knight_clash = _givens(c22=5, c34=5)
    queen_clash = _givens(c00=9, c44=9)
    queen_other = _givens(c00=8, c44=8)

    assert Solver(expand([]), king_clash).consistent
    assert not Solver(expand([King()]), king_clash).consistent
    assert not Solver(expand([Knight()]), knight_clash).consistent
    assert not Solver(expand([Queen()]), queen_clash).consistent
    assert Solver(expand([Queen()]), queen_other).consistent


def test_solver_handle_can_be_queried_repeatedly() -> None:
    text = values_to_text([0 if i in (0, 30, 60) else v for i, v in enumerate(SOLUTION)])
    solver = build_solver(text, [])
    assert solver.count_solutions() == 1
    assert solver.count_solutions() == 1
    assert values_to_text(solver.values) == text


def test_adapter_wraps_engine() -> None:
    adapter = EngineAdapter(max_nodes=50_000)
    handle = adapter.build_solver_with_givens(SOLUTION_TEXT, [])
    assert adapter.check_unique_solution(handle, random.Random(0)) is True
    assert len(adapter.raw_constraint_list([KropkiWhite((0, 0), (0, 1))])) == 28
    assert _is_valid_sudoku(adapter.full_solution_for([], random.Random(3)))
    assert engine.DEFAULT_MAX_NODES == 200_000
