"""Custom and random puzzle generation flows.

Both flows thread one :class:`~orchestrator.rng.SeededRandom` through solution
search, variant sampling and digging, and persist the seed in the payload so a
puzzle can be regenerated exactly.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from contracts.errors import SolveError, ValidationError
from contracts.grid import count_clues
from contracts.payload import MAX_SEED, PuzzlePayload
from contracts.variants import King, Knight, Queen, VariantSpec, kind_tags, parse_variants
from contracts.wire import payload_digest
from ports import EnginePort, RendererPort, resolve_engine, resolve_renderer
from project_config import get_section

from . import log as event_log
from .digging import DigReport, check_clue_target, dig_puzzle
from .rng import SeededRandom
from .sampler import RandomConfig, sample_local_variants

_LOGGER = logging.getLogger(__name__)

_GLOBAL_CHOICES = (King, Knight, Queen)


@dataclass(frozen=True)
class GeneratedPuzzle:
    payload: PuzzlePayload
    svg: str
    variants: List[str]
    report: DigReport = field(compare=False)

    @property
    def seed(self) -> int:
        return self.payload.seed

    def to_response(self) -> Dict[str, Any]:
        return {"puzzle_json": self.payload.dumps(), "svg": self.svg, "variants": list(self.variants)}


def _check_seed(seed: Any) -> Optional[int]:
    if seed is None:
        return None
    if isinstance(seed, bool) or not isinstance(seed, int) or seed < 0:
        raise ValidationError.from_issue("seed.type", "seed must be a non-negative integer", "$.seed")
    if seed > MAX_SEED:
        raise ValidationError.from_issue("seed.range", f"seed must not exceed {MAX_SEED}", "$.seed")
    return seed


def _finish(
    solution: Sequence[int],
    variants: List[VariantSpec],
    clue_target: int,
    rng: SeededRandom,
    engine: EnginePort,
    renderer: RendererPort,
    started: float,
    flow: str,
) -> GeneratedPuzzle:
    report = DigReport(clue_target=clue_target)
    puzzle = dig_puzzle(solution, clue_target, variants, rng, engine, report)
    payload = PuzzlePayload(
        puzzle=puzzle,
        solution=tuple(solution),
        constraints=tuple(variants),
        seed=rng.seed_value,
        clue_count=count_clues(puzzle),
    )
    svg = renderer.render(puzzle, engine.raw_constraint_list(variants))
    tags = kind_tags(variants)
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    _LOGGER.info(
        "Generated %s puzzle seed=%d clues=%d/%d variants=%s in %d ms",
        flow,
        payload.seed,
        payload.clue_count,
        clue_target,
        ",".join(tags) or "-",
        elapsed_ms,
    )
    event_log.record_event(
        {
            "event": "generation",
            "flow": flow,
            "seed": payload.seed,
            "clue_target": clue_target,
            "clue_count": payload.clue_count,
            "trials": report.trials,
            "engine_failures": report.engine_failures,
            "variants": tags,
            "elapsed_ms": elapsed_ms,
            "payload_digest": payload_digest(payload.to_wire()),
        }
    )
    return GeneratedPuzzle(payload=payload, svg=svg, variants=tags, report=report)


def generate_custom(
    constraints_wire: Any,
    clue_target: Optional[int] = None,
    seed: Optional[int] = None,
    *,
    engine: Optional[EnginePort] = None,
    renderer: Optional[RendererPort] = None,
) -> GeneratedPuzzle:
    """Generate a puzzle under caller-supplied variants.

    Raises ``ValidationError`` for bad variants, seed or clue target,
    ``SolveError`` when the variants admit no solution, and
    ``GenerationError`` when they reject their own solution.
    """

    started = time.perf_counter()
    variants = parse_variants(constraints_wire)
    if clue_target is None:
        clue_target = int(get_section("generator.clue_target", default=30))
    check_clue_target(clue_target)
    rng = SeededRandom(_check_seed(seed))
    engine = engine or resolve_engine()
    renderer = renderer or resolve_renderer()

    solution = engine.full_solution_for(variants, rng.fork())
    return _finish(solution, variants, clue_target, rng, engine, renderer, started, "custom")


def generate_random(
    config: Optional[RandomConfig] = None,
    seed: Optional[int] = None,
    *,
    engine: Optional[EnginePort] = None,
    renderer: Optional[RendererPort] = None,
) -> GeneratedPuzzle:
    """Generate a puzzle with at most one global variant plus sampled local ones."""

    started = time.perf_counter()
    cfg = config or RandomConfig.from_config()
    check_clue_target(cfg.clue_target)
    rng = SeededRandom(_check_seed(seed))
    engine = engine or resolve_engine()
    renderer = renderer or resolve_renderer()

    global_variants: List[VariantSpec] = []
    if rng.random() < cfg.global_variant_probability:
        global_variants.append(rng.choice(_GLOBAL_CHOICES)())
    try:
        solution = engine.full_solution_for(global_variants, rng.fork())
    except SolveError as exc:
        if not global_variants:
            raise
        _LOGGER.warning("No solution under %s (%s); retrying without a global variant", global_variants[0].kind, exc)
        global_variants = []
        solution = engine.full_solution_for(global_variants, rng.fork())

    variants = global_variants + sample_local_variants(solution, rng, cfg)
    return _finish(solution, variants, cfg.clue_target, rng, engine, renderer, started, "random")


__all__ = ["GeneratedPuzzle", "RandomConfig", "generate_custom", "generate_random"]
