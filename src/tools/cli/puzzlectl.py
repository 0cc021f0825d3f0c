"""Command line helpers for puzzle generation and the publication lifecycle."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, List

from contracts.errors import PuzzleServiceError
from contracts.grid import format_grid
from lifecycle import PuzzleManager
from orchestrator import RandomConfig, generate_custom, generate_random
from project_config import configure_logging, get_section
from tools.reports import generation_report


def _print(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False))


def _read_text(value: str) -> str:
    if value == "-":
        return sys.stdin.read()
    if value.startswith("@"):
        return Path(value[1:]).read_text(encoding="utf-8")
    return value


def cmd_serve(args: argparse.Namespace) -> int:
    from webapp import create_app

    app = create_app()
    host = args.host or str(get_section("server.host", default="0.0.0.0"))
    port = args.port or int(get_section("server.port", default=3000))
    app.run(host=host, port=port, debug=args.debug)
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    if args.constraints is not None:
        constraints = json.loads(_read_text(args.constraints))
        generated = generate_custom(constraints, clue_target=args.clue_target, seed=args.seed)
    else:
        config = RandomConfig.from_config()
        if args.clue_target is not None:
            config = replace(config, clue_target=args.clue_target)
        generated = generate_random(config, seed=args.seed)

    if args.svg:
        Path(args.svg).write_text(generated.svg, encoding="utf-8")
    if args.pretty:
        print(format_grid(generated.payload.puzzle), file=sys.stderr)
    if args.date:
        record = PuzzleManager().create(
            args.date,
            generated.payload.dumps(),
            svg=generated.svg,
            variants=generated.variants,
            title=args.title,
            overwrite=not args.no_overwrite,
        )
        _print(record.summary().to_dict())
    else:
        response = generated.to_response()
        response.pop("svg")
        _print(response)
    return 0


def cmd_create(args: argparse.Namespace) -> int:
    record = PuzzleManager().create(
        args.date,
        _read_text(args.puzzle_json),
        status=args.status,
        title=args.title,
        author=args.author,
        difficulty=args.difficulty,
        overwrite=not args.no_overwrite,
    )
    _print(record.summary().to_dict())
    return 0


def cmd_publish(args: argparse.Namespace) -> int:
    _print(PuzzleManager().publish(args.date).summary().to_dict())
    return 0


def cmd_archive(args: argparse.Namespace) -> int:
    _print(PuzzleManager().archive(args.date).summary().to_dict())
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    _print([summary.to_dict() for summary in PuzzleManager().list(args.status)])
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    _print(PuzzleManager().get_stats(args.date).to_dict())
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    base_dir = Path(args.path or get_section("events.dir", default="logs/generation"))
    files = sorted(base_dir.glob("**/*.jsonl"))
    if not files:
        raise SystemExit(f"No JSONL logs found under {base_dir}")
    _print(generation_report.aggregate(files, top=args.top))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Daily variant sudoku tooling")
    parser.add_argument("--log-level", default=None, help="Override [logging] level")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--debug", action="store_true")
    serve.set_defaults(func=cmd_serve)

    generate = sub.add_parser("generate", help="Generate a puzzle (random unless --constraints is given)")
    generate.add_argument(
        "--constraints",
        default=None,
        help="Constraint JSON, '@file' or '-' for stdin",
    )
    generate.add_argument("--clue-target", type=int, default=None)
    generate.add_argument("--seed", type=int, default=None)
    generate.add_argument("--svg", default=None, help="Write the rendered SVG to this path")
    generate.add_argument("--pretty", action="store_true", help="Print the grid to stderr")
    generate.add_argument("--date", default=None, help="Store the result as a draft for this date")
    generate.add_argument("--title", default=None)
    generate.add_argument("--no-overwrite", action="store_true")
    generate.set_defaults(func=cmd_generate)

    create = sub.add_parser("create", help="Store a puzzle payload for a date")
    create.add_argument("date")
    create.add_argument("puzzle_json", help="Payload JSON, '@file' or '-' for stdin")
    create.add_argument("--status", default=None)
    create.add_argument("--title", default=None)
    create.add_argument("--author", default=None)
    create.add_argument("--difficulty", type=int, default=None)
    create.add_argument("--no-overwrite", action="store_true")
    create.set_defaults(func=cmd_create)

    publish = sub.add_parser("publish", help="Publish the puzzle for a date")
    publish.add_argument("date")
    publish.set_defaults(func=cmd_publish)

    archive = sub.add_parser("archive", help="Archive the puzzle for a date")
    archive.add_argument("date")
    archive.set_defaults(func=cmd_archive)

    listing = sub.add_parser("list", help="List puzzle summaries, newest first")
    listing.add_argument("--status", default=None)
    listing.set_defaults(func=cmd_list)

    stats = sub.add_parser("stats", help="Show usage counters for a date")
    stats.add_argument("date")
    stats.set_defaults(func=cmd_stats)

    report = sub.add_parser("report", help="Aggregate generation event logs")
    report.add_argument("path", nargs="?", default=None, help="Directory containing JSONL logs")
    report.add_argument("--top", type=int, default=5)
    report.set_defaults(func=cmd_report)

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args)
    except PuzzleServiceError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
