"""Flask application factory.

Public routes live under ``/api/puzzle``; editorial routes under
``/api/admin``.  Service errors map to JSON bodies ``{"error": ...}`` with
400 / 404 / 409 / 500 status codes.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import timezone
from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from contracts.errors import (
    ConflictError,
    EngineError,
    GenerationError,
    NotFoundError,
    RenderError,
    ValidationError,
)
from contracts.wire import canonical_dumps
from lifecycle import PuzzleManager
from lifecycle.models import VIEW
from orchestrator import generate_custom, generate_random
from ports import EnginePort, RendererPort, resolve_engine, resolve_renderer

_LOGGER = logging.getLogger(__name__)

_MANAGER_KEY = "puzzle_manager"


def _manager() -> PuzzleManager:
    return current_app.extensions[_MANAGER_KEY]


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError.from_issue("body.type", "request body must be a JSON object")
    return data


def _pick(data: Dict[str, Any], *names: str) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return None


def _today(manager: PuzzleManager) -> str:
    return manager.clock().astimezone(timezone.utc).date().isoformat()


def _error(message: str, status: int, **extra: Any):
    body: Dict[str, Any] = {"error": message}
    body.update(extra)
    return jsonify(body), status


def create_app(
    manager: Optional[PuzzleManager] = None,
    *,
    engine: Optional[EnginePort] = None,
    renderer: Optional[RendererPort] = None,
) -> Flask:
    app = Flask(__name__)
    CORS(app, resources={r"/api/puzzle/*": {"origins": "*"}})

    engine = engine or resolve_engine()
    renderer = renderer or resolve_renderer()
    app.extensions[_MANAGER_KEY] = manager or PuzzleManager(engine=engine, renderer=renderer)

    # ---------- errors ----------

    @app.errorhandler(ValidationError)
    def _validation(exc: ValidationError):
        return _error(str(exc), 400, issues=[asdict(issue) for issue in exc.issues])

    @app.errorhandler(NotFoundError)
    def _not_found(exc: NotFoundError):
        return _error(str(exc), 404)

    @app.errorhandler(ConflictError)
    def _conflict(exc: ConflictError):
        return _error(str(exc), 409)

    @app.errorhandler(EngineError)
    @app.errorhandler(GenerationError)
    @app.errorhandler(RenderError)
    def _server(exc: Exception):
        _LOGGER.error("Request %s %s failed: %s", request.method, request.path, exc)
        return _error(str(exc), 500)

    # ---------- public ----------

    @app.get("/api/puzzle/today")
    def puzzle_today():
        record = _manager().today_published()
        return jsonify(
            {"svg": record.svg, "variants": record.variants, "title": record.title, "date_utc": record.date_utc}
        )

    @app.get("/api/puzzle/random")
    def puzzle_random():
        generated = generate_random(engine=engine, renderer=renderer)
        return jsonify({"svg": generated.svg, "variants": generated.variants, "title": None, "date_utc": None})

    @app.post("/api/puzzle/check")
    def puzzle_check():
        data = _json_body()
        manager = _manager()
        status = manager.verify_solve(_today(manager), data.get("grid"))
        return jsonify({"status": status})

    @app.post("/api/puzzle/track")
    def puzzle_track():
        event = _json_body().get("event")
        if event != VIEW:
            raise ValidationError.from_issue("event.unknown", f"unrecognised event {event!r}", "$.event")
        manager = _manager()
        manager.record_stats_event(_today(manager), VIEW)
        return "", 204

    # ---------- admin ----------

    @app.post("/api/admin/puzzles/generate")
    def admin_generate():
        return jsonify(generate_random(engine=engine, renderer=renderer).to_response())

    @app.post("/api/admin/puzzles/generate/custom")
    def admin_generate_custom():
        data = _json_body()
        if "constraints" not in data:
            raise ValidationError.from_issue("constraints.missing", "constraints is required", "$.constraints")
        generated = generate_custom(
            data["constraints"],
            clue_target=_pick(data, "clue_target", "clueTarget"),
            seed=data.get("seed"),
            engine=engine,
            renderer=renderer,
        )
        return jsonify(generated.to_response())

    @app.post("/api/admin/puzzles")
    def admin_create():
        data = _json_body()
        puzzle_json = _pick(data, "puzzle_json", "puzzleJson")
        if isinstance(puzzle_json, dict):
            try:
                puzzle_json = canonical_dumps(puzzle_json)
            except TypeError as exc:
                raise ValidationError.from_issue("payload.bad_type", str(exc), "$.puzzle_json") from exc
        overwrite = data.get("overwrite", True)
        if not isinstance(overwrite, bool):
            raise ValidationError.from_issue("overwrite.type", "overwrite must be a boolean", "$.overwrite")
        record = _manager().create(
            _pick(data, "date_utc", "date"),
            puzzle_json,
            svg=_pick(data, "svg", "image"),
            variants=data.get("variants"),
            status=data.get("status"),
            title=_pick(data, "title", "name"),
            author=data.get("author"),
            difficulty=data.get("difficulty"),
            overwrite=overwrite,
        )
        return jsonify(record.to_dict())

    @app.get("/api/admin/puzzles")
    def admin_list():
        summaries = _manager().list(request.args.get("status") or None)
        return jsonify({"puzzles": [summary.to_dict() for summary in summaries]})

    @app.get("/api/admin/puzzles/<date_utc>")
    def admin_get(date_utc: str):
        return jsonify(_manager().get(date_utc).to_dict())

    @app.get("/api/admin/stats/<date_utc>")
    def admin_stats(date_utc: str):
        return jsonify(_manager().get_stats(date_utc).to_dict())

    @app.post("/api/admin/puzzles/<date_utc>/publish")
    def admin_publish(date_utc: str):
        return jsonify(_manager().publish(date_utc).to_dict())

    @app.post("/api/admin/puzzles/<date_utc>/archive")
    def admin_archive(date_utc: str):
        return jsonify(_manager().archive(date_utc).to_dict())

    return app


__all__ = ["create_app"]
