from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from contracts.errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from contracts.variants import King, Thermo
from lifecycle import PuzzleManager
from lifecycle.models import format_utc

from conftest import TODAY, make_payload


def test_create_published_sets_published_at(manager) -> None:
    manager.create(TODAY, make_payload().dumps(), status="published")
    record = manager.get(TODAY)
    assert record.status == "published"
    assert record.published_at_utc == "2024-01-01T12:30:15.123Z"
    assert record.svg is not None
    assert record.render_version == 7


def test_create_defaults_to_draft_and_derives_fields(manager) -> None:
    payload = make_payload(constraints=[King(), Thermo(((0, 0), (0, 1))), King()])
    record = manager.create(TODAY, payload.dumps(), title="New year")
    assert record.status == "draft"
    assert record.published_at_utc is None
    assert record.variants == ["king", "thermo"]
    assert record.clue_count == 78
    assert record.seed == 42
    assert record.solution == list(payload.solution)
    assert record.puzzle == payload.puzzle
    assert record.title == "New year"
    assert record.created_at_utc == record.updated_at_utc == "2024-01-01T12:30:15.123Z"


def test_explicit_variants_are_deduplicated(manager) -> None:
    record = manager.create(TODAY, make_payload().dumps(), variants=["knight", "queen", "knight"], svg="<svg/>")
    assert record.variants == ["knight", "queen"]
    assert record.svg == "<svg/>"
    assert record.render_version is None


def test_create_without_overwrite_conflicts_and_keeps_prior(manager) -> None:
    manager.create(TODAY, make_payload(seed=1).dumps(), title="first")
    with pytest.raises(ConflictError):
        manager.create(TODAY, make_payload(seed=2).dumps(), title="second", overwrite=False)
    record = manager.get(TODAY)
    assert record.title == "first"
    assert record.seed == 1


def test_create_overwrites_by_default(manager, clock) -> None:
    manager.create(TODAY, make_payload(seed=1).dumps(), title="first")
    created = manager.get(TODAY).created_at_utc
    clock.moment += timedelta(minutes=5)
    record = manager.create(TODAY, make_payload(seed=2).dumps(), title="second")
    assert record.title == "second"
    assert record.seed == 2
    assert record.created_at_utc == created
    assert record.updated_at_utc == "2024-01-01T12:35:15.123Z"


@pytest.mark.parametrize(
    "date, body, status",
    [
        ("2024-13-01", None, None),
        ("01/02/2024", None, None),
        (TODAY, "{}", None),
        (TODAY, json.dumps({"puzzle": "." * 81, "constraints": [{"type": "sandwich"}]}), None),
        (TODAY, None, "live"),
    ],
)
def test_create_rejects_bad_input(manager, date, body, status) -> None:
    with pytest.raises(ValidationError):
        manager.create(date, body or make_payload().dumps(), status=status)


def test_create_rejects_variants_the_engine_refuses(store, fake_renderer, clock) -> None:
    from ports import EngineAdapter

    manager = PuzzleManager(store, engine=EngineAdapter(), renderer=fake_renderer, clock=clock)
    body = json.dumps({"puzzle": "." * 81, "constraints": [{"type": "kropki_white", "a": [0, 0], "b": [2, 2]}]})
    with pytest.raises(ValidationError):
        manager.create(TODAY, body)


def test_publish_then_archive(manager, clock) -> None:
    manager.create(TODAY, make_payload().dumps())
    published = manager.publish(TODAY)
    assert published.status == "published"
    assert published.published_at_utc == format_utc(clock.moment)

    clock.moment += timedelta(hours=1)
    archived = manager.archive(TODAY)
    assert archived.status == "archived"
    assert archived.published_at_utc == published.published_at_utc
    assert manager.get(TODAY).status == "archived"


def test_republish_refreshes_timestamp(manager, clock) -> None:
    manager.create(TODAY, make_payload().dumps(), status="published")
    clock.moment += timedelta(seconds=30)
    assert manager.publish(TODAY).published_at_utc == "2024-01-01T12:30:45.123Z"


def test_archived_records_stay_archived(manager) -> None:
    manager.create(TODAY, make_payload().dumps())
    manager.archive(TODAY)
    with pytest.raises(InvalidTransitionError):
        manager.publish(TODAY)
    assert manager.archive(TODAY).status == "archived"


def test_unknown_dates_are_not_found(manager) -> None:
    for action in (manager.get, manager.publish, manager.archive):
        with pytest.raises(NotFoundError):
            action("2030-05-05")


def test_list_orders_by_date_descending_and_filters(manager) -> None:
    manager.create("2024-01-01", make_payload().dumps(), status="published")
    manager.create("2024-01-03", make_payload().dumps())
    manager.create("2024-01-02", make_payload().dumps())
    assert [s.date_utc for s in manager.list()] == ["2024-01-03", "2024-01-02", "2024-01-01"]
    assert [s.date_utc for s in manager.list("published")] == ["2024-01-01"]
    with pytest.raises(ValidationError):
        manager.list("pending")


def test_today_published_uses_the_clock(manager) -> None:
    with pytest.raises(NotFoundError):
        manager.today_published()
    manager.create(TODAY, make_payload().dumps())
    with pytest.raises(NotFoundError):
        manager.today_published()
    manager.publish(TODAY)
    assert manager.today_published().date_utc == TODAY


def test_published_rows_require_an_image(store) -> None:
    row = {
        "date_utc": TODAY,
        "status": "published",
        "puzzle_json": make_payload().dumps(),
        "puzzle": make_payload().puzzle,
        "clue_count": 78,
        "seed": 42,
        "variants": "[]",
        "title": None,
        "author": None,
        "difficulty": None,
        "svg": None,
        "render_version": None,
        "created_at_utc": format_utc(datetime(2024, 1, 1, tzinfo=timezone.utc)),
        "updated_at_utc": format_utc(datetime(2024, 1, 1, tzinfo=timezone.utc)),
        "published_at_utc": None,
    }
    with pytest.raises(IntegrityError):
        store.replace_puzzle(row)


def test_stats_counters(manager) -> None:
    assert manager.get_stats(TODAY).to_dict() == {
        "date_utc": TODAY,
        "views": 0,
        "checks": 0,
        "solves": 0,
        "last_seen_utc": None,
    }
    manager.record_stats_event(TODAY, "view")
    manager.record_stats_event(TODAY, "view")
    manager.record_stats_event(TODAY, "solve")
    stats = manager.get_stats(TODAY)
    assert (stats.views, stats.checks, stats.solves) == (2, 0, 1)
    assert stats.last_seen_utc == "2024-01-01T12:30:15.123Z"
    with pytest.raises(ValidationError):
        manager.record_stats_event(TODAY, "click")


def test_difficulty_round_trips_as_an_integer(manager) -> None:
    manager.create(TODAY, make_payload().dumps(), difficulty=3, author="ada")
    assert manager.get(TODAY).difficulty == 3
    summary = manager.list()[0]
    assert summary.difficulty == 3
    assert summary.author == "ada"
    assert summary.created_at_utc == "2024-01-01T12:30:15.123Z"


@pytest.mark.parametrize("difficulty", ["3", 2.5, True, {"level": 3}, [3]])
def test_difficulty_must_be_an_integer(manager, difficulty) -> None:
    with pytest.raises(ValidationError):
        manager.create(TODAY, make_payload().dumps(), difficulty=difficulty)
    with pytest.raises(NotFoundError):
        manager.get(TODAY)


def test_seed_beyond_64_bits_is_rejected_on_import(manager) -> None:
    body = make_payload().to_wire()
    body["seed"] = 2**63
    with pytest.raises(ValidationError):
        manager.create(TODAY, json.dumps(body))

    body["seed"] = 2**63 - 1
    assert manager.create(TODAY, json.dumps(body)).seed == 2**63 - 1
