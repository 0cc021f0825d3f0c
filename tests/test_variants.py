from __future__ import annotations

import pytest

from contracts.errors import ValidationError
from contracts.variants import (
    Arrow,
    Killer,
    King,
    Knight,
    KropkiBlack,
    KropkiWhite,
    Queen,
    Thermo,
    dedupe_tags,
    kind_tags,
    parse_variants,
    to_wire,
)


def _all_kinds() -> list:
    return [
        KropkiWhite((0, 0), (0, 1)),
        KropkiBlack((4, 4), (5, 4)),
        Thermo(((2, 2), (2, 3), (3, 4))),
        Arrow(((6, 6), (7, 7))),
        Killer(((8, 0), (8, 1), (7, 0)), 12, False),
        King(),
        Knight(),
        Queen(),
    ]


def test_round_trip_preserves_order_and_fields() -> None:
    variants = _all_kinds()
    assert parse_variants(to_wire(variants)) == variants


def test_canonical_wire_shapes() -> None:
    wire = to_wire(_all_kinds())
    assert wire[0] == {"type": "kropki_white", "a": [0, 0], "b": [0, 1]}
    assert wire[2] == {"type": "thermo", "path": [[2, 2], [2, 3], [3, 4]]}
    assert wire[4] == {"type": "killer", "cells": [[8, 0], [8, 1], [7, 0]], "sum": 12, "no_repeats": False}
    assert wire[5:] == [{"type": "king"}, {"type": "knight"}, {"type": "queen"}]


def test_object_with_constraints_list_is_accepted() -> None:
    assert parse_variants({"constraints": [{"type": "king"}]}) == [King()]


def test_killer_defaults_to_no_repeats() -> None:
    (killer,) = parse_variants([{"type": "killer", "cells": [[0, 0], [0, 1]], "sum": 3}])
    assert killer.no_repeats is True


@pytest.mark.parametrize("wire", [None, "[]", 3, {"constraints": "king"}])
def test_non_array_input_is_rejected(wire) -> None:
    with pytest.raises(ValidationError, match="constraints must be a JSON array"):
        parse_variants(wire)


def test_unknown_type_names_the_type() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_variants([{"type": "king"}, {"type": "sandwich"}])
    assert "sandwich" in str(excinfo.value)
    assert excinfo.value.issues[0].path == "$[1].type"


def test_bad_cells_report_a_json_path() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_variants([{"type": "thermo", "path": [[0, 0], [True, 1]]}])
    assert excinfo.value.issues[0].path == "$[0].path[1][0]"


@pytest.mark.parametrize(
    "item",
    [
        {"type": "kropki_white", "a": [0, 0]},
        {"type": "kropki_black", "a": [0, 0], "b": [0, 1, 2]},
        {"type": "arrow", "path": []},
        {"type": "killer", "cells": [[0, 0]], "sum": -1},
        {"type": "killer", "cells": [[0, 0]], "sum": 4, "no_repeats": "yes"},
        {"type": "thermo", "path": [[0, -1]]},
        {"kind": "king"},
        "king",
    ],
)
def test_malformed_shapes_are_rejected(item) -> None:
    with pytest.raises(ValidationError):
        parse_variants([item])


def test_constructors_validate_shape() -> None:
    with pytest.raises(ValueError):
        Thermo(())
    with pytest.raises(ValueError):
        KropkiWhite((0, 0), (0,))
    with pytest.raises(ValueError):
        Killer(((0, 0),), 3, 1)


def test_kind_tags_keep_first_occurrence() -> None:
    assert kind_tags([King(), Knight(), King(), Queen()]) == ["king", "knight", "queen"]
    assert dedupe_tags(["thermo", "king", "thermo"]) == ["thermo", "king"]
