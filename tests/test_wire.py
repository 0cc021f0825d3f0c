from __future__ import annotations

import pytest

from contracts.wire import canonical_dumps, payload_digest


def test_canonical_order_and_separators() -> None:
    assert canonical_dumps({"b": [1, 2], "a": "é"}) == '{"a":"é","b":[1,2]}'


def test_digest_is_stable_across_key_order() -> None:
    assert payload_digest({"a": 1, "b": 2}) == payload_digest({"b": 2, "a": 1})
    assert payload_digest({"a": 1}).startswith("sha256-")


def test_rejects_floats_and_non_string_keys() -> None:
    with pytest.raises(TypeError):
        canonical_dumps({"value": 1.5})
    with pytest.raises(TypeError):
        canonical_dumps({1: "x"})
