"""Tests for rd.core.result module."""

import pytest

from rd.core.result import Err, Ok, Result


class TestOk:
    def test_unwrap_or_ignores_default(self) -> None:
        assert Ok(42).unwrap_or(0) == 42

    def test_map(self) -> None:
        assert Ok(" yes\n").map(lambda out: out.strip() == "yes") == Ok(True)

    def test_frozen(self) -> None:
        result = Ok(1)
        with pytest.raises(AttributeError):
            result.value = 2  # type: ignore[misc]


class TestErr:
    def test_unwrap_or_returns_default(self) -> None:
        assert Err("boom").unwrap_or(7) == 7

    def test_map_is_noop(self) -> None:
        assert Err("boom").map(lambda x: x) == Err("boom")

    def test_repr(self) -> None:
        assert repr(Err("boom")) == "Err('boom')"


def test_pattern_matching() -> None:
    result: Result[int, str] = Err("missing")
    match result:
        case Ok(_):
            pytest.fail("expected Err")
        case Err(error):
            assert error == "missing"
