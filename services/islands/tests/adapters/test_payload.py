"""Tests for the provider JSON readers."""

import pytest

from services.islands.adapters._payload import as_bool, as_dict, as_float


class TestAsFloat:

    @pytest.mark.parametrize(
        "value, expected",
        [(3, 3.0), (2.5, 2.5), ("1.2", 1.2), (" -4 ", -4.0), (True, 1.0)],
    )
    def test_coercible(self, value, expected):
        assert as_float(value) == expected

    @pytest.mark.parametrize("value", [None, "abc", "", [1], {"v": 1}, "nan", float("inf")])
    def test_default(self, value):
        assert as_float(value, 7.5) == 7.5


class TestContainers:

    def test_as_dict(self):
        assert as_dict({"a": 1}) == {"a": 1}
        assert as_dict([1]) == {}
        assert as_dict(None) == {}

    @pytest.mark.parametrize("value, expected", [(True, True), ("TRUE", True), (1, True), (False, False), ("no", False), (None, False), (0, False)])
    def test_as_bool(self, value, expected):
        assert as_bool(value) is expected
