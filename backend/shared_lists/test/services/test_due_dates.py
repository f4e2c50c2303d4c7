from datetime import datetime, timezone

import pytest

from shared_lists.services.errors import InvalidDueAtError
from shared_lists.services.tasks.due_dates import (
    UNSET,
    has_offset_marker,
    normalize_due_at,
    resolve_due_at,
)


def local_ms(*args) -> int:
    return int(datetime(*args).timestamp() * 1000)


class TestNormalizeDueAt:
    def test_omitted_stays_unset(self):
        assert normalize_due_at() is UNSET

    def test_none_clears(self):
        assert normalize_due_at(None) is None

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1714580000000, 1714580000000),
            (1714580000000.9, 1714580000000),
            ("1714580000000", 1714580000000),
            ("  1714580000000 ", 1714580000000),
        ],
    )
    def test_numeric_inputs(self, value, expected):
        assert normalize_due_at(value) == expected

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), True, False, [], {}])
    def test_unusable_values(self, value):
        assert normalize_due_at(value) is None

    def test_offset_string(self):
        expected = int(
            datetime(2024, 5, 1, 16, 30, tzinfo=timezone.utc).timestamp() * 1000
        )
        assert normalize_due_at("2024-05-01T16:30:00Z") == expected
        assert normalize_due_at("2024-05-01T18:30:00+02:00") == expected

    @pytest.mark.parametrize(
        "value, args",
        [
            ("2024-05-01 18:30", (2024, 5, 1, 18, 30)),
            ("2024-05-01T18:30", (2024, 5, 1, 18, 30)),
            ("2024-05-01T18:30:15", (2024, 5, 1, 18, 30, 15)),
        ],
    )
    def test_local_strings_use_server_time(self, value, args):
        assert normalize_due_at(value) == local_ms(*args)

    @pytest.mark.parametrize(
        "value", ["tomorrow", "2024-13-01 10:00", "2024-02-30 10:00", "2024-05-01"]
    )
    def test_unparseable_strings(self, value):
        assert normalize_due_at(value) is None


class TestResolveDueAt:
    def test_valid_values_pass_through(self):
        assert resolve_due_at(UNSET) is UNSET
        assert resolve_due_at(None) is None
        assert resolve_due_at("2024-05-01 18:30") == local_ms(2024, 5, 1, 18, 30)

    @pytest.mark.parametrize("value", ["tomorrow", "2024-02-30 10:00", float("nan")])
    def test_malformed_values_are_rejected(self, value):
        with pytest.raises(InvalidDueAtError):
            resolve_due_at(value)

    def test_bad_offset_string_degrades_to_none(self):
        """Strings carrying an offset never raise, they just clear the date."""
        assert has_offset_marker("2024-99-01T10:00:00Z")
        assert resolve_due_at("2024-99-01T10:00:00Z") is None
