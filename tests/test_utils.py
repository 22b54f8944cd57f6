from datetime import datetime, timezone

import pytest

from agritrade.errors import ValidationError
from agritrade.utils import as_bool, is_number, parse_datetime


def test_offset_timestamp_is_converted_to_local_time():
    expected = datetime(2024, 6, 16, 4, 30, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    assert parse_datetime("2024-06-15T23:30:00-05:00") == expected
    assert parse_datetime("2024-06-16T04:30:00Z") == expected


def test_naive_timestamp_is_kept_as_is():
    assert parse_datetime("2024-06-15T23:30:00") == datetime(2024, 6, 15, 23, 30)
    assert parse_datetime("15/06/2024") == datetime(2024, 6, 15)
    with pytest.raises(ValidationError):
        parse_datetime("yesterday")


def test_is_number_requires_finite_values():
    assert is_number("12.5") and is_number(0)
    for bad in ("inf", "-Infinity", "NaN", float("nan"), True, None, "abc", 10 ** 400):
        assert not is_number(bad)


def test_as_bool_reads_form_strings():
    assert as_bool("true") and as_bool("1") and as_bool(True)
    assert not as_bool("false") and not as_bool("0") and not as_bool("") and not as_bool(False)
