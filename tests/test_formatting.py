"""Tests for size formatting."""
import pytest

from driveup.utils.formatting import format_size


@pytest.mark.parametrize(
    "num_bytes, expected",
    [
        (0, "0B"),
        (500, "500B"),
        (1023, "1023B"),
        (1024, "1KB"),
        (2048, "2KB"),
        (1572864, "1.5MB"),
        (1610612736, "1.5GB"),
    ],
)
def test_format_size(num_bytes, expected):
    assert format_size(num_bytes) == expected


def test_format_size_rounds_kilobytes_half_up():
    assert format_size(1536) == "2KB"
    assert format_size(1535) == "1KB"


def test_format_size_switches_to_megabytes_before_1000kb():
    # 999.5KB would round to 1000KB, so it is shown as MB instead
    assert format_size(int(999.5 * 1024)) == "1.0MB"
    assert format_size(999 * 1024) == "999KB"


def test_format_size_speed_floats_show_whole_bytes():
    assert format_size(123.9) == "123B"
    assert format_size(4.5 * 1024 * 1024) == "4.5MB"


def test_format_size_is_monotonic_across_units():
    units = {"B": 0, "KB": 1, "MB": 2, "GB": 3}

    def magnitude(text):
        for suffix in ("GB", "MB", "KB", "B"):
            if text.endswith(suffix):
                return units[suffix], float(text[: -len(suffix)])
        raise AssertionError(text)

    samples = [0, 1, 512, 1023, 1024, 10_000, 500_000, 1_048_575, 1_048_576,
               50_000_000, 1_073_741_824, 5_000_000_000]
    values = [magnitude(format_size(b)) for b in samples]
    assert values == sorted(values)
