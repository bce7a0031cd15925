import pytest

from podfeedparser.utils import (
    calculate_update_frequency,
    clean_string,
    guess_enclosure_type,
    is_true_flag,
    parse_episode_number,
    parse_int,
    pub_date_to_timestamp,
    sanitize_url,
    time_to_seconds,
    truncate_int,
    truncate_string,
)

DAY = 24 * 60 * 60
NOW = 1_700_000_000


@pytest.mark.parametrize(
    "value,length",
    [("hello world", 5), ("héllo wörld", 4), ("short", 100), ("", 3), ("日本語テキスト", 2)],
)
def test_truncate_string_bounds_and_idempotence(value, length):
    once = truncate_string(value, length)
    assert len(once) <= length
    assert truncate_string(once, length) == once


def test_truncate_int_clamps_to_signed_32_bits():
    assert truncate_int(2**40) == 2147483647
    assert truncate_int(-(2**40)) == -2147483647
    assert truncate_int(42) == 42


def test_clean_string_strips_and_drops_line_breaks():
    assert clean_string("  one\r\ntwo\nthree\r  ") == "onetwothree"


def test_parse_int_is_strict():
    assert parse_int("+5") == 5
    assert parse_int("-12") == -12
    assert parse_int("5.0") is None
    assert parse_int(" 5") is None
    assert parse_int("99999999999") is None
    assert parse_int("٣") is None
    assert parse_int("99999999999", maximum=10**12) == 99999999999


def test_very_long_digit_strings_are_rejected_not_raised():
    assert parse_int("1" * 5000) is None
    assert parse_int("-" + "1" * 5000) is None
    assert parse_int("0" * 5000 + "7") == 7
    assert pub_date_to_timestamp("9" * 5000) == 0
    assert time_to_seconds("9" * 5000) == 30 * 60


def test_sanitize_url_passes_latin1_through():
    assert sanitize_url("") == ""
    assert sanitize_url("https://example.com/café.mp3") == "https://example.com/café.mp3"


def test_sanitize_url_percent_encodes_wide_code_points():
    assert sanitize_url("http://a/日本") == "http%3A%2F%2Fa%2F%E6%97%A5%E6%9C%AC"


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/episode.mp3",
        "http://a/日本",
        "https://example.com/" + "x" * 1000,
        "https://example.com/" + "音" * 500,
    ],
)
def test_sanitize_url_caps_length_and_is_idempotent(url):
    once = sanitize_url(url)
    assert len(once) <= 768
    assert sanitize_url(once) == once


@pytest.mark.parametrize(
    "value,expected",
    [
        ("", 0),
        ("   ", 0),
        ("1704067200", 1704067200),
        ("Mon, 01 Jan 2024 00:00:00 GMT", 1704067200),
        ("Mon, 01 Jan 2024 01:00:00 +0100", 1704067200),
        ("2024-01-01T00:00:00Z", 1704067200),
        ("2024-01-01T01:00:00+01:00", 1704067200),
        ("2024-01-01 00:00:00+00:00", 1704067200),
        ("2024-01-01", 0),
        ("not a date", 0),
    ],
)
def test_pub_date_to_timestamp(value, expected):
    assert pub_date_to_timestamp(value) == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        ("01:02", 62),
        ("1:00:00", 3600),
        (" 5:00 ", 300),
        ("aa:10", 10),
        ("1:xx:05", 3605),
        ("90", 90),
        ("abc", 1800),
        ("", 1800),
    ],
)
def test_time_to_seconds(value, expected):
    assert time_to_seconds(value) == expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Episode 42", "42"),
        ("#123", "123"),
        ("S01E05", "105"),
        ("42.5", "425"),
        ("No numbers here", None),
        ("Ep 999 Special", "999"),
        ("12345678", "1000000"),
        ("9" * 5000, "1000000"),
        ("0" * 5000 + "7", "7"),
    ],
)
def test_parse_episode_number(text, expected):
    assert parse_episode_number(text) == expected


def test_guess_enclosure_type():
    assert guess_enclosure_type("https://example.com/a.mp3") == "audio/mpeg"
    assert guess_enclosure_type("https://example.com/a.m4v?x=1") == "video/mp4"
    assert guess_enclosure_type("https://example.com/a.ogg") == "audio/ogg"
    assert guess_enclosure_type("https://example.com/a.bin") == ""


@pytest.mark.parametrize(
    "offsets_days,expected",
    [
        ([], 9),
        ([500], 9),
        ([300], 8),
        ([150], 7),
        ([1], 7),
        ([0.5, 0.25], 1),
        ([7, 8], 2),
        ([15, 16], 3),
        ([30, 35], 4),
        ([50, 90], 5),
        ([50, 150], 6),
    ],
)
def test_calculate_update_frequency(offsets_days, expected):
    pubdates = [int(NOW - days * DAY) for days in offsets_days]
    assert calculate_update_frequency(pubdates, now=NOW) == expected


def test_is_true_flag():
    accepted = frozenset({"yes", "true"})
    assert is_true_flag(" YES ", accepted)
    assert is_true_flag("True", accepted)
    assert not is_true_flag("no", accepted)
