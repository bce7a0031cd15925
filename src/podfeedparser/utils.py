from __future__ import annotations

import datetime
import re
import time
from email.utils import parsedate_to_datetime
from functools import lru_cache
from typing import Iterable, Optional
from urllib.parse import quote

from dateutil import parser as dateutil_parser

_UTC = datetime.timezone.utc

INT32_MAX = 2147483647
INT64_MAX = 9223372036854775807
# Largest enclosure length accepted; anything above is treated as garbage.
MAX_ENCLOSURE_LENGTH = 922337203685477580
MAX_EPISODE_NUMBER = 1000000
MAX_URL_LENGTH = 768
DEFAULT_DURATION_SECONDS = 30 * 60

_RE_INTEGER = re.compile(r"[+-]?[0-9]+")
_RE_NON_DIGITS = re.compile(r"[^0-9]")
_RE_LINE_BREAKS = re.compile(r"\r\n|\n|\r")
_RE_NON_LATIN = re.compile(r"[^\x00-\xff]")

_ENCLOSURE_TYPES: tuple[tuple[str, str], ...] = (
    (".m4v", "video/mp4"),
    (".mp4", "video/mp4"),
    (".avi", "video/avi"),
    (".mov", "video/quicktime"),
    (".mp3", "audio/mpeg"),
    (".m4a", "audio/mp4"),
    (".wav", "audio/wav"),
    (".ogg", "audio/ogg"),
    (".wmv", "video/x-ms-wmv"),
)

_DAY = 24 * 60 * 60


def truncate_string(value: str, length: int) -> str:
    return value[:length]


def truncate_int(number: int) -> int:
    """Clamp to the symmetric signed 32-bit range used by the database."""
    return max(-INT32_MAX, min(INT32_MAX, number))


def clean_string(value: str) -> str:
    return _RE_LINE_BREAKS.sub("", value.strip())


def parse_int(
    value: str, minimum: int = -INT32_MAX - 1, maximum: int = INT32_MAX
) -> Optional[int]:
    """Strict integer parse: optional sign and digits, inside the given range."""
    if not _RE_INTEGER.fullmatch(value):
        return None
    # Too many digits to fit the range; int() also rejects very long strings.
    significant = value.lstrip("+-").lstrip("0") or "0"
    if len(significant) > len(str(max(maximum, -minimum))):
        return None
    number = -int(significant) if value.startswith("-") else int(significant)
    if number < minimum or number > maximum:
        return None
    return number


def _contains_non_latin(value: str) -> bool:
    return any(ord(char) > 0xFF for char in value)


def sanitize_url(url: str) -> str:
    """Percent-encode URLs carrying non Latin-1 code points and cap the length."""
    if not url:
        return ""

    if _contains_non_latin(url):
        new_url = truncate_string(quote(url, safe="", errors="replace"), MAX_URL_LENGTH)
        if _contains_non_latin(new_url):
            new_url = _RE_NON_LATIN.sub(" ", new_url)
        return truncate_string(new_url, MAX_URL_LENGTH)

    return truncate_string(url, MAX_URL_LENGTH)


def _ensure_utc(dt: datetime.datetime) -> Optional[datetime.datetime]:
    """Return a timezone-aware datetime normalized to UTC."""
    try:
        return dt.replace(tzinfo=_UTC) if dt.tzinfo is None else dt.astimezone(_UTC)
    except (ValueError, OverflowError):
        return None


def _parse_rfc2822(value: str) -> Optional[datetime.datetime]:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    return _ensure_utc(parsed)


def _parse_rfc3339(value: str) -> Optional[datetime.datetime]:
    # RFC 3339 requires a full date-time with an explicit offset.
    if len(value) < 20 or value[10] not in ("T", "t", " "):
        return None
    try:
        parsed = dateutil_parser.isoparse(value.replace(" ", "T", 1))
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return None
    return _ensure_utc(parsed)


@lru_cache(maxsize=8192)
def pub_date_to_timestamp(pub_date: str) -> int:
    """Convert a feed date to UTC epoch seconds; 0 when it cannot be parsed.

    Accepts values that are already epoch integers, RFC-2822 dates (the RSS
    convention) and RFC-3339 timestamps (Atom).
    """
    candidate = pub_date.strip()
    if not candidate:
        return 0

    number = parse_int(candidate, -INT64_MAX - 1, INT64_MAX)
    if number is not None:
        return number

    parsed = _parse_rfc2822(candidate) or _parse_rfc3339(candidate)
    if parsed is None:
        return 0
    return int(parsed.timestamp())


def time_to_seconds(time_string: str) -> int:
    """Convert an ``itunes:duration`` value to seconds.

    ``"01:02"`` is 62 seconds and ``"1:00:00"`` is 3600.  Unparsable segments
    count as zero; a value without colons that is not an integer falls back
    to half an hour.
    """
    parts = time_string.strip().split(":")

    if len(parts) == 2:
        minutes = parse_int(parts[0]) or 0
        seconds = parse_int(parts[1]) or 0
        return minutes * 60 + seconds
    if len(parts) == 3:
        hours = parse_int(parts[0]) or 0
        minutes = parse_int(parts[1]) or 0
        seconds = parse_int(parts[2]) or 0
        return hours * 3600 + minutes * 60 + seconds

    seconds = parse_int(time_string.strip())
    return DEFAULT_DURATION_SECONDS if seconds is None else seconds


def parse_episode_number(text: str) -> Optional[str]:
    """Keep only the digits of an episode label, clamped to one million.

    ``"S01E05"`` yields ``"105"``; text without digits yields ``None``.
    """
    digits = _RE_NON_DIGITS.sub("", text)
    if not digits:
        return None
    digits = digits.lstrip("0") or "0"
    if len(digits) > len(str(MAX_EPISODE_NUMBER)):
        return str(MAX_EPISODE_NUMBER)
    return str(min(int(digits), MAX_EPISODE_NUMBER))


def guess_enclosure_type(url: str) -> str:
    """Guess a MIME type for a media enclosure from its file extension."""
    for extension, mime_type in _ENCLOSURE_TYPES:
        if extension in url:
            return mime_type
    return ""


def current_timestamp() -> int:
    return int(time.time())


def calculate_update_frequency(
    pubdates: Iterable[int], now: Optional[int] = None
) -> int:
    """Classify how actively a feed publishes, from 1 (very often) to 9 (dead).

    ``7`` is reachable both for feeds silent for 100-400 days and for feeds
    with a single episode in the last 400 days.
    """
    if now is None:
        now = current_timestamp()
    pubdates = list(pubdates)

    def newer_than(days: int) -> int:
        threshold = now - days * _DAY
        return sum(1 for pubdate in pubdates if pubdate > threshold)

    if newer_than(400) == 0:
        return 9
    if newer_than(200) == 0:
        return 8
    if newer_than(100) == 0:
        return 7
    if newer_than(5) > 1:
        return 1
    if newer_than(10) > 1:
        return 2
    if newer_than(20) > 1:
        return 3
    if newer_than(40) > 1:
        return 4
    if newer_than(100) > 1:
        return 5
    if newer_than(200) > 1:
        return 6
    if newer_than(400) >= 1:
        return 7
    return 0


def is_true_flag(value: str, accepted: frozenset[str]) -> bool:
    return value.strip().lower() in accepted
