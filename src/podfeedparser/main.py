from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from .finalize import finalize_channel
from .namespaces import qualified_name
from .outputs import CollectingSink, RecordSink
from .state import ParserState
from .tags import dispatch_end, dispatch_start, dispatch_text
from .tokenizer import (
    DEFAULT_CHUNK_SIZE,
    Characters,
    EndElement,
    ErrorEvent,
    StartElement,
    iter_events,
)
from .utils import INT64_MAX, parse_int

logger = logging.getLogger(__name__)

NO_ETAG = "[[NO_ETAG]]"
_HEADER_LINES = 4
_XML_WHITESPACE = " \t\r\n"


class FeedParserDict(dict):
    """A dictionary that allows access to its keys as attributes."""

    def __getattr__(self, name: str) -> Any:
        try:
            return self[name]
        except KeyError:
            raise AttributeError(
                f"'FeedParserDict' object has no attribute '{name}'"
            )

    def __setattr__(self, name: str, value: Any) -> None:
        self[name] = value


@dataclass
class FeedStats:
    channels: int = 0
    items: int = 0
    truncated: bool = False
    error: Optional[str] = None


@dataclass
class FeedFile:
    """A downloaded feed: the crawler's metadata header plus the raw XML."""

    name: str
    feed_id: Optional[int]
    last_modified: Optional[int]
    etag: Optional[str]
    url: Optional[str]
    downloaded: Optional[int]
    payload: bytes


def feed_id_from_file_name(name: str) -> Optional[int]:
    """``"424242_200.txt"`` -> ``424242``; anything else -> ``None``."""
    stem = Path(name).stem
    return parse_int(stem.split("_", 1)[0], -INT64_MAX - 1, INT64_MAX)


def _header_int(line: Optional[str]) -> Optional[int]:
    if line is None:
        return None
    return parse_int(line, -INT64_MAX - 1, INT64_MAX)


def read_feed_file(path: Union[str, Path]) -> FeedFile:
    """Read a feed file: four header lines followed by the XML document.

    The header holds the Last-Modified epoch, the ETag (``[[NO_ETAG]]`` when
    absent), the feed URL and the download epoch.  Missing lines read as
    ``None``.  ``OSError`` propagates to the caller.
    """
    path = Path(path)
    header: list[Optional[str]] = []
    with path.open("rb") as f:
        for _ in range(_HEADER_LINES):
            line = f.readline()
            if not line:
                header.append(None)
                continue
            header.append(line.decode("utf-8", errors="replace").rstrip("\r\n"))
        payload = f.read()

    last_modified, etag, url, downloaded = header
    return FeedFile(
        name=path.name,
        feed_id=feed_id_from_file_name(path.name),
        last_modified=_header_int(last_modified),
        etag=None if not etag or etag == NO_ETAG else etag,
        url=url or None,
        downloaded=_header_int(downloaded),
        payload=payload,
    )


def _is_blank(payload: Union[str, bytes]) -> bool:
    if isinstance(payload, bytes):
        return not payload.strip(_XML_WHITESPACE.encode())
    return not payload.strip(_XML_WHITESPACE)


def process_feed(
    payload: Union[str, bytes],
    feed_id: Optional[int],
    sink: RecordSink,
    *,
    now: Optional[int] = None,
    recover: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    source_name: Optional[str] = None,
) -> FeedStats:
    """Parse one feed document and write its records to ``sink``.

    Item records are written as their item closes, the channel record when
    the channel closes.  A tokenizer error stops processing; records written
    before it stand.
    """
    stats = FeedStats()
    state = ParserState(feed_id=feed_id, now=now)

    if _is_blank(payload):
        sink.write(finalize_channel(state).to_sql_insert())
        stats.channels = 1
        return stats

    for event in iter_events(payload, recover=recover, chunk_size=chunk_size):
        if isinstance(event, Characters):
            dispatch_text(state.current_element, event.text, state)
        elif isinstance(event, StartElement):
            name = event.name
            state.current_element = qualified_name(
                name.local, name.prefix, name.namespace
            )
            dispatch_start(state.current_element, event.attributes, state)
        elif isinstance(event, EndElement):
            name = event.name
            state.current_element = qualified_name(
                name.local, name.prefix, name.namespace
            )
            record = dispatch_end(state.current_element, state)
            if record is None:
                continue
            sink.write(record.to_sql_insert())
            if record.TABLE == "newsfeeds":
                stats.channels += 1
            else:
                stats.items += 1
        elif isinstance(event, ErrorEvent):
            logger.warning(
                "Error parsing XML in %s: %s",
                source_name or f"feed {feed_id}",
                event.message,
            )
            stats.truncated = True
            stats.error = event.message
            break

    return stats


def parse(
    source: Union[str, bytes],
    feed_id: Optional[int] = None,
    *,
    now: Optional[int] = None,
) -> FeedParserDict:
    """Parse a feed document into its ``newsfeeds`` and ``nfitems`` rows.

    Each row is a :class:`FeedParserDict` keyed by column name.

    Example::

        >>> feed = parse(b"<rss><channel><title>Show</title></channel></rss>")
        >>> feed.newsfeeds[0].title
        'Show'
    """
    sink = CollectingSink()
    process_feed(source, feed_id, sink, now=now)
    return FeedParserDict(
        newsfeeds=[
            FeedParserDict(zip(record.columns, record.values))
            for record in sink.by_table("newsfeeds")
        ],
        nfitems=[
            FeedParserDict(zip(record.columns, record.values))
            for record in sink.by_table("nfitems")
        ],
    )
