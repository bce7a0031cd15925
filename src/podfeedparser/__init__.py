from .main import FeedParserDict, FeedStats, FeedFile, parse, process_feed, read_feed_file

__all__ = [
    "FeedParserDict",
    "FeedStats",
    "FeedFile",
    "parse",
    "process_feed",
    "read_feed_file",
]
