from __future__ import annotations

from typing import Optional

ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
PODCAST_NS = "https://podcastindex.org/namespace/1.0"
PODCAST_NS_LEGACY = "http://podcastindex.org/namespace/1.0"
ATOM_NS = "http://www.w3.org/2005/Atom"

_PODCAST_NAMESPACES = frozenset({PODCAST_NS, PODCAST_NS_LEGACY})


def qualified_name(
    local_name: str,
    prefix: Optional[str] = None,
    namespace: Optional[str] = None,
) -> str:
    """Return the dispatch key for an element name.

    The well-known podcast namespaces are normalized to their conventional
    prefix whether the document bound them to that prefix, to another prefix
    or to the default namespace, so ``<feed xmlns="...Atom">`` children and
    ``<atom:link>`` resolve to the same ``atom:`` keys.
    """
    if prefix == "itunes" or namespace == ITUNES_NS:
        return "itunes:" + local_name
    if prefix == "podcast" or namespace in _PODCAST_NAMESPACES:
        return "podcast:" + local_name
    if prefix == "atom" or namespace == ATOM_NS:
        return "atom:" + local_name
    if prefix:
        return f"{prefix}:{local_name}"
    return local_name
