from podfeedparser.namespaces import (
    ATOM_NS,
    ITUNES_NS,
    PODCAST_NS,
    PODCAST_NS_LEGACY,
    qualified_name,
)


def test_known_prefixes():
    assert qualified_name("image", "itunes") == "itunes:image"
    assert qualified_name("funding", "podcast") == "podcast:funding"
    assert qualified_name("link", "atom") == "atom:link"


def test_namespace_uri_wins_over_unusual_prefix():
    assert qualified_name("author", "it", ITUNES_NS) == "itunes:author"
    assert qualified_name("value", "pi", PODCAST_NS) == "podcast:value"
    assert qualified_name("value", "pi", PODCAST_NS_LEGACY) == "podcast:value"
    assert qualified_name("link", "a10", ATOM_NS) == "atom:link"


def test_default_namespace_atom_document():
    assert qualified_name("entry", None, ATOM_NS) == "atom:entry"
    assert qualified_name("feed", None, ATOM_NS) == "atom:feed"


def test_other_prefix_and_bare_names():
    assert qualified_name("encoded", "content") == "content:encoded"
    assert qualified_name("channel") == "channel"
    assert qualified_name("title", "") == "title"
