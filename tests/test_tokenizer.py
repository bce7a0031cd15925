from podfeedparser.namespaces import ITUNES_NS
from podfeedparser.tokenizer import (
    Characters,
    ElementName,
    EndElement,
    ErrorEvent,
    StartElement,
    iter_events,
)


def _names(events):
    out = []
    for event in events:
        if isinstance(event, StartElement):
            out.append(("start", event.name.local))
        elif isinstance(event, EndElement):
            out.append(("end", event.name.local))
        elif isinstance(event, Characters):
            out.append(("text", event.text))
        else:
            out.append(("error", None))
    return out


def test_events_follow_document_order():
    events = list(iter_events(b"<a><b>x</b>tail<c/></a>"))
    assert events == [
        StartElement(ElementName("a"), []),
        StartElement(ElementName("b"), []),
        Characters("x"),
        EndElement(ElementName("b")),
        Characters("tail"),
        StartElement(ElementName("c"), []),
        EndElement(ElementName("c")),
        EndElement(ElementName("a")),
    ]


def test_whitespace_only_text_is_not_reported():
    events = list(iter_events(b"<a>\n  <b>x</b>\n  <!-- note -->\n</a>"))
    assert _names(events) == [
        ("start", "a"),
        ("start", "b"),
        ("text", "x"),
        ("end", "b"),
        ("end", "a"),
    ]


def test_text_around_comment_is_kept_in_order():
    events = list(iter_events(b"<a>one<!-- c -->two</a>"))
    assert _names(events) == [
        ("start", "a"),
        ("text", "one"),
        ("text", "two"),
        ("end", "a"),
    ]


def test_namespaced_element_carries_prefix_and_uri():
    xml = (
        b'<rss xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">'
        b"<itunes:author>A</itunes:author></rss>"
    )
    starts = [e for e in iter_events(xml) if isinstance(e, StartElement)]
    assert starts[1].name == ElementName("author", "itunes", ITUNES_NS)


def test_attributes_keep_document_order_and_local_names():
    xml = (
        b'<rss xmlns:x="urn:x">'
        b'<enclosure url="u" length="1" type="t" x:extra="e"/></rss>'
    )
    starts = [e for e in iter_events(xml) if isinstance(e, StartElement)]
    assert starts[1].attributes == [
        ("url", "u"),
        ("length", "1"),
        ("type", "t"),
        ("extra", "e"),
    ]


def test_named_entities_are_resolved():
    events = list(iter_events(b"<a>caf&eacute; &amp; cr&egrave;me</a>"))
    assert Characters("café & crème") in events


def test_cdata_arrives_as_characters():
    events = list(iter_events(b"<a><![CDATA[&eacute; <b>bold</b>]]></a>"))
    assert Characters("&eacute; <b>bold</b>") in events


def test_small_chunks_give_the_same_events():
    xml = b"<rss><channel><title>Chunked title</title><link>https://x</link></channel></rss>"
    assert list(iter_events(xml, chunk_size=3)) == list(iter_events(xml))


def test_malformed_document_ends_with_error():
    events = list(iter_events(b"<a><b>text</a>"))
    assert isinstance(events[-1], ErrorEvent)
    assert sum(isinstance(e, ErrorEvent) for e in events) == 1
    assert events[0] == StartElement(ElementName("a"), [])


def test_recover_mode_keeps_going():
    events = list(iter_events(b"<a><b>text</a>", recover=True))
    assert not any(isinstance(e, ErrorEvent) for e in events)
    assert Characters("text") in events


def test_html_is_rejected():
    events = list(iter_events(b"<!DOCTYPE html><html></html>"))
    assert len(events) == 1
    assert isinstance(events[0], ErrorEvent)
