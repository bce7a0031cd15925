from podfeedparser import parse, process_feed
from podfeedparser.outputs import CollectingSink


def test_parse_str_with_non_utf8_xml_declaration():
    xml = (
        '<?xml version="1.0" encoding="iso-8859-1"?>'
        '<rss version="2.0">'
        "<channel>"
        "<title>café</title>"
        '<item><title>café</title><enclosure url="https://example.com/a.mp3"/></item>'
        "</channel>"
        "</rss>"
    )
    feed = parse(xml)
    assert feed.newsfeeds[0].title == "café"
    assert feed.nfitems[0].title == "café"


def test_parse_bytes_with_non_utf8_encoding():
    xml_bytes = (
        b'<?xml version="1.0" encoding="iso-8859-1"?>'
        b'<rss version="2.0">'
        b"<channel>"
        b"<title>caf\xe9</title>"
        b'<item><title>caf\xe9</title><enclosure url="https://example.com/a.mp3"/></item>'
        b"</channel>"
        b"</rss>"
    )
    feed = parse(xml_bytes)
    assert feed.newsfeeds[0].title == "café"
    assert feed.nfitems[0].title == "café"


def test_utf16_declaration_on_single_byte_content():
    xml_bytes = (
        b'<?xml version="1.0" encoding="UTF-16"?>'
        b"<rss><channel><title>Show</title>"
        b'<item><title>Ep</title><enclosure url="https://example.com/a.mp3"/></item>'
        b"</channel></rss>"
    )
    feed = parse(xml_bytes)
    assert feed.newsfeeds[0].title == "Show"
    assert len(feed.nfitems) == 1
    assert feed.nfitems[0].title == "Ep"


def test_doubled_xml_declaration_is_repaired():
    xml_bytes = (
        b'<?xml?xml version="1.0"??>'
        b"<rss><channel><title>Typo</title></channel></rss>"
    )
    assert parse(xml_bytes).newsfeeds[0].title == "Typo"


def test_html_entities_resolve_in_text():
    xml = (
        b"<rss><channel>"
        b"<title>Caf&eacute;&nbsp;Society &amp; Friends&hellip;</title>"
        b"</channel></rss>"
    )
    feed = parse(xml)
    assert feed.newsfeeds[0].title == "Café\u00a0Society & Friends\u2026"


def test_entities_inside_cdata_are_left_alone():
    xml = (
        b"<rss><channel>"
        b"<description><![CDATA[Fish &eacute; <b>chips</b>]]></description>"
        b"</channel></rss>"
    )
    feed = parse(xml)
    assert feed.newsfeeds[0].description == "Fish &eacute; <b>chips</b>"


def test_leading_junk_before_xml_declaration_is_dropped():
    xml = (
        b"Warning: something went wrong on line 3\n"
        b'<?xml version="1.0" encoding="utf-8"?>'
        b"<rss><channel><title>Recovered</title></channel></rss>"
    )
    feed = parse(xml)
    assert feed.newsfeeds[0].title == "Recovered"


def test_utf8_bom_is_skipped():
    xml = b"\xef\xbb\xbf<rss><channel><title>BOM</title></channel></rss>"
    assert parse(xml).newsfeeds[0].title == "BOM"


def test_line_separator_characters_do_not_break_parsing():
    xml = "<rss><channel><title>one\u2028two</title></channel></rss>".encode()
    assert parse(xml).newsfeeds[0].title == "onetwo"


def test_html_document_produces_no_records():
    sink = CollectingSink()
    stats = process_feed(b"<!doctype html><html><body>nope</body></html>", 7, sink)
    assert sink.records == []
    assert stats.truncated
    assert "HTML" in stats.error
