"""Streaming XML tokenizer producing start/text/end events in document order.

lxml's pull parser builds elements incrementally; text is recovered from the
``text``/``tail`` slots of the partial tree at the moment the following
start tag, comment, processing instruction or end tag is reported.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterator, Mapping, NamedTuple, Optional, Union

from lxml import etree

from .entities import HTML_ENTITIES, substitute_entities

if TYPE_CHECKING:
    from lxml.etree import _Element

DEFAULT_CHUNK_SIZE = 64 * 1024

_PULL_EVENTS = ("start", "end", "comment", "pi")
_XML_WHITESPACE = " \t\r\n"

_RE_XML_DECL_ENCODING = re.compile(
    r'(<\?xml[^>]*encoding=["\'])([^"\']+)(["\'][^>]*\?>)', re.IGNORECASE
)
_RE_XML_DECL_ENCODING_BYTES = re.compile(
    rb'(<\?xml[^>]*encoding=["\'])([^"\']+)(["\'][^>]*\?>)', re.IGNORECASE
)
_RE_UTF16_ENCODING_BYTES = re.compile(
    rb'(<\?xml[^>]*encoding=["\'])utf-16(-le|-be)?(["\'][^>]*\?>)', re.IGNORECASE
)
_RE_DOUBLE_XML_DECL_BYTES = re.compile(rb"<\?xml\?xml\s+", re.IGNORECASE)
_RE_DOUBLE_CLOSE_BYTES = re.compile(rb"\?\?>\s*")


class ElementName(NamedTuple):
    local: str
    prefix: Optional[str] = None
    namespace: Optional[str] = None


class StartElement(NamedTuple):
    name: ElementName
    attributes: list[tuple[str, str]]


class Characters(NamedTuple):
    text: str


class EndElement(NamedTuple):
    name: ElementName


class ErrorEvent(NamedTuple):
    message: str


Event = Union[StartElement, Characters, EndElement, ErrorEvent]


def _detect_xml_encoding(content: bytes) -> str:
    """Encoding named by the BOM or XML declaration; 'utf-8' when neither says."""
    if content.startswith((b"\xff\xfe", b"\xfe\xff")):
        return "utf-16"
    if content.startswith(b"\xef\xbb\xbf"):
        return "utf-8"

    encoding_match = _RE_XML_DECL_ENCODING_BYTES.search(content[:2000])
    if encoding_match:
        return encoding_match.group(2).decode("ascii", errors="replace").lower()
    return "utf-8"


def _fix_xml_declaration(content: bytes, actual_encoding: str = "utf-8") -> bytes:
    # Declarations only live at the top of the file.
    header = content[:2048]
    tail = content[2048:]

    # "<?xml?xml version=..." and "??>" typos
    header = _RE_DOUBLE_XML_DECL_BYTES.sub(b"<?xml ", header)
    header = _RE_DOUBLE_CLOSE_BYTES.sub(b"?>", header)

    # Feeds transcoded to a single-byte encoding that still claim utf-16
    if actual_encoding.lower() != "utf-16":
        replacement = (
            rb"\1" + actual_encoding.encode("ascii", errors="replace") + rb"\3"
        )
        header = _RE_UTF16_ENCODING_BYTES.sub(replacement, header)

    return header + tail


def _ensure_utf8_xml_declaration(content: str) -> str:
    """Ensure the XML declaration's encoding matches the UTF-8 bytes we emit."""
    if not content.lstrip().startswith("<?xml"):
        return content
    return _RE_XML_DECL_ENCODING.sub(r"\1utf-8\3", content, count=1)


def _clean_feed_bytes(content: bytes) -> bytes:
    """Clean feed bytes by extracting the XML document (if it's embedded in junk)."""
    stripped_content = content.lstrip()
    preview_lower = stripped_content[:2000].lower()

    # Skip UTF-8 BOM when doing ASCII prefix checks
    if preview_lower.startswith(b"\xef\xbb\xbf"):
        preview_lower = preview_lower[3:]
        stripped_content = stripped_content[3:]

    if preview_lower.startswith((b"<?xml", b"<rss", b"<feed", b"<rdf")):
        return stripped_content

    if preview_lower.startswith(b"<!doctype html") or preview_lower.startswith(
        b"<html"
    ):
        raise ValueError("Content appears to be HTML, not a valid RSS/Atom feed")

    xml_start_patterns = (
        b"<?xml",
        b"<rss",
        b"<feed",
        b"<rdf:rdf",
        b"<?xml-stylesheet",
    )

    search_chunk = content[: min(len(content), 8192)].lower()
    earliest = -1
    for pattern in xml_start_patterns:
        idx = search_chunk.find(pattern)
        if idx != -1 and (earliest == -1 or idx < earliest):
            earliest = idx
    if earliest != -1:
        return content[earliest:]

    return content


def prepare_payload(
    content: Union[str, bytes], entities: Mapping[str, str] = HTML_ENTITIES
) -> bytes:
    """Return parser-ready bytes: junk trimmed, separators fixed, entities mapped."""
    if isinstance(content, str):
        content = _ensure_utf8_xml_declaration(content).encode(
            "utf-8", errors="replace"
        )

    cleaned = _clean_feed_bytes(content)

    # U+2028 / U+2029 are invalid in XML 1.0 and make libxml2 fail.
    if b"\xe2\x80\xa8" in cleaned or b"\xe2\x80\xa9" in cleaned:
        cleaned = cleaned.replace(b"\xe2\x80\xa8", b"\n").replace(
            b"\xe2\x80\xa9", b"\n"
        )

    actual_encoding = _detect_xml_encoding(cleaned)
    if actual_encoding.startswith("utf-16") and b"\x00" not in cleaned[:200]:
        actual_encoding = "utf-8"

    head = cleaned[:200].lower()
    if (
        b"?xml?xml" in head
        or b"??>" in head
        or (b"utf-16" in head and actual_encoding != "utf-16")
    ):
        cleaned = _fix_xml_declaration(cleaned, actual_encoding=actual_encoding)

    return substitute_entities(cleaned, entities)


def _new_parser(recover: bool) -> etree.XMLPullParser:
    return etree.XMLPullParser(
        events=_PULL_EVENTS,
        ns_clean=True,
        recover=recover,
        collect_ids=False,
        resolve_entities=False,
        no_network=True,
        huge_tree=True,
    )


def _split_tag(tag: str) -> tuple[Optional[str], str]:
    if tag.startswith("{"):
        namespace, local = tag[1:].split("}", 1)
        return namespace, local
    return None, tag


def _element_name(element: _Element) -> ElementName:
    namespace, local = _split_tag(element.tag)
    prefix = element.prefix
    # Recovered documents keep undeclared prefixes inside the tag itself.
    if namespace is None and ":" in local:
        prefix, local = local.split(":", 1)
    return ElementName(local=local, prefix=prefix, namespace=namespace)


def _attributes(element: _Element) -> list[tuple[str, str]]:
    attributes = []
    for key, value in element.attrib.items():
        local = _split_tag(key)[1]
        if ":" in local:
            local = local.split(":", 1)[1]
        attributes.append((local, value))
    return attributes


def _meaningful(text: Optional[str]) -> bool:
    return bool(text) and bool(text.strip(_XML_WHITESPACE))


def _preceding_text(node: _Element) -> Optional[str]:
    previous = node.getprevious()
    if previous is not None:
        return previous.tail
    parent = node.getparent()
    return parent.text if parent is not None else None


def _translate(events: Iterator[tuple[str, _Element]]) -> Iterator[Event]:
    for action, node in events:
        if action == "end":
            text = node[-1].tail if len(node) else node.text
            if _meaningful(text):
                yield Characters(text)
            yield EndElement(_element_name(node))
            # Children are fully reported; drop them to keep memory flat.
            del node[:]
            continue

        text = _preceding_text(node)
        if _meaningful(text):
            yield Characters(text)
        if action == "start":
            yield StartElement(_element_name(node), _attributes(node))


def iter_events(
    content: Union[str, bytes],
    *,
    recover: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    entities: Mapping[str, str] = HTML_ENTITIES,
) -> Iterator[Event]:
    """Yield the document's events; a parse failure ends with an ``ErrorEvent``.

    Events produced before the failure point are always yielded first.
    """
    try:
        payload = prepare_payload(content, entities)
    except ValueError as e:
        yield ErrorEvent(str(e))
        return

    parser = _new_parser(recover)
    error: Optional[etree.XMLSyntaxError] = None
    for offset in range(0, len(payload), chunk_size):
        try:
            parser.feed(payload[offset : offset + chunk_size])
        except etree.XMLSyntaxError as e:
            error = e
        yield from _translate(parser.read_events())
        if error is not None:
            yield ErrorEvent(str(error))
            return

    try:
        parser.close()
    except etree.XMLSyntaxError as e:
        error = e
    yield from _translate(parser.read_events())
    if error is not None:
        yield ErrorEvent(str(error))
