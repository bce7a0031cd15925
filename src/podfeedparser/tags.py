"""Per-tag handlers and the static dispatch tables that route events to them.

Keys are the qualified names produced by :func:`namespaces.qualified_name`.
A key missing from a table is a no-op.  Two text disciplines coexist:
"accumulate" handlers append every text event of the element, while
"first write" handlers ignore text once their field holds a value.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Union

from . import finalize
from .models import (
    NewsfeedsRecord,
    NfitemsRecord,
    PodcastChapter,
    PodcastPerson,
    PodcastSoundbite,
    PodcastTranscript,
    PodcastValue,
    PodcastValueModel,
    PodcastValueRecipient,
)
from .state import ChannelSubScope, FeedType, ItemSubScope, ParserState
from .utils import (
    is_true_flag,
    parse_episode_number,
    parse_int,
    time_to_seconds,
    truncate_string,
)

logger = logging.getLogger(__name__)

Attributes = Sequence[tuple[str, str]]
Record = Union[NewsfeedsRecord, NfitemsRecord]

StartHandler = Callable[[Attributes, ParserState], None]
TextHandler = Callable[[str, ParserState], None]
EndHandler = Callable[[ParserState], Optional[Record]]

_EXPLICIT_VALUES = frozenset({"true", "yes", "explicit", "1"})
_LOCKED_VALUES = frozenset({"yes", "true"})
_FEE_VALUES = frozenset({"true", "yes"})


def _attr(attributes: Attributes, name: str) -> Optional[str]:
    for key, value in attributes:
        if key == name:
            return value
    return None


def _is_http_url(url: str) -> bool:
    return url.strip().startswith(("http://", "https://"))


# -- channel / item containers ------------------------------------------------


def _start_rss_channel(attributes: Attributes, state: ParserState) -> None:
    state.open_channel(FeedType.RSS)


def _start_atom_feed(attributes: Attributes, state: ParserState) -> None:
    state.open_channel(FeedType.ATOM)


def _end_channel(state: ParserState) -> Optional[Record]:
    if not state.in_channel:
        return None
    record = finalize.finalize_channel(state)
    state.close_channel()
    return record


def _start_item(attributes: Attributes, state: ParserState) -> None:
    state.open_item()


def _end_item(state: ParserState) -> Optional[Record]:
    if not state.in_item:
        return None
    record: Optional[NfitemsRecord] = None
    if state.item.has_valid_enclosure:
        record = finalize.finalize_item(state)
        state.channel.item_pubdates.append(record.pub_date)
        state.channel.item_count += 1
    else:
        logger.debug("Dropping item without a valid enclosure (feed %s)", state.feed_id)
    state.close_item()
    return record


# -- sub-element scopes -------------------------------------------------------


def _start_image(attributes: Attributes, state: ParserState) -> None:
    if state.in_item:
        state.enter_item_sub(ItemSubScope.IMAGE)
    elif state.in_channel:
        state.enter_channel_sub(ChannelSubScope.IMAGE)


def _end_image(state: ParserState) -> None:
    if state.in_item:
        state.leave_item_sub(ItemSubScope.IMAGE)
    else:
        state.leave_channel_sub(ChannelSubScope.IMAGE)


def _start_itunes_owner(attributes: Attributes, state: ParserState) -> None:
    if state.in_channel:
        state.enter_channel_sub(ChannelSubScope.OWNER)


def _end_itunes_owner(state: ParserState) -> None:
    state.leave_channel_sub(ChannelSubScope.OWNER)


def _start_atom_author(attributes: Attributes, state: ParserState) -> None:
    # Only the feed-level Atom author is recorded.
    if state.in_channel and state.feed_type is FeedType.ATOM:
        state.enter_channel_sub(ChannelSubScope.ATOM_AUTHOR)


def _end_atom_author(state: ParserState) -> None:
    state.leave_channel_sub(ChannelSubScope.ATOM_AUTHOR)


def _start_alternate_enclosure(attributes: Attributes, state: ParserState) -> None:
    if state.in_item:
        state.enter_item_sub(ItemSubScope.ALTERNATE_ENCLOSURE)


def _end_alternate_enclosure(state: ParserState) -> None:
    state.leave_item_sub(ItemSubScope.ALTERNATE_ENCLOSURE)


def _in_alternate_enclosure(state: ParserState) -> bool:
    return state.item_sub is ItemSubScope.ALTERNATE_ENCLOSURE


# -- plain text fields ----------------------------------------------------------


def _text_title(data: str, state: ParserState) -> None:
    if state.in_item:
        if state.item_sub is not ItemSubScope.IMAGE:
            state.item.title += data
    elif state.in_channel and state.channel_sub is not ChannelSubScope.IMAGE:
        if not state.channel.title:
            state.channel.title = data


def _text_link(data: str, state: ParserState) -> None:
    if state.in_item:
        if state.item.link_open and state.item_sub is not ItemSubScope.IMAGE:
            state.item.link += data
    elif state.in_channel and state.channel_sub is not ChannelSubScope.IMAGE:
        if not state.channel.link:
            state.channel.link = data


def _text_description(data: str, state: ParserState) -> None:
    if state.in_item:
        if state.item_sub is not ItemSubScope.IMAGE:
            state.item.description += data
    elif state.in_channel and state.channel_sub is not ChannelSubScope.IMAGE:
        if not state.channel.description:
            state.channel.description = data


def _text_content(data: str, state: ParserState) -> None:
    if state.in_item:
        state.item.content += data


def _text_content_encoded(data: str, state: ParserState) -> None:
    if state.in_item:
        state.item.content_encoded += data


def _text_generator(data: str, state: ParserState) -> None:
    if state.in_channel and state.channel_sub is not ChannelSubScope.IMAGE:
        if not state.channel.generator:
            state.channel.generator = data


def _text_language(data: str, state: ParserState) -> None:
    if state.in_channel and not state.channel.language:
        state.channel.language = data


def _text_guid(data: str, state: ParserState) -> None:
    if state.in_item:
        state.item.guid += data


def _text_url(data: str, state: ParserState) -> None:
    text = data.strip()
    if state.in_item:
        if state.item_sub is ItemSubScope.IMAGE:
            state.item.image += text
    elif state.in_channel and state.channel_sub is ChannelSubScope.IMAGE:
        state.channel.image += text


def _text_atom_logo(data: str, state: ParserState) -> None:
    if state.in_channel and not state.channel.image:
        state.channel.image += data


def _text_atom_name(data: str, state: ParserState) -> None:
    if state.channel_sub is ChannelSubScope.ATOM_AUTHOR:
        state.channel.atom_author_name = data


def _text_atom_email(data: str, state: ParserState) -> None:
    if state.channel_sub is ChannelSubScope.ATOM_AUTHOR:
        state.channel.atom_author_email = data


# -- dates ----------------------------------------------------------------------
# The first occurrence of a date element wins; text split inside it accumulates.


def _start_pub_date(attributes: Attributes, state: ParserState) -> None:
    if state.in_item:
        state.item.pub_date_open = not state.item.pub_date
    elif state.in_channel:
        state.channel.pub_date_open = not state.channel.pub_date


def _text_pub_date(data: str, state: ParserState) -> None:
    if state.in_item:
        if state.item.pub_date_open:
            state.item.pub_date += data
    elif state.in_channel and state.channel.pub_date_open:
        state.channel.pub_date += data


def _end_pub_date(state: ParserState) -> None:
    state.item.pub_date_open = False
    state.channel.pub_date_open = False


def _start_last_build_date(attributes: Attributes, state: ParserState) -> None:
    if state.in_channel:
        state.channel.last_build_date_open = not state.channel.last_build_date


def _text_last_build_date(data: str, state: ParserState) -> None:
    if state.in_channel and state.channel.last_build_date_open:
        state.channel.last_build_date += data


def _end_last_build_date(state: ParserState) -> None:
    state.channel.last_build_date_open = False


# -- links and enclosures --------------------------------------------------------


def _set_enclosure(
    state: ParserState, url: Optional[str], length: Optional[str], mime: Optional[str]
) -> None:
    item = state.item
    if url is not None:
        item.enclosure_url = url
    if length is not None:
        item.enclosure_length = length
    if mime is not None:
        item.enclosure_type = mime
    if _is_http_url(item.enclosure_url):
        item.has_valid_enclosure = True


def _start_enclosure(attributes: Attributes, state: ParserState) -> None:
    # Only the first enclosure of an item counts.
    if not state.in_item or state.item.enclosure_url:
        return
    _set_enclosure(
        state,
        _attr(attributes, "url"),
        _attr(attributes, "length"),
        _attr(attributes, "type"),
    )


def _set_link_if_unset(state: ParserState, href: str) -> None:
    if state.in_item:
        if not state.item.link:
            state.item.link = href
    elif state.in_channel and not state.channel.link:
        state.channel.link = href


def _start_link(attributes: Attributes, state: ParserState) -> None:
    rel = _attr(attributes, "rel") or ""
    href = _attr(attributes, "href") or ""

    if rel == "alternate":
        _set_link_if_unset(state, href)
    elif rel == "enclosure":
        if state.in_item and not state.item.enclosure_url:
            state.item.enclosure_url = href
            state.item.enclosure_length = _attr(attributes, "length") or ""
            state.item.enclosure_type = _attr(attributes, "type") or ""
            if _is_http_url(href):
                state.item.has_valid_enclosure = True
    elif rel == "hub":
        if state.in_channel and not state.channel.pubsub_hub_url:
            state.channel.pubsub_hub_url = href
    elif rel == "self":
        if state.in_channel and not state.channel.pubsub_self_url:
            state.channel.pubsub_self_url = href
    elif href:
        _set_link_if_unset(state, href)

    if state.in_item:
        # Text only counts for the first link element that opens while unset.
        state.item.link_open = not state.item.link


def _end_link(state: ParserState) -> None:
    state.item.link_open = False


# -- iTunes namespace -------------------------------------------------------------


def _text_itunes_author(data: str, state: ParserState) -> None:
    if state.in_item:
        if not state.item.itunes_author:
            state.item.itunes_author = data
    elif state.in_channel and not state.channel.itunes_author:
        state.channel.itunes_author = data


def _start_itunes_category(attributes: Attributes, state: ParserState) -> None:
    if not state.in_channel:
        return
    text = (_attr(attributes, "text") or "").strip()
    if text:
        state.channel.itunes_categories.append(text)


def _start_itunes_duration(attributes: Attributes, state: ParserState) -> None:
    if state.in_item and not _in_alternate_enclosure(state):
        state.item.itunes_duration = 0


def _text_itunes_duration(data: str, state: ParserState) -> None:
    if state.in_item and not _in_alternate_enclosure(state):
        state.item.itunes_duration = time_to_seconds(data)


def _text_itunes_episode(data: str, state: ParserState) -> None:
    if not state.in_item:
        return
    state.item.itunes_episode_text += data
    episode = parse_episode_number(state.item.itunes_episode_text)
    if episode is not None:
        state.item.itunes_episode = episode


def _text_itunes_episode_type(data: str, state: ParserState) -> None:
    if state.in_item and not state.item.itunes_episode_type:
        state.item.itunes_episode_type = data


def _text_itunes_season(data: str, state: ParserState) -> None:
    if state.in_item and not state.item.itunes_season:
        state.item.itunes_season = data


def _text_itunes_explicit(data: str, state: ParserState) -> None:
    flag = 1 if is_true_flag(data, _EXPLICIT_VALUES) else 0
    if state.in_item:
        state.item.itunes_explicit = flag
    elif state.in_channel:
        state.channel.explicit = flag


def _start_itunes_image(attributes: Attributes, state: ParserState) -> None:
    href = next(
        (value for key, value in attributes if key in ("href", "url")), None
    )
    if href is None:
        return
    if state.in_item:
        state.item.itunes_image = href
    elif state.in_channel:
        state.channel.itunes_image = href


def _text_itunes_image(data: str, state: ParserState) -> None:
    if state.in_item:
        state.item.itunes_image += data
    elif state.in_channel:
        state.channel.itunes_image += data


def _text_itunes_name(data: str, state: ParserState) -> None:
    if state.channel_sub is ChannelSubScope.OWNER:
        state.channel.itunes_owner_name = data


def _text_itunes_email(data: str, state: ParserState) -> None:
    if state.channel_sub is ChannelSubScope.OWNER:
        state.channel.itunes_owner_email = data


def _text_itunes_new_feed_url(data: str, state: ParserState) -> None:
    if state.in_channel and not state.channel.itunes_new_feed_url:
        state.channel.itunes_new_feed_url = data


def _text_itunes_type(data: str, state: ParserState) -> None:
    if state.in_channel and not state.channel.itunes_type:
        state.channel.itunes_type = data


def _text_itunes_summary(data: str, state: ParserState) -> None:
    if state.in_item:
        state.item.itunes_summary += data
    elif state.in_channel:
        state.channel.itunes_summary += data


def _text_itunes_title(data: str, state: ParserState) -> None:
    if state.in_item:
        state.item.itunes_title += data


# -- Podcast namespace ------------------------------------------------------------


def _text_podcast_guid(data: str, state: ParserState) -> None:
    if state.in_channel:
        state.channel.podcast_guid += data


def _start_podcast_funding(attributes: Attributes, state: ParserState) -> None:
    url = _attr(attributes, "url")
    if state.in_item:
        state.enter_item_sub(ItemSubScope.FUNDING)
        if url is not None:
            state.item.podcast_funding_url = url
    elif state.in_channel:
        state.enter_channel_sub(ChannelSubScope.FUNDING)
        if url is not None:
            state.channel.podcast_funding_url = url


def _text_podcast_funding(data: str, state: ParserState) -> None:
    if state.in_item:
        if state.item_sub is ItemSubScope.FUNDING:
            state.item.podcast_funding_text += data
    elif state.channel_sub is ChannelSubScope.FUNDING:
        state.channel.podcast_funding_text += data


def _end_podcast_funding(state: ParserState) -> None:
    state.leave_item_sub(ItemSubScope.FUNDING)
    state.leave_channel_sub(ChannelSubScope.FUNDING)


def _start_podcast_locked(attributes: Attributes, state: ParserState) -> None:
    if not state.in_channel:
        return
    state.enter_channel_sub(ChannelSubScope.LOCKED)
    state.channel.podcast_locked_text = ""

    owner = _attr(attributes, "owner")
    if owner is not None:
        state.channel.podcast_owner = owner
    email = _attr(attributes, "email")
    if email is not None and not state.channel.podcast_owner.strip():
        state.channel.podcast_owner = email


def _text_podcast_locked(data: str, state: ParserState) -> None:
    if state.channel_sub is ChannelSubScope.LOCKED:
        state.channel.podcast_locked_text += data


def _end_podcast_locked(state: ParserState) -> None:
    if state.leave_channel_sub(ChannelSubScope.LOCKED):
        if is_true_flag(state.channel.podcast_locked_text, _LOCKED_VALUES):
            state.channel.podcast_locked = 1


def _start_podcast_person(attributes: Attributes, state: ParserState) -> None:
    if not state.in_item:
        return
    state.enter_item_sub(ItemSubScope.PERSON)
    state.item.current_person = PodcastPerson(
        name="",
        role=_attr(attributes, "role") or "",
        group=_attr(attributes, "group") or "",
        img=_attr(attributes, "img") or "",
        href=_attr(attributes, "href") or "",
    )


def _text_podcast_person(data: str, state: ParserState) -> None:
    person = state.item.current_person
    if state.item_sub is ItemSubScope.PERSON and person is not None:
        person.name += data


def _end_podcast_person(state: ParserState) -> None:
    person = state.item.current_person
    if not state.leave_item_sub(ItemSubScope.PERSON) or person is None:
        return
    state.item.persons.append(
        PodcastPerson(
            name=truncate_string(person.name, 128),
            role=truncate_string(person.role, 128),
            group=truncate_string(person.group, 128),
            img=truncate_string(person.img, 768),
            href=truncate_string(person.href, 768),
        )
    )
    state.item.current_person = None


def _start_podcast_soundbite(attributes: Attributes, state: ParserState) -> None:
    if not state.in_item:
        return
    state.enter_item_sub(ItemSubScope.SOUNDBITE)
    state.item.current_soundbite = PodcastSoundbite(
        title="",
        start=_attr(attributes, "startTime") or "",
        duration=_attr(attributes, "duration") or "",
    )


def _text_podcast_soundbite(data: str, state: ParserState) -> None:
    soundbite = state.item.current_soundbite
    if state.item_sub is ItemSubScope.SOUNDBITE and soundbite is not None:
        soundbite.title += data


def _end_podcast_soundbite(state: ParserState) -> None:
    soundbite = state.item.current_soundbite
    if not state.leave_item_sub(ItemSubScope.SOUNDBITE) or soundbite is None:
        return
    soundbite.title = truncate_string(soundbite.title, 500)
    state.item.soundbites.append(soundbite)
    state.item.current_soundbite = None


def _start_podcast_transcript(attributes: Attributes, state: ParserState) -> None:
    if not state.in_item or _in_alternate_enclosure(state):
        return
    state.item.transcripts.append(
        PodcastTranscript(
            url=_attr(attributes, "url") or "",
            type=_attr(attributes, "type") or "",
        )
    )


def _start_podcast_chapters(attributes: Attributes, state: ParserState) -> None:
    if not state.in_item or _in_alternate_enclosure(state):
        return
    state.item.chapters.append(
        PodcastChapter(
            url=_attr(attributes, "url") or "",
            type=_attr(attributes, "type") or "",
        )
    )


def _start_podcast_value(attributes: Attributes, state: ParserState) -> None:
    model = PodcastValueModel(
        type=_attr(attributes, "type") or "",
        method=_attr(attributes, "method") or "",
        suggested=_attr(attributes, "suggested") or "",
    )
    # Items sit inside channels, so the item scope is checked first.
    if state.in_item:
        state.enter_item_sub(ItemSubScope.VALUE)
        state.item.value_model = model
        state.item.value_recipients = []
    elif state.in_channel:
        state.enter_channel_sub(ChannelSubScope.VALUE)
        state.channel.value_model = model
        state.channel.value_recipients = []


def _start_podcast_value_recipient(attributes: Attributes, state: ParserState) -> None:
    if state.in_item:
        if state.item_sub is not ItemSubScope.VALUE:
            return
        recipients = state.item.value_recipients
    elif state.channel_sub is ChannelSubScope.VALUE:
        recipients = state.channel.value_recipients
    else:
        return

    recipient = PodcastValueRecipient()
    for key, value in attributes:
        if key == "name":
            recipient.name = value
        elif key == "type":
            recipient.type = value
        elif key == "address":
            recipient.address = value
        elif key == "split":
            recipient.split = parse_int(value) or 0
        elif key == "fee":
            recipient.fee = is_true_flag(value, _FEE_VALUES)
        elif key == "customKey":
            recipient.custom_key = value
        elif key == "customValue":
            recipient.custom_value = value
    recipients.append(recipient)


def _end_podcast_value(state: ParserState) -> None:
    if state.leave_item_sub(ItemSubScope.VALUE):
        scope = state.item
    elif state.leave_channel_sub(ChannelSubScope.VALUE):
        scope = state.channel
    else:
        return

    # Blocks without recipients are dropped.
    if scope.value_recipients:
        scope.values.append(
            PodcastValue(model=scope.value_model, destinations=scope.value_recipients)
        )
    scope.value_model = PodcastValueModel()
    scope.value_recipients = []


# -- dispatch tables -----------------------------------------------------------------

START_HANDLERS: dict[str, StartHandler] = {
    "channel": _start_rss_channel,
    "atom:feed": _start_atom_feed,
    "item": _start_item,
    "atom:entry": _start_item,
    "atom:author": _start_atom_author,
    "author": _start_atom_author,
    "atom:link": _start_link,
    "link": _start_link,
    "enclosure": _start_enclosure,
    "image": _start_image,
    "pubDate": _start_pub_date,
    "published": _start_pub_date,
    "atom:published": _start_pub_date,
    "atom:updated": _start_pub_date,
    "lastBuildDate": _start_last_build_date,
    "itunes:category": _start_itunes_category,
    "itunes:duration": _start_itunes_duration,
    "itunes:image": _start_itunes_image,
    "itunes:owner": _start_itunes_owner,
    "podcast:alternateEnclosure": _start_alternate_enclosure,
    "podcast:chapters": _start_podcast_chapters,
    "podcast:funding": _start_podcast_funding,
    "podcast:locked": _start_podcast_locked,
    "podcast:person": _start_podcast_person,
    "podcast:soundbite": _start_podcast_soundbite,
    "podcast:transcript": _start_podcast_transcript,
    "podcast:value": _start_podcast_value,
    "podcast:valueRecipient": _start_podcast_value_recipient,
}

TEXT_HANDLERS: dict[str, TextHandler] = {
    "title": _text_title,
    "atom:title": _text_title,
    "link": _text_link,
    "description": _text_description,
    "subtitle": _text_description,
    "atom:subtitle": _text_description,
    "atom:summary": _text_description,
    "content": _text_content,
    "atom:content": _text_content,
    "content:encoded": _text_content_encoded,
    "generator": _text_generator,
    "atom:generator": _text_generator,
    "language": _text_language,
    "guid": _text_guid,
    "id": _text_guid,
    "atom:id": _text_guid,
    "url": _text_url,
    "logo": _text_atom_logo,
    "atom:logo": _text_atom_logo,
    "name": _text_atom_name,
    "atom:name": _text_atom_name,
    "email": _text_atom_email,
    "atom:email": _text_atom_email,
    "pubDate": _text_pub_date,
    "published": _text_pub_date,
    "atom:published": _text_pub_date,
    "atom:updated": _text_pub_date,
    "lastBuildDate": _text_last_build_date,
    "itunes:author": _text_itunes_author,
    "itunes:duration": _text_itunes_duration,
    "itunes:email": _text_itunes_email,
    "itunes:episode": _text_itunes_episode,
    "itunes:episodeType": _text_itunes_episode_type,
    "itunes:explicit": _text_itunes_explicit,
    "itunes:image": _text_itunes_image,
    "itunes:name": _text_itunes_name,
    "itunes:new-feed-url": _text_itunes_new_feed_url,
    "itunes:season": _text_itunes_season,
    "itunes:summary": _text_itunes_summary,
    "itunes:title": _text_itunes_title,
    "itunes:type": _text_itunes_type,
    "podcast:funding": _text_podcast_funding,
    "podcast:guid": _text_podcast_guid,
    "podcast:locked": _text_podcast_locked,
    "podcast:person": _text_podcast_person,
    "podcast:soundbite": _text_podcast_soundbite,
}

END_HANDLERS: dict[str, EndHandler] = {
    "channel": _end_channel,
    "atom:feed": _end_channel,
    "item": _end_item,
    "atom:entry": _end_item,
    "atom:author": _end_atom_author,
    "author": _end_atom_author,
    "image": _end_image,
    "link": _end_link,
    "atom:link": _end_link,
    "pubDate": _end_pub_date,
    "published": _end_pub_date,
    "atom:published": _end_pub_date,
    "atom:updated": _end_pub_date,
    "lastBuildDate": _end_last_build_date,
    "itunes:owner": _end_itunes_owner,
    "podcast:alternateEnclosure": _end_alternate_enclosure,
    "podcast:funding": _end_podcast_funding,
    "podcast:locked": _end_podcast_locked,
    "podcast:person": _end_podcast_person,
    "podcast:soundbite": _end_podcast_soundbite,
    "podcast:value": _end_podcast_value,
}


def dispatch_start(key: str, attributes: Attributes, state: ParserState) -> None:
    handler = START_HANDLERS.get(key)
    if handler is not None:
        handler(attributes, state)


def dispatch_text(key: str, data: str, state: ParserState) -> None:
    handler = TEXT_HANDLERS.get(key)
    if handler is not None:
        handler(data, state)


def dispatch_end(key: str, state: ParserState) -> Optional[Record]:
    """Run the end handler for ``key``; returns a record when a scope finalizes."""
    handler = END_HANDLERS.get(key)
    if handler is None:
        return None
    return handler(state)
