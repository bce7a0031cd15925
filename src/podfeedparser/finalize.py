"""Turn a closed channel or item scope into its canonical record."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from .models import NewsfeedsRecord, NfitemsRecord, PodcastValue
from .state import ParserState
from .utils import (
    INT64_MAX,
    MAX_ENCLOSURE_LENGTH,
    calculate_update_frequency,
    clean_string,
    guess_enclosure_type,
    parse_int,
    pub_date_to_timestamp,
    sanitize_url,
    truncate_int,
    truncate_string,
)

_RE_ESCAPED_AMPERSAND = re.compile(re.escape("&amp;"), re.IGNORECASE)

CHANNEL_TITLE_LENGTH = 768
ITEM_TITLE_LENGTH = 1024
GUID_LENGTH = 740
GUID_FROM_ENCLOSURE_LENGTH = 738
OWNER_LENGTH = 255


def select_value_block(blocks: Sequence[PodcastValue]) -> Optional[PodcastValue]:
    """Pick the value block to publish.

    Blocks without recipients never qualify.  Among the rest a ``lightning``
    block is preferred, otherwise the first one declared wins.
    """
    candidates = [block for block in blocks if block.destinations]
    if not candidates:
        return None
    for block in candidates:
        if block.model.type.strip().lower() == "lightning":
            return block
    return candidates[0]


def _first_non_empty(*values: str) -> str:
    for value in values:
        if value.strip():
            return value
    return ""


def finalize_channel(state: ParserState) -> NewsfeedsRecord:
    channel = state.channel

    # Items dated in the future do not count towards activity.
    pubdates = [p for p in channel.item_pubdates if p <= state.now]
    newest = max(pubdates) if pubdates else 0
    oldest = min(pubdates) if pubdates else 0

    pub_date = pub_date_to_timestamp(channel.pub_date)
    last_build_date = pub_date_to_timestamp(channel.last_build_date)
    final_pub_date = pub_date or last_build_date or newest

    owner = _first_non_empty(channel.podcast_owner, channel.itunes_owner_email)

    return NewsfeedsRecord(
        feed_id=state.feed_id,
        title=truncate_string(clean_string(channel.title), CHANNEL_TITLE_LENGTH),
        link=sanitize_url(clean_string(channel.link)),
        description=_first_non_empty(
            channel.itunes_summary, channel.description
        ).strip(),
        generator=truncate_string(channel.generator.strip(), 128),
        itunes_author=truncate_string(channel.itunes_author.strip(), 255),
        feed_type=int(state.feed_type),
        explicit=channel.explicit,
        image=sanitize_url(
            _first_non_empty(channel.image, channel.itunes_image).strip()
        ),
        language=truncate_string(channel.language.strip(), 8),
        itunes_owner_name=truncate_string(channel.itunes_owner_name.strip(), 255),
        itunes_owner_email=truncate_string(channel.itunes_owner_email.strip(), 255),
        atom_author_name=truncate_string(channel.atom_author_name.strip(), 255),
        atom_author_email=truncate_string(channel.atom_author_email.strip(), 255),
        itunes_new_feed_url=sanitize_url(channel.itunes_new_feed_url.strip()),
        itunes_image=sanitize_url(channel.itunes_image.strip()),
        itunes_type=truncate_string(channel.itunes_type.strip(), 128),
        itunes_categories=list(channel.itunes_categories),
        podcast_guid=truncate_string(channel.podcast_guid.strip(), 128),
        podcast_funding_url=sanitize_url(channel.podcast_funding_url.strip()),
        podcast_funding_text=truncate_string(
            channel.podcast_funding_text.strip(), 255
        ),
        podcast_locked=channel.podcast_locked,
        podcast_value=select_value_block(channel.values),
        podcast_owner=truncate_string(owner.strip(), OWNER_LENGTH),
        pubsub_hub_url=sanitize_url(channel.pubsub_hub_url.strip()),
        pubsub_self_url=sanitize_url(channel.pubsub_self_url.strip()),
        pub_date=truncate_int(final_pub_date),
        last_build_date=truncate_int(last_build_date),
        newest_item_pub_date=truncate_int(newest),
        oldest_item_pub_date=truncate_int(oldest),
        item_count=truncate_int(channel.item_count),
        update_frequency=calculate_update_frequency(pubdates, state.now),
    )


def _item_guid(guid: str, enclosure_url: str) -> str:
    guid = guid.strip()
    if not guid and len(enclosure_url) > 10:
        guid = truncate_string(enclosure_url, GUID_FROM_ENCLOSURE_LENGTH)
    return truncate_string(guid, GUID_LENGTH)


def _enclosure_url(url: str) -> str:
    url = sanitize_url(url.strip())
    if _RE_ESCAPED_AMPERSAND.search(url):
        url = url.replace("&amp;", "&")
    return url


def _enclosure_length(length: str) -> int:
    number = parse_int(length.strip(), -INT64_MAX - 1, INT64_MAX)
    if number is None or number > MAX_ENCLOSURE_LENGTH:
        return 0
    return number


def finalize_item(state: ParserState) -> NfitemsRecord:
    item = state.item

    enclosure_url = _enclosure_url(item.enclosure_url)
    enclosure_type = truncate_string(item.enclosure_type.strip(), 128)
    if not enclosure_type:
        enclosure_type = guess_enclosure_type(enclosure_url)

    title = item.itunes_title if item.itunes_title.strip() else item.title.strip()
    description = _first_non_empty(
        item.content, item.content_encoded, item.description, item.itunes_summary
    ).strip()
    image = _first_non_empty(item.itunes_image, item.image).strip()

    return NfitemsRecord(
        feed_id=state.feed_id,
        title=truncate_string(title, ITEM_TITLE_LENGTH),
        link=sanitize_url(clean_string(item.link)),
        description=description,
        pub_date=truncate_int(pub_date_to_timestamp(item.pub_date)),
        itunes_image=sanitize_url(image),
        itunes_author=truncate_string(item.itunes_author.strip(), 255),
        podcast_funding_url=sanitize_url(item.podcast_funding_url.strip()),
        podcast_funding_text=truncate_string(item.podcast_funding_text.strip(), 255),
        guid=_item_guid(item.guid, enclosure_url),
        enclosure_url=enclosure_url,
        enclosure_length=_enclosure_length(item.enclosure_length),
        enclosure_type=enclosure_type,
        itunes_episode=item.itunes_episode,
        itunes_episode_type=truncate_string(item.itunes_episode_type.strip(), 128),
        itunes_explicit=item.itunes_explicit,
        itunes_duration=truncate_int(item.itunes_duration),
        itunes_season=parse_int(item.itunes_season.strip()),
        image=sanitize_url(item.image.strip()),
        podcast_transcripts=list(item.transcripts),
        podcast_chapters=list(item.chapters),
        podcast_soundbites=list(item.soundbites),
        podcast_persons=list(item.persons),
        podcast_value=select_value_block(item.values),
    )
