"""Mutable context accumulated while walking one feed document.

Scopes are explicit enumerations: a document is outside any channel, inside
a channel, or inside an item, and each of the two containers has at most one
active sub-element scope (owner, funding, value block, ...).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from .models import (
    PodcastChapter,
    PodcastPerson,
    PodcastSoundbite,
    PodcastTranscript,
    PodcastValue,
    PodcastValueModel,
    PodcastValueRecipient,
)
from .utils import current_timestamp


class FeedType(enum.IntEnum):
    RSS = 0
    ATOM = 1


class Scope(enum.Enum):
    NONE = "none"
    CHANNEL = "channel"
    ITEM = "item"


class ChannelSubScope(enum.Enum):
    NONE = "none"
    IMAGE = "image"
    OWNER = "owner"
    ATOM_AUTHOR = "atom_author"
    FUNDING = "funding"
    LOCKED = "locked"
    VALUE = "value"


class ItemSubScope(enum.Enum):
    NONE = "none"
    IMAGE = "image"
    FUNDING = "funding"
    VALUE = "value"
    PERSON = "person"
    SOUNDBITE = "soundbite"
    ALTERNATE_ENCLOSURE = "alternate_enclosure"


@dataclass
class ChannelState:
    title: str = ""
    link: str = ""
    description: str = ""
    generator: str = ""
    language: str = ""
    image: str = ""
    explicit: int = 0
    itunes_author: str = ""
    itunes_summary: str = ""
    itunes_image: str = ""
    itunes_owner_name: str = ""
    itunes_owner_email: str = ""
    itunes_type: str = ""
    itunes_new_feed_url: str = ""
    itunes_categories: list[str] = field(default_factory=list)
    atom_author_name: str = ""
    atom_author_email: str = ""
    podcast_guid: str = ""
    podcast_funding_url: str = ""
    podcast_funding_text: str = ""
    podcast_locked: int = 0
    podcast_locked_text: str = ""
    podcast_owner: str = ""
    pubsub_hub_url: str = ""
    pubsub_self_url: str = ""
    pub_date: str = ""
    pub_date_open: bool = False
    last_build_date: str = ""
    last_build_date_open: bool = False
    value_model: PodcastValueModel = field(default_factory=PodcastValueModel)
    value_recipients: list[PodcastValueRecipient] = field(default_factory=list)
    values: list[PodcastValue] = field(default_factory=list)
    item_count: int = 0
    item_pubdates: list[int] = field(default_factory=list)


@dataclass
class ItemState:
    title: str = ""
    link: str = ""
    link_open: bool = False
    description: str = ""
    content: str = ""
    content_encoded: str = ""
    pub_date: str = ""
    pub_date_open: bool = False
    image: str = ""
    guid: str = ""
    enclosure_url: str = ""
    enclosure_length: str = ""
    enclosure_type: str = ""
    has_valid_enclosure: bool = False
    itunes_title: str = ""
    itunes_summary: str = ""
    itunes_author: str = ""
    itunes_image: str = ""
    itunes_duration: int = 0
    itunes_episode_text: str = ""
    itunes_episode: Optional[str] = None
    itunes_episode_type: str = ""
    itunes_season: str = ""
    itunes_explicit: int = 0
    podcast_funding_url: str = ""
    podcast_funding_text: str = ""
    transcripts: list[PodcastTranscript] = field(default_factory=list)
    chapters: list[PodcastChapter] = field(default_factory=list)
    soundbites: list[PodcastSoundbite] = field(default_factory=list)
    persons: list[PodcastPerson] = field(default_factory=list)
    current_person: Optional[PodcastPerson] = None
    current_soundbite: Optional[PodcastSoundbite] = None
    value_model: PodcastValueModel = field(default_factory=PodcastValueModel)
    value_recipients: list[PodcastValueRecipient] = field(default_factory=list)
    values: list[PodcastValue] = field(default_factory=list)


class ParserState:
    """Parsing context for a single feed document."""

    def __init__(self, feed_id: Optional[int] = None, now: Optional[int] = None):
        self.feed_id = feed_id
        self.now = current_timestamp() if now is None else now
        self.feed_type = FeedType.RSS
        self.scope = Scope.NONE
        self.channel_sub = ChannelSubScope.NONE
        self.item_sub = ItemSubScope.NONE
        self.current_element = ""
        self.channel = ChannelState()
        self.item = ItemState()
        self._item_in_channel = False

    @property
    def in_item(self) -> bool:
        return self.scope is Scope.ITEM

    @property
    def in_channel(self) -> bool:
        """True at channel level, i.e. inside a channel but not in an item."""
        return self.scope is Scope.CHANNEL

    def open_channel(self, feed_type: FeedType) -> None:
        self.feed_type = feed_type
        self.scope = Scope.CHANNEL
        self.channel_sub = ChannelSubScope.NONE
        self.item_sub = ItemSubScope.NONE
        self.channel = ChannelState()

    def close_channel(self) -> None:
        self.scope = Scope.NONE
        self.channel_sub = ChannelSubScope.NONE

    def open_item(self) -> None:
        self._item_in_channel = self.scope is Scope.CHANNEL
        self.scope = Scope.ITEM
        self.channel_sub = ChannelSubScope.NONE
        self.item_sub = ItemSubScope.NONE
        self.item = ItemState()

    def close_item(self) -> None:
        self.scope = Scope.CHANNEL if self._item_in_channel else Scope.NONE
        self.item_sub = ItemSubScope.NONE
        self._item_in_channel = False

    def enter_channel_sub(self, sub: ChannelSubScope) -> None:
        self.channel_sub = sub

    def leave_channel_sub(self, sub: ChannelSubScope) -> bool:
        if self.channel_sub is not sub:
            return False
        self.channel_sub = ChannelSubScope.NONE
        return True

    def enter_item_sub(self, sub: ItemSubScope) -> None:
        self.item_sub = sub

    def leave_item_sub(self, sub: ItemSubScope) -> bool:
        if self.item_sub is not sub:
            return False
        self.item_sub = ItemSubScope.NONE
        return True
