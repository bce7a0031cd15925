from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional


@dataclass
class PodcastTranscript:
    url: str
    type: str


@dataclass
class PodcastChapter:
    url: str
    type: str


@dataclass
class PodcastSoundbite:
    title: str
    start: str
    duration: str


@dataclass
class PodcastPerson:
    name: str
    role: str
    group: str
    img: str
    href: str


@dataclass
class PodcastValueModel:
    type: str = ""
    method: str = ""
    suggested: str = ""


@dataclass
class PodcastValueRecipient:
    name: str = ""
    type: str = ""
    address: str = ""
    split: int = 0
    fee: bool = False
    custom_key: Optional[str] = None
    custom_value: Optional[str] = None


@dataclass
class PodcastValue:
    model: PodcastValueModel
    destinations: list[PodcastValueRecipient]


@dataclass
class SqlInsert:
    """One row ready for insertion into ``table``."""

    table: str
    columns: list[str]
    values: list[Any]
    feed_id: Optional[int]


class _Record:
    TABLE: ClassVar[str]

    def to_sql_insert(self) -> SqlInsert:
        columns = [f.name for f in dataclasses.fields(self)]
        values = [getattr(self, name) for name in columns]
        return SqlInsert(
            table=self.TABLE,
            columns=columns,
            values=values,
            feed_id=getattr(self, "feed_id"),
        )


@dataclass
class NewsfeedsRecord(_Record):
    """Channel-level row; field order is the column order."""

    TABLE: ClassVar[str] = "newsfeeds"

    feed_id: Optional[int] = None
    title: str = ""
    link: str = ""
    description: str = ""
    generator: str = ""
    itunes_author: str = ""
    feed_type: int = 0
    explicit: int = 0
    image: str = ""
    language: str = ""
    itunes_owner_name: str = ""
    itunes_owner_email: str = ""
    atom_author_name: str = ""
    atom_author_email: str = ""
    itunes_new_feed_url: str = ""
    itunes_image: str = ""
    itunes_type: str = ""
    itunes_categories: list[str] = field(default_factory=list)
    podcast_guid: str = ""
    podcast_funding_url: str = ""
    podcast_funding_text: str = ""
    podcast_locked: int = 0
    podcast_value: Optional[PodcastValue] = None
    podcast_owner: str = ""
    pubsub_hub_url: str = ""
    pubsub_self_url: str = ""
    pub_date: int = 0
    last_build_date: int = 0
    newest_item_pub_date: int = 0
    oldest_item_pub_date: int = 0
    item_count: int = 0
    update_frequency: int = 0


@dataclass
class NfitemsRecord(_Record):
    """Item-level row; field order is the column order."""

    TABLE: ClassVar[str] = "nfitems"

    feed_id: Optional[int] = None
    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: int = 0
    itunes_image: str = ""
    itunes_author: str = ""
    podcast_funding_url: str = ""
    podcast_funding_text: str = ""
    guid: str = ""
    enclosure_url: str = ""
    enclosure_length: int = 0
    enclosure_type: str = ""
    itunes_episode: Optional[str] = None
    itunes_episode_type: str = ""
    itunes_explicit: int = 0
    itunes_duration: int = 0
    itunes_season: Optional[int] = None
    image: str = ""
    podcast_transcripts: list[PodcastTranscript] = field(default_factory=list)
    podcast_chapters: list[PodcastChapter] = field(default_factory=list)
    podcast_soundbites: list[PodcastSoundbite] = field(default_factory=list)
    podcast_persons: list[PodcastPerson] = field(default_factory=list)
    podcast_value: Optional[PodcastValue] = None
