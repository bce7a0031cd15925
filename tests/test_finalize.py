from podfeedparser.finalize import finalize_channel, finalize_item, select_value_block
from podfeedparser.models import PodcastValue, PodcastValueModel, PodcastValueRecipient
from podfeedparser.state import FeedType, ParserState

NOW = 1_700_000_000
DAY = 24 * 60 * 60


def _block(kind, recipients=1):
    return PodcastValue(
        model=PodcastValueModel(type=kind, method="keysend"),
        destinations=[PodcastValueRecipient(name=f"r{i}") for i in range(recipients)],
    )


def test_lightning_block_is_preferred():
    bitcoin, lightning = _block("bitcoin"), _block("lightning")
    assert select_value_block([bitcoin, lightning]) is lightning


def test_first_block_when_no_lightning():
    bitcoin, hbd = _block("bitcoin"), _block("HBD")
    assert select_value_block([bitcoin, hbd]) is bitcoin


def test_empty_block_never_selected():
    empty, bitcoin = _block("lightning", recipients=0), _block("bitcoin")
    assert select_value_block([empty, bitcoin]) is bitcoin
    assert select_value_block([empty]) is None
    assert select_value_block([]) is None


def _item_state(**fields):
    state = ParserState(feed_id=9, now=NOW)
    state.open_channel(FeedType.RSS)
    state.open_item()
    state.item.enclosure_url = "https://example.com/episode.mp3"
    state.item.has_valid_enclosure = True
    for name, value in fields.items():
        setattr(state.item, name, value)
    return state


def test_guid_falls_back_to_enclosure_url():
    record = finalize_item(_item_state())
    assert record.guid == "https://example.com/episode.mp3"


def test_explicit_guid_is_trimmed_and_capped():
    record = finalize_item(_item_state(guid="  " + "g" * 800 + "  "))
    assert record.guid == "g" * 740


def test_long_enclosure_guid_fallback_is_capped():
    url = "https://example.com/" + "a" * 900 + ".mp3"
    record = finalize_item(_item_state(enclosure_url=url))
    assert len(record.guid) == 738


def test_short_enclosure_url_does_not_become_guid():
    record = finalize_item(_item_state(enclosure_url="http://a.b"))
    assert record.guid == ""


def test_enclosure_url_decodes_escaped_ampersand():
    record = finalize_item(
        _item_state(enclosure_url="https://example.com/a.mp3?x=1&amp;y=2")
    )
    assert record.enclosure_url == "https://example.com/a.mp3?x=1&y=2"


def test_enclosure_length_rules():
    assert finalize_item(_item_state(enclosure_length="12345")).enclosure_length == 12345
    assert finalize_item(_item_state(enclosure_length="abc")).enclosure_length == 0
    assert (
        finalize_item(_item_state(enclosure_length="9999999999999999999")).enclosure_length
        == 0
    )
    assert (
        finalize_item(_item_state(enclosure_length="922337203685477581")).enclosure_length
        == 0
    )
    assert (
        finalize_item(_item_state(enclosure_length="922337203685477580")).enclosure_length
        == 922337203685477580
    )
    assert finalize_item(_item_state(enclosure_length="9" * 5000)).enclosure_length == 0


def test_enclosure_type_explicit_or_guessed():
    assert finalize_item(_item_state()).enclosure_type == "audio/mpeg"
    assert (
        finalize_item(_item_state(enclosure_type="audio/x-custom")).enclosure_type
        == "audio/x-custom"
    )


def test_title_prefers_itunes_title():
    assert finalize_item(_item_state(title="  Plain  ")).title == "Plain"
    assert (
        finalize_item(_item_state(title="Plain", itunes_title="iTunes")).title
        == "iTunes"
    )


def test_description_priority():
    state = _item_state(
        description="rss", itunes_summary="summary", content_encoded="encoded"
    )
    assert finalize_item(state).description == "encoded"
    state = _item_state(description="  rss  ", itunes_summary="summary")
    assert finalize_item(state).description == "rss"
    state = _item_state(itunes_summary="summary")
    assert finalize_item(state).description == "summary"
    state = _item_state(content="atom", content_encoded="encoded")
    assert finalize_item(state).description == "atom"


def test_item_image_prefers_itunes_image():
    state = _item_state(image="https://example.com/secondary.png")
    assert finalize_item(state).itunes_image == "https://example.com/secondary.png"
    state.item.itunes_image = "https://example.com/itunes.png"
    record = finalize_item(state)
    assert record.itunes_image == "https://example.com/itunes.png"
    assert record.image == "https://example.com/secondary.png"


def test_season_parse():
    assert finalize_item(_item_state(itunes_season="3")).itunes_season == 3
    assert finalize_item(_item_state(itunes_season="three")).itunes_season is None


def _channel_state():
    state = ParserState(feed_id=9, now=NOW)
    state.open_channel(FeedType.RSS)
    return state


def test_channel_description_prefers_itunes_summary():
    state = _channel_state()
    state.channel.description = "rss"
    assert finalize_channel(state).description == "rss"
    state.channel.itunes_summary = "itunes"
    assert finalize_channel(state).description == "itunes"


def test_channel_image_prefers_rss_image():
    state = _channel_state()
    state.channel.itunes_image = "https://example.com/itunes.jpg"
    assert finalize_channel(state).image == "https://example.com/itunes.jpg"
    state.channel.image = "https://example.com/rss.jpg"
    assert finalize_channel(state).image == "https://example.com/rss.jpg"


def test_owner_precedence():
    state = _channel_state()
    state.channel.itunes_owner_email = "itunes@example.com"
    assert finalize_channel(state).podcast_owner == "itunes@example.com"
    state.channel.podcast_owner = "locked@example.com"
    assert finalize_channel(state).podcast_owner == "locked@example.com"


def test_pub_date_fallback_chain():
    state = _channel_state()
    state.channel.item_pubdates = [NOW - 3 * DAY, NOW - DAY, NOW + 10 * DAY]
    record = finalize_channel(state)
    assert record.pub_date == NOW - DAY
    assert record.newest_item_pub_date == NOW - DAY
    assert record.oldest_item_pub_date == NOW - 3 * DAY

    state.channel.last_build_date = "Mon, 01 Jan 2024 00:00:00 GMT"
    assert finalize_channel(state).pub_date == 1704067200

    state.channel.pub_date = "1600000000"
    assert finalize_channel(state).pub_date == 1600000000


def test_channel_defaults():
    record = finalize_channel(ParserState(feed_id=None, now=NOW))
    assert record.feed_id is None
    assert record.title == ""
    assert record.item_count == 0
    assert record.pub_date == 0
    assert record.update_frequency == 9
    assert record.podcast_value is None


def test_channel_record_columns_start_with_feed_id():
    row = finalize_channel(_channel_state()).to_sql_insert()
    assert row.table == "newsfeeds"
    assert row.columns[0] == "feed_id"
    assert row.values[0] == 9
    assert len(row.columns) == len(row.values)
    assert "update_frequency" in row.columns
