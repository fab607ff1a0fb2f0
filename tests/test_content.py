import pytest

import config
from errors import ConfigError, ContentRejected
from platforms.base import Facet
from services.content import ContentTransformer, find_plain_facets


@pytest.fixture
def transformer():
    return ContentTransformer(strip_patterns=config.DEFAULT_STRIP_URL_PATTERNS)


def test_plain_text_with_hashtag_unchanged(transformer):
    content = transformer.transform("Hello #world")
    assert content.text == "Hello #world"
    assert content.facets == (Facet(byte_start=6, byte_end=12, kind="tag", value="world"),)


def test_paragraphs_and_line_breaks(transformer):
    content = transformer.transform("<p>First paragraph</p><p>Second<br>line</p>")
    assert content.text == "First paragraph\n\nSecond\nline"
    assert content.facets == ()


def test_entities_and_whitespace_collapse(transformer):
    content = transformer.transform("<p>Fish  &amp;\n chips</p>")
    assert content.text == "Fish & chips"


def test_shortened_mastodon_link(transformer):
    html = (
        '<p>Read <a href="https://example.com/a/very/long/path" '
        'rel="nofollow noopener noreferrer" target="_blank">'
        '<span class="invisible">https://</span>'
        '<span class="ellipsis">example.com/a/very/lo</span>'
        '<span class="invisible">ng/path</span></a> now</p>'
    )
    content = transformer.transform(html)
    assert content.text == "Read example.com/a/very/lo… now"
    assert content.facets == (
        Facet(byte_start=5, byte_end=29, kind="link",
              value="https://example.com/a/very/long/path"),
    )


def test_mention_anchor(transformer):
    html = (
        '<p><span class="h-card" translate="no">'
        '<a href="https://mastodon.social/@bob" class="u-url mention">@<span>bob</span></a>'
        '</span> hi</p>'
    )
    content = transformer.transform(html)
    assert content.text == "@bob hi"
    assert content.facets == (
        Facet(byte_start=0, byte_end=4, kind="mention", value="bob@mastodon.social",
              uri="https://mastodon.social/@bob"),
    )


def test_remote_mention_keeps_its_instance(transformer):
    html = '<p><a href="https://other.example/@amy" class="u-url mention">@amy@other.example</a></p>'
    content = transformer.transform(html)
    assert content.facets[0].value == "amy@other.example"


def test_hashtag_anchor(transformer):
    html = (
        '<p>Hello <a href="https://mastodon.social/tags/world" class="mention hashtag" '
        'rel="tag">#<span>world</span></a></p>'
    )
    content = transformer.transform(html)
    assert content.text == "Hello #world"
    assert content.facets == (
        Facet(byte_start=6, byte_end=12, kind="tag", value="world",
              uri="https://mastodon.social/tags/world"),
    )


def test_denylisted_bare_url_removed(transformer):
    content = transformer.transform("<p>see https://twitter.com/foo/status/1 now</p>")
    assert content.text == "see now"
    assert content.facets == ()


def test_denylisted_anchor_removed_entirely(transformer):
    html = (
        '<p>see <a href="https://x.com/foo/status/1" rel="nofollow">'
        '<span class="invisible">https://</span><span class="">x.com/foo/status/1</span>'
        '<span class="invisible"></span></a> now</p>'
    )
    content = transformer.transform(html)
    assert content.text == "see now"
    assert content.facets == ()


def test_byte_offsets_account_for_multibyte_text(transformer):
    content = transformer.transform("\U0001f389 #party")
    assert content.facets == (Facet(byte_start=5, byte_end=11, kind="tag", value="party"),)
    encoded = content.text.encode("utf-8")
    assert encoded[5:11].decode("utf-8") == "#party"


def test_leading_whitespace_shifts_facets(transformer):
    content = transformer.transform("<br>#tag")
    assert content.text == "#tag"
    assert content.facets == (Facet(byte_start=0, byte_end=4, kind="tag", value="tag"),)


def test_hashtag_inside_url_not_a_separate_facet(transformer):
    content = transformer.transform("see https://example.com/#frag")
    assert [f.kind for f in content.facets] == ["link"]
    assert content.facets[0].value == "https://example.com/#frag"


def test_bare_bluesky_mention(transformer):
    content = transformer.transform("ping @alice.bsky.social please")
    assert content.facets == (
        Facet(byte_start=5, byte_end=23, kind="mention", value="alice.bsky.social"),
    )


def test_facets_sorted_non_overlapping_and_in_bounds(transformer):
    html = (
        '<p>Hi <a href="https://mastodon.social/@bob" class="u-url mention">@<span>bob</span></a>, '
        'look at https://example.org/page?x=1 and '
        '<a href="https://mastodon.social/tags/caf%C3%A9" class="mention hashtag" rel="tag">#<span>café</span></a> '
        '#later</p><p>über <a href="https://example.net">example.net</a></p>'
    )
    content = transformer.transform(html)
    size = len(content.text.encode("utf-8"))
    previous_end = 0
    for facet in content.facets:
        assert previous_end <= facet.byte_start < facet.byte_end <= size
        previous_end = facet.byte_end
    assert [f.kind for f in content.facets] == ["mention", "link", "tag", "tag", "link"]


@pytest.mark.parametrize("html", ["", "<p></p>", "<p>   </p>", "<br><br>"])
def test_empty_text_rejected(transformer, html):
    with pytest.raises(ContentRejected) as exc:
        transformer.transform(html)
    assert exc.value.reason == "empty"


def test_text_at_limit_accepted(transformer):
    assert len(transformer.transform("a" * 300).text) == 300


def test_text_over_limit_rejected_not_truncated(transformer):
    with pytest.raises(ContentRejected) as exc:
        transformer.transform("a" * 301)
    assert exc.value.reason == "too_long"


def test_byte_ceiling_enforced():
    transformer = ContentTransformer(strip_patterns=[], max_chars=300, max_bytes=10)
    with pytest.raises(ContentRejected) as exc:
        transformer.transform("é" * 6)
    assert exc.value.reason == "too_long"


def test_invalid_strip_pattern_is_config_error():
    with pytest.raises(ConfigError):
        ContentTransformer(strip_patterns=["("])


def test_find_plain_facets_prefers_urls():
    spans = find_plain_facets("#a https://e.com/#b @c.d")
    assert [(kind, value) for _, _, kind, value in spans] == [
        ("tag", "a"), ("link", "https://e.com/#b"), ("mention", "c.d"),
    ]
