"""Preview rendering of mention spans"""

from mention_input.directory import DEFAULT_USERS
from mention_input.models import Mention
from mention_input.render import (
    MENTION_EDITING_RICH_STYLE,
    MENTION_RICH_STYLE,
    render_rich_text,
    segments_to_fragments,
    split_segments,
)
from mention_input.scanning import recompute_mentions


def test_split_segments_reassembles_text():
    text = "Hi @Alice Smith and @Bob Johnson!"
    mentions = recompute_mentions(text, DEFAULT_USERS)

    segments = split_segments(text, mentions)

    assert "".join(s.text for s in segments) == text
    assert [s.text for s in segments if s.is_mention] == ["@Alice Smith", "@Bob Johnson"]
    assert all(s.complete for s in segments if s.is_mention)


def test_split_segments_without_mentions_is_single_run():
    segments = split_segments("nothing here", ())
    assert len(segments) == 1
    assert segments[0].is_mention is False


def test_split_segments_skips_stale_spans():
    stale = Mention(id=1, start=0, end=40, user_id=1, text="@Alice Smith")
    segments = split_segments("short", [stale])
    assert [s.text for s in segments] == ["short"]


def test_fragments_mark_complete_and_editing_mentions():
    text = "@Alice Smith @Bob Johnson"
    mentions = recompute_mentions(text, DEFAULT_USERS)
    editing_id = mentions[1].id

    fragments = segments_to_fragments(split_segments(text, mentions, editing_mention_id=editing_id))

    assert fragments == [
        ("class:preview.mention", "@Alice Smith"),
        ("class:preview.text", " "),
        ("class:preview.mention.editing", "@Bob Johnson"),
    ]


def test_incomplete_span_uses_plain_style():
    mention = Mention(id=1, start=0, end=4, user_id=2, text="@Bob")
    fragments = segments_to_fragments(split_segments("@Bob", [mention]))
    assert fragments == [("class:preview.text", "@Bob")]


def test_completeness_separates_partial_from_recomputed_spans():
    text = "@Bob Johnson @Bob"
    partial = Mention(id=99, start=13, end=17, user_id=2, text="@Bob")
    mentions = (*recompute_mentions(text, DEFAULT_USERS), partial)

    segments = [s for s in split_segments(text, mentions) if s.is_mention]

    assert [(s.text, s.complete) for s in segments] == [("@Bob Johnson", True), ("@Bob", False)]
    assert [style for style, _ in segments_to_fragments(segments)] == [
        "class:preview.mention",
        "class:preview.text",
    ]


def test_render_rich_text_styles_spans():
    text = "cc @Charlie Brown"
    mentions = recompute_mentions(text, DEFAULT_USERS)

    rendered = render_rich_text(text, mentions)

    assert rendered.plain == text
    styled = [(rendered.plain[span.start : span.end], str(span.style)) for span in rendered.spans]
    assert styled == [("@Charlie Brown", MENTION_RICH_STYLE)]

    rendered = render_rich_text(text, mentions, editing_mention_id=mentions[0].id)
    assert [str(span.style) for span in rendered.spans] == [MENTION_EDITING_RICH_STYLE]
