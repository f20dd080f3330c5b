from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from rich.text import Text

from mention_input.models import Mention
from mention_input.scanning import is_mention_complete

MENTION_RICH_STYLE = "bold #eceff4 on #5e81ac"
MENTION_EDITING_RICH_STYLE = "bold #2e3440 on #ebcb8b"


@dataclass(frozen=True, slots=True)
class TextSegment:
    text: str
    mention: Mention | None = None
    complete: bool = False
    editing: bool = False

    @property
    def is_mention(self) -> bool:
        return self.mention is not None


def split_segments(
    text: str,
    mentions: Sequence[Mention],
    *,
    editing_mention_id: int | None = None,
) -> list[TextSegment]:
    """Cut ``text`` into plain runs and mention spans, in textual order."""
    segments: list[TextSegment] = []
    last_index = 0
    for mention in sorted(mentions, key=lambda item: item.start):
        if mention.start < last_index or mention.end > len(text):
            continue
        if mention.start > last_index:
            segments.append(TextSegment(text=text[last_index : mention.start]))
        span_text = text[mention.start : mention.end]
        segments.append(
            TextSegment(
                text=span_text,
                mention=mention,
                complete=is_mention_complete(span_text),
                editing=mention.id == editing_mention_id,
            )
        )
        last_index = mention.end

    if last_index < len(text):
        segments.append(TextSegment(text=text[last_index:]))
    return segments


def segments_to_fragments(
    segments: Sequence[TextSegment],
    *,
    base_style: str = "class:preview.text",
) -> list[tuple[str, str]]:
    fragments: list[tuple[str, str]] = []
    for segment in segments:
        if segment.editing:
            style = "class:preview.mention.editing"
        # Recomputed spans are always complete; hand-built partial spans such as "@Bob" render plain.
        elif segment.complete:
            style = "class:preview.mention"
        else:
            style = base_style
        fragments.append((style, segment.text))
    return fragments


def render_rich_text(
    text: str,
    mentions: Sequence[Mention],
    *,
    editing_mention_id: int | None = None,
) -> Text:
    rendered = Text()
    for segment in split_segments(text, mentions, editing_mention_id=editing_mention_id):
        if segment.editing:
            rendered.append(segment.text, style=MENTION_EDITING_RICH_STYLE)
        elif segment.complete:
            rendered.append(segment.text, style=MENTION_RICH_STYLE)
        else:
            rendered.append(segment.text)
    return rendered
