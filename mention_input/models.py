from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True, slots=True)
class User:
    id: int
    name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}"


@dataclass(frozen=True, slots=True)
class Mention:
    """A resolved ``@First Last`` span; ``text[start:end] == self.text``."""

    id: int
    start: int
    end: int
    user_id: int
    text: str

    def contains(self, offset: int) -> bool:
        # Both edges count: a cursor parked right after the name still focuses it.
        return self.start <= offset <= self.end

    def span_key(self) -> tuple[int, int, int, str]:
        return (self.start, self.end, self.user_id, self.text)


class TrackerMode(Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    EDITING = "editing"


@dataclass(frozen=True, slots=True)
class MentionState:
    """Immutable snapshot of one input session.

    Attributes:
        text: authoritative buffer content
        cursor: last known cursor offset
        mentions: spans recomputed from ``text``
        suggestions_visible: whether the dropdown is shown
        filter_query: text the candidate list is filtered by
        highlighted_index: highlighted row in the filtered candidates
        editing_mention_id: mention under the cursor being re-targeted
        editing_span: last known span of that mention, kept while an edit breaks its name
        suppress_auto_detect: one-shot latch set right after a programmatic splice
    """

    text: str = ""
    cursor: int = 0
    mentions: tuple[Mention, ...] = field(default_factory=tuple)
    suggestions_visible: bool = False
    filter_query: str = ""
    highlighted_index: int = 0
    editing_mention_id: int | None = None
    editing_span: Mention | None = None
    suppress_auto_detect: bool = False

    @property
    def mode(self) -> TrackerMode:
        if not self.suggestions_visible:
            return TrackerMode.IDLE
        if self.editing_mention_id is not None:
            return TrackerMode.EDITING
        return TrackerMode.COMPOSING

    def find_mention(self, mention_id: int | None) -> Mention | None:
        if mention_id is None:
            return None
        for mention in self.mentions:
            if mention.id == mention_id:
                return mention
        return None

    def edited_mention(self) -> Mention | None:
        if self.editing_mention_id is None:
            return None
        return self.find_mention(self.editing_mention_id) or self.editing_span


@dataclass(frozen=True, slots=True)
class SetCursor:
    """Deferred request for the host to move its caret once the new text is shown."""

    offset: int
