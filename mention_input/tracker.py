"""Mention state machine.

The ``apply_*`` functions are pure reducers: each takes the current
``MentionState`` and returns a new one (plus, for confirmation, the cursor
effect the host must run once the new text is visible). ``MentionTracker``
keeps the latest state for a host widget and routes key presses.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from mention_input.models import Mention, MentionState, SetCursor, TrackerMode, User
from mention_input.scanning import (
    COMPOSING_PATTERN,
    editing_query,
    filter_candidates,
    find_composing_token,
    mention_at,
    next_mention_id,
    recompute_mentions,
)

logger = logging.getLogger(__name__)

KEY_DOWN = "down"
KEY_UP = "up"
KEY_ENTER = "enter"
KEY_ESCAPE = "escape"


def _clamp_offset(text: str, offset: int) -> int:
    return max(0, min(int(offset), len(text)))


def _find_user(users: Sequence[User], user_id: int) -> User | None:
    for user in users:
        if user.id == user_id:
            return user
    return None


def _detect_composing(state: MentionState) -> MentionState:
    token = find_composing_token(state.text[: state.cursor])
    if token is None:
        return replace(
            state,
            suggestions_visible=False,
            filter_query="",
            editing_mention_id=None,
            editing_span=None,
        )
    return replace(
        state,
        suggestions_visible=True,
        filter_query=token.fragment,
        highlighted_index=0,
        editing_mention_id=None,
        editing_span=None,
    )


def _shift_span(mention: Mention, text: str, delta: int) -> Mention:
    end = max(mention.start, min(mention.end + delta, len(text)))
    return replace(mention, end=end, text=text[mention.start : end])


def _mention_starting_at(mentions: Sequence[Mention], start: int) -> Mention | None:
    for mention in mentions:
        if mention.start == start:
            return mention
    return None


def apply_text_change(
    state: MentionState,
    users: Sequence[User],
    text: str,
    cursor: int,
    *,
    id_factory: Callable[[], int] = next_mention_id,
) -> MentionState:
    cursor = _clamp_offset(text, cursor)
    mentions = recompute_mentions(text, users, id_factory=id_factory)
    updated = replace(state, text=text, cursor=cursor, mentions=mentions)

    if state.suppress_auto_detect:
        logger.debug("text change after programmatic splice, detection skipped")
        return replace(updated, suppress_auto_detect=False)

    edited = state.edited_mention()
    if edited is not None and cursor > edited.start:
        focus = mention_at(mentions, cursor) or _mention_starting_at(mentions, edited.start)
        if focus is None:
            # Name no longer resolves: keep the old span so confirming replaces all of it.
            focus = _shift_span(edited, text, len(text) - len(state.text))
            logger.debug(f"edited mention at {edited.start} no longer resolves, tracking {focus.text!r}")
        query = editing_query(text, focus, cursor)
        candidate_count = len(filter_candidates(users, query))
        highlighted = state.highlighted_index if state.highlighted_index < candidate_count else 0
        return replace(
            updated,
            suggestions_visible=True,
            filter_query=query,
            highlighted_index=highlighted,
            editing_mention_id=focus.id,
            editing_span=focus,
        )

    return _detect_composing(updated)


def apply_cursor_move(
    state: MentionState,
    users: Sequence[User],
    cursor: int,
) -> MentionState:
    moved = replace(state, cursor=_clamp_offset(state.text, cursor))

    mention = mention_at(moved.mentions, moved.cursor)
    if mention is not None:
        user = _find_user(users, mention.user_id)
        if user is not None:
            return replace(
                moved,
                suggestions_visible=True,
                filter_query=user.name,
                highlighted_index=0,
                editing_mention_id=mention.id,
                editing_span=mention,
            )

    return _detect_composing(moved)


def apply_navigation(
    state: MentionState,
    users: Sequence[User],
    delta: int,
) -> MentionState:
    if not state.suggestions_visible:
        return state
    count = len(filter_candidates(users, state.filter_query))
    if count == 0:
        return state
    return replace(state, highlighted_index=(state.highlighted_index + delta) % count)


def apply_confirmation(
    state: MentionState,
    users: Sequence[User],
    user: User,
    *,
    id_factory: Callable[[], int] = next_mention_id,
) -> tuple[MentionState, SetCursor | None]:
    """Insert ``@First Last`` for ``user`` or re-target the mention being edited."""
    text = state.text
    new_text: str | None = None
    new_cursor = state.cursor

    if state.editing_mention_id is not None:
        edited = state.edited_mention()
        if edited is None:
            logger.debug(f"editing mention {state.editing_mention_id} not found, nothing replaced")
        else:
            before = text[: edited.start]
            after = text[edited.end :]
            new_text = f"{before}@{user.name} {user.last_name}{after}"
            new_cursor = edited.start + len(user.name) + len(user.last_name) + 2
    else:
        before_cursor = text[: state.cursor]
        match = COMPOSING_PATTERN.search(before_cursor)
        if match is None:
            logger.debug("no in-progress mention before cursor, nothing inserted")
        else:
            before = before_cursor[: match.start()]
            after = text[state.cursor :]
            new_text = f"{before}@{user.name} {user.last_name} {after}"
            new_cursor = len(before) + len(user.name) + len(user.last_name) + 3

    closed = replace(
        state,
        suggestions_visible=False,
        filter_query="",
        highlighted_index=0,
        editing_mention_id=None,
        editing_span=None,
    )
    if new_text is None:
        return closed, None

    spliced = replace(
        closed,
        text=new_text,
        cursor=new_cursor,
        mentions=recompute_mentions(new_text, users, id_factory=id_factory),
        suppress_auto_detect=True,
    )
    return spliced, SetCursor(offset=new_cursor)


def apply_dismiss(state: MentionState) -> MentionState:
    return replace(state, suggestions_visible=False, editing_mention_id=None, editing_span=None)


def apply_cursor_restored(state: MentionState, offset: int) -> MentionState:
    return replace(
        state,
        cursor=_clamp_offset(state.text, offset),
        suppress_auto_detect=False,
    )


@dataclass(frozen=True, slots=True)
class KeyOutcome:
    handled: bool
    effect: SetCursor | None = None


class MentionTracker:
    """Holds the live ``MentionState`` for one input widget."""

    def __init__(
        self,
        users: Sequence[User],
        *,
        id_factory: Callable[[], int] = next_mention_id,
    ) -> None:
        seen: set[int] = set()
        for user in users:
            if user.id in seen:
                raise ValueError(f"Duplicate user id: {user.id}")
            seen.add(user.id)

        self._users: tuple[User, ...] = tuple(users)
        self._id_factory = id_factory
        self._state = MentionState()

    @property
    def users(self) -> tuple[User, ...]:
        return self._users

    @property
    def state(self) -> MentionState:
        return self._state

    @property
    def mode(self) -> TrackerMode:
        return self._state.mode

    def candidates(self) -> list[User]:
        return filter_candidates(self._users, self._state.filter_query)

    def highlighted_user(self) -> User | None:
        candidates = self.candidates()
        if not candidates:
            return None
        return candidates[self._state.highlighted_index % len(candidates)]

    def user_for(self, mention: Mention) -> User | None:
        return _find_user(self._users, mention.user_id)

    def _commit(self, new_state: MentionState, event: str) -> MentionState:
        previous = self._state
        self._state = new_state
        if previous.mode != new_state.mode:
            logger.debug(f"{event}: {previous.mode.value} -> {new_state.mode.value}")
        return new_state

    def text_changed(self, text: str, cursor: int) -> MentionState:
        new_state = apply_text_change(
            self._state, self._users, text, cursor, id_factory=self._id_factory
        )
        return self._commit(new_state, "text_changed")

    def cursor_moved(self, cursor: int) -> MentionState:
        return self._commit(apply_cursor_move(self._state, self._users, cursor), "cursor_moved")

    def navigate(self, delta: int) -> MentionState:
        return self._commit(apply_navigation(self._state, self._users, delta), "navigate")

    def dismiss(self) -> MentionState:
        return self._commit(apply_dismiss(self._state), "dismiss")

    def cursor_restored(self, offset: int) -> MentionState:
        return self._commit(apply_cursor_restored(self._state, offset), "cursor_restored")

    def confirm(self) -> SetCursor | None:
        if not self._state.suggestions_visible:
            return None
        user = self.highlighted_user()
        if user is None:
            logger.debug("confirm ignored: no candidates")
            return None
        return self._confirm_user(user)

    def select(self, index: int) -> SetCursor | None:
        """Pointer selection of a visible candidate row."""
        if not self._state.suggestions_visible:
            return None
        candidates = self.candidates()
        if not 0 <= index < len(candidates):
            logger.debug(f"select ignored: index {index} outside {len(candidates)} candidates")
            return None
        return self._confirm_user(candidates[index])

    def _confirm_user(self, user: User) -> SetCursor | None:
        new_state, effect = apply_confirmation(
            self._state, self._users, user, id_factory=self._id_factory
        )
        self._commit(new_state, "confirm")
        return effect

    def handle_key(self, key: str) -> KeyOutcome:
        """Route a navigation key; unhandled keys fall through to the host."""
        if not self._state.suggestions_visible:
            return KeyOutcome(handled=False)

        if key == KEY_ESCAPE:
            self.dismiss()
            return KeyOutcome(handled=True)

        if not self.candidates():
            return KeyOutcome(handled=False)

        if key == KEY_DOWN:
            self.navigate(1)
            return KeyOutcome(handled=True)
        if key == KEY_UP:
            self.navigate(-1)
            return KeyOutcome(handled=True)
        if key == KEY_ENTER:
            return KeyOutcome(handled=True, effect=self.confirm())
        return KeyOutcome(handled=False)
