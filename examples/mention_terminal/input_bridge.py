from __future__ import annotations

import logging
from typing import Any, Callable

from prompt_toolkit.buffer import Buffer

from mention_input import MentionTracker, SetCursor

logger = logging.getLogger(__name__)

Scheduler = Callable[[Callable[[], None]], None]


def _run_now(callback: Callable[[], None]) -> None:
    callback()


class MentionInputBridge:
    """Feed a prompt_toolkit ``Buffer`` into a ``MentionTracker`` and apply its effects.

    The buffer is the host surface: every operation that needs it is a no-op
    while no buffer is attached.
    """

    def __init__(
        self,
        tracker: MentionTracker,
        *,
        schedule: Scheduler = _run_now,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._tracker = tracker
        self._schedule = schedule
        self._on_change = on_change
        self._buffer: Buffer | None = None
        self._suppress_input_change_hook = False

    @property
    def tracker(self) -> MentionTracker:
        return self._tracker

    @property
    def buffer(self) -> Buffer | None:
        return self._buffer

    def attach(self, buffer: Buffer) -> None:
        self.detach()
        self._buffer = buffer
        buffer.on_text_changed.add_handler(self._handle_text_changed)
        buffer.on_cursor_position_changed.add_handler(self._handle_cursor_changed)
        if buffer.text:
            self._tracker.text_changed(buffer.text, buffer.cursor_position)

    def detach(self) -> None:
        buffer = self._buffer
        if buffer is None:
            return
        buffer.on_text_changed.remove_handler(self._handle_text_changed)
        buffer.on_cursor_position_changed.remove_handler(self._handle_cursor_changed)
        self._buffer = None

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def _handle_text_changed(self, buffer: Any) -> None:
        if self._suppress_input_change_hook:
            return
        self._tracker.text_changed(str(buffer.text), int(buffer.cursor_position))
        self._notify()

    def _handle_cursor_changed(self, buffer: Any) -> None:
        if self._suppress_input_change_hook:
            return
        state = self._tracker.state
        cursor = int(buffer.cursor_position)
        # 文本变化时 prompt_toolkit 会紧接着触发一次光标事件，tracker 已经处理过
        if str(buffer.text) == state.text and cursor == state.cursor:
            return
        self._tracker.cursor_moved(cursor)
        self._notify()

    def handle_key(self, key: str) -> bool:
        if self._buffer is None:
            return False
        outcome = self._tracker.handle_key(key)
        if outcome.handled:
            self._apply_splice(outcome.effect)
            self._notify()
        return outcome.handled

    def select(self, index: int) -> None:
        if self._buffer is None:
            return
        effect = self._tracker.select(index)
        if effect is None:
            return
        self._apply_splice(effect)
        self._notify()

    def _apply_splice(self, effect: SetCursor | None) -> None:
        """Push the tracker's spliced text into the buffer, then move the caret later."""
        if effect is None:
            return
        buffer = self._buffer
        if buffer is None:
            return

        self._suppress_input_change_hook = True
        try:
            buffer.text = self._tracker.state.text
        finally:
            self._suppress_input_change_hook = False
        # Report the splice like any other change so the tracker consumes its latch.
        self._tracker.text_changed(buffer.text, buffer.cursor_position)
        self._schedule(lambda: self._restore_cursor(effect.offset))

    def _restore_cursor(self, offset: int) -> None:
        buffer = self._buffer
        if buffer is None:
            logger.debug("cursor restore skipped: input detached")
            return

        self._suppress_input_change_hook = True
        try:
            buffer.cursor_position = min(offset, len(buffer.text))
        finally:
            self._suppress_input_change_hook = False
        self._tracker.cursor_restored(buffer.cursor_position)
        self._notify()

    def reset(self) -> None:
        buffer = self._buffer
        if buffer is None:
            return
        buffer.reset()
        self._tracker.text_changed("", 0)
        self._notify()
