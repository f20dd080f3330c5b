"""@mention 候选菜单 UI 组件。

显示当前过滤后的用户列表，高亮行跟随 tracker 的 highlighted_index，
支持鼠标点击直接选择。
"""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.layout import Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.mouse_events import MouseEvent, MouseEventType

from mention_input import MentionTracker


def visible_range(count: int, highlighted: int, max_rows: int) -> tuple[int, int]:
    """Return the ``[start, end)`` window of rows that keeps ``highlighted`` on screen."""
    if count <= 0:
        return 0, 0
    max_rows = max(1, max_rows)
    if count <= max_rows:
        return 0, count
    highlighted = max(0, min(highlighted, count - 1))
    start = min(max(0, highlighted - max_rows + 1), count - max_rows)
    return start, start + max_rows


class SuggestionMenuUI:
    """候选用户下拉菜单。

    按键由 input bridge 处理，这里只负责渲染和鼠标点击：
    - 高亮行: ▶ ●
    - 点击任意行: 调用 on_select(index)
    """

    def __init__(
        self,
        tracker: MentionTracker,
        on_select: Callable[[int], None],
        *,
        max_height: int = 8,
    ) -> None:
        self._tracker = tracker
        self._on_select = on_select
        self._max_height = max(1, max_height)

        self._control = FormattedTextControl(text=self._fragments, focusable=False)
        self._window = Window(
            content=self._control,
            height=self._height,
            dont_extend_height=True,
            style="class:suggestion.body",
        )

    @property
    def container(self) -> Window:
        return self._window

    def is_visible(self) -> bool:
        return self._tracker.state.suggestions_visible

    def _height(self) -> Dimension:
        count = len(self._tracker.candidates())
        rows = min(max(count, 1), self._max_height)
        return Dimension.exact(rows)

    def _click_handler(self, index: int) -> Callable[[MouseEvent], object]:
        def _handler(mouse_event: MouseEvent) -> object:
            if mouse_event.event_type != MouseEventType.MOUSE_UP:
                return NotImplemented
            self._on_select(index)
            return None

        return _handler

    def _fragments(self) -> list[tuple]:
        candidates = self._tracker.candidates()
        if not candidates:
            return [("class:suggestion.empty", "  No matching users")]

        highlighted = self._tracker.state.highlighted_index
        start, end = visible_range(len(candidates), highlighted, self._max_height)

        fragments: list[tuple] = []
        for idx in range(start, end):
            user = candidates[idx]
            is_selected = idx == highlighted
            cursor = "▶" if is_selected else " "
            marker = "●" if is_selected else "○"
            style = "class:suggestion.option.selected" if is_selected else "class:suggestion.option"
            fragments.append((style, f"  {cursor} {marker} {user.full_name}", self._click_handler(idx)))
            if idx < end - 1:
                fragments.append(("", "\n"))
        return fragments

    def __pt_formatted_text__(self) -> list[tuple]:
        return self._fragments()
