from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Callable

from prompt_toolkit.application import Application, run_in_terminal
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.containers import ConditionalContainer
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.styles import Style as PTStyle
from prompt_toolkit.widgets import TextArea
from rich.console import Console
from rich.text import Text

from mention_input import (
    DEFAULT_USERS,
    MentionSettings,
    MentionTracker,
    User,
    UserDirectoryError,
    load_users,
    render_rich_text,
    resolve_settings,
    segments_to_fragments,
    split_segments,
)
from mention_input.tracker import KEY_DOWN, KEY_ENTER, KEY_ESCAPE, KEY_UP

from mention_terminal.input_bridge import MentionInputBridge
from mention_terminal.logging_adapter import setup_logging
from mention_terminal.suggestion_menu import SuggestionMenuUI

console = Console()
logger = logging.getLogger(__name__)

_HINT_TEXT = "  ↑/↓: Move  Enter: Select/Send  Esc: Close  Ctrl-C: Quit"


def schedule_soon(callback: Callable[[], None]) -> None:
    """Run ``callback`` on the next loop iteration, after the current redraw request."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback()
        return
    loop.call_soon(callback)


class MentionInputApp:
    def __init__(self, tracker: MentionTracker, settings: MentionSettings) -> None:
        self._tracker = tracker
        self._settings = settings
        self._status: tuple[str, bool] | None = None
        self._submitted: list[str] = []

        self._input_area = TextArea(
            text="",
            multiline=False,
            prompt="> ",
            complete_while_typing=False,
            style="class:input.line",
        )
        self._bridge = MentionInputBridge(
            tracker,
            schedule=schedule_soon,
            on_change=self._invalidate,
        )
        self._bridge.attach(self._input_area.buffer)

        self._menu = SuggestionMenuUI(
            tracker,
            on_select=self._select_candidate,
            max_height=settings.menu_max_height,
        )

        self._preview_control = FormattedTextControl(text=self._preview_fragments)
        self._debug_control = FormattedTextControl(text=self._debug_fragments)
        self._status_control = FormattedTextControl(text=self._status_fragments)

        root = HSplit(
            [
                Window(
                    content=FormattedTextControl(text=[("class:title", "  User Mention Input")]),
                    height=1,
                    style="class:title",
                ),
                ConditionalContainer(
                    content=self._menu.container,
                    filter=Condition(self._menu.is_visible),
                ),
                self._input_area,
                Window(height=1, char="─", style="class:divider"),
                Window(content=self._preview_control, height=1, style="class:preview"),
                ConditionalContainer(
                    content=Window(content=self._debug_control, dont_extend_height=True, style="class:debug"),
                    filter=Condition(lambda: self._settings.show_debug),
                ),
                Window(content=self._status_control, height=1, style="class:status"),
            ]
        )

        self._style = PTStyle.from_dict(
            {
                "title": "bg:#2d3138 #c3ccd8 bold",
                "divider": "fg:#4b5563",
                "input.line": "bg:default #f2f4f8",
                "preview": "bg:#1f232a #d8dee9",
                "preview.label": "fg:#94a3b8",
                "preview.text": "#d8dee9",
                "preview.mention": "bg:#5e81ac #eceff4 bold",
                "preview.mention.editing": "bg:#ebcb8b #2e3440 bold",
                "debug": "bg:#1a1e24 #94a3b8",
                "status": "bg:#2d3138 #c3ccd8",
                "status.warning": "bg:#2d3138 #ebcb8b",
                "status.error": "bg:#2d3138 #bf616a bold",
                "suggestion.body": "bg:#252a33 #d8dee9",
                "suggestion.option": "fg:#dbeafe",
                "suggestion.option.selected": "bg:#1e3a8a #f8fafc bold",
                "suggestion.empty": "fg:#9ca3af italic",
            }
        )

        self._app: Application | None = Application(
            layout=Layout(root, focused_element=self._input_area),
            key_bindings=self._build_key_bindings(),
            style=self._style,
            full_screen=False,
            mouse_support=settings.mouse_support,
        )

    @property
    def submitted(self) -> list[str]:
        return list(self._submitted)

    def _build_key_bindings(self) -> KeyBindings:
        bindings = KeyBindings()
        suggestions_shown = Condition(lambda: self._tracker.state.suggestions_visible)
        # 没有候选时上下键交还给输入框
        candidates_shown = suggestions_shown & Condition(lambda: bool(self._tracker.candidates()))

        @bindings.add("down", filter=candidates_shown)
        def _down(event) -> None:
            del event
            self._bridge.handle_key(KEY_DOWN)

        @bindings.add("up", filter=candidates_shown)
        def _up(event) -> None:
            del event
            self._bridge.handle_key(KEY_UP)

        @bindings.add("escape", filter=suggestions_shown, eager=True)
        def _escape(event) -> None:
            del event
            self._bridge.handle_key(KEY_ESCAPE)

        @bindings.add("enter", eager=True)
        def _enter(event) -> None:
            del event
            # 菜单打开时：先确认候选，不发送
            if self._bridge.handle_key(KEY_ENTER):
                return
            self._submit()

        @bindings.add("c-c")
        @bindings.add("c-d")
        def _quit(event) -> None:
            event.app.exit(result=None)

        return bindings

    def _select_candidate(self, index: int) -> None:
        self._bridge.select(index)

    def _submit(self) -> None:
        state = self._tracker.state
        if not state.text.strip():
            return

        rendered = Text("> ", style="bold cyan")
        rendered.append_text(render_rich_text(state.text, state.mentions))
        mention_count = len(state.mentions)
        self._submitted.append(state.text)
        logger.info(f"Submitted message with {mention_count} mention(s)")

        def _print() -> None:
            console.print(rendered)

        if self._app is not None and self._app.is_running:
            run_in_terminal(_print, in_executor=False)
        else:
            _print()
        self._bridge.reset()

    def set_status(self, message: str, is_error: bool = False) -> None:
        self._status = (message, is_error)
        self._invalidate()

    def _preview_fragments(self) -> list[tuple[str, str]]:
        state = self._tracker.state
        segments = split_segments(
            state.text,
            state.mentions,
            editing_mention_id=state.editing_mention_id,
        )
        return [("class:preview.label", "  Preview: "), *segments_to_fragments(segments)]

    def _debug_fragments(self) -> list[tuple[str, str]]:
        state = self._tracker.state
        mentions = json.dumps([asdict(mention) for mention in state.mentions])
        lines = [
            f"  Cursor: {state.cursor}",
            f"  Mentions: {mentions}",
            f"  Editing: {state.editing_mention_id}",
            f'  Query: "{state.filter_query}"',
            f"  Just Selected: {'Yes' if state.suppress_auto_detect else 'No'}",
            f"  Show Suggestions: {'Yes' if state.suggestions_visible else 'No'}",
            f"  Mode: {state.mode.value}",
        ]
        return [("class:debug", "\n".join(lines))]

    def _status_fragments(self) -> list[tuple[str, str]]:
        if self._status is None:
            return [("class:status", _HINT_TEXT)]
        message, is_error = self._status
        style = "class:status.error" if is_error else "class:status.warning"
        return [(style, f"  {message}")]

    def _invalidate(self) -> None:
        if self._app is None:
            return
        self._app.invalidate()

    async def run(self) -> None:
        if self._app is None:
            return
        try:
            await self._app.run_async()
        finally:
            self._bridge.detach()


def resolve_users(argv: list[str], settings: MentionSettings) -> tuple[User, ...]:
    """命令行参数 > settings.users_file > 内置示例用户"""
    path = Path(argv[0]) if argv else settings.users_file
    if path is None:
        return DEFAULT_USERS

    try:
        users = load_users(path)
    except (OSError, UserDirectoryError) as e:
        console.print(f"[yellow]⚠ Failed to load users from {path}: {e}. Using demo users.[/]")
        return DEFAULT_USERS

    if not users:
        console.print(f"[yellow]⚠ No users in {path}. Using demo users.[/]")
        return DEFAULT_USERS
    return users


async def run(argv: list[str]) -> list[str]:
    settings = resolve_settings()
    users = resolve_users(argv, settings)
    tracker = MentionTracker(users)

    app = MentionInputApp(tracker, settings)
    log_path = setup_logging(app.set_status)
    logger.debug(f"Logging to {log_path}; {len(users)} users loaded")

    await app.run()
    return app.submitted


if __name__ == "__main__":
    asyncio.run(run(sys.argv[1:]))
