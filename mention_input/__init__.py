"""
@mention autocomplete state machine for single-line text inputs.

Example:
    from mention_input import DEFAULT_USERS, MentionTracker

    tracker = MentionTracker(DEFAULT_USERS)
    tracker.text_changed("Hi @Ali", cursor=7)
    effect = tracker.confirm()

    tracker.state.text    # "Hi @Alice Smith "
    effect.offset         # 16
"""

from mention_input.directory import DEFAULT_USERS, UserDirectoryError, load_users, parse_users
from mention_input.models import Mention, MentionState, SetCursor, TrackerMode, User
from mention_input.render import TextSegment, render_rich_text, segments_to_fragments, split_segments
from mention_input.scanning import (
    filter_candidates,
    find_composing_token,
    is_mention_complete,
    recompute_mentions,
)
from mention_input.settings import MentionSettings, resolve_settings
from mention_input.tracker import (
    KeyOutcome,
    MentionTracker,
    apply_confirmation,
    apply_cursor_move,
    apply_cursor_restored,
    apply_dismiss,
    apply_navigation,
    apply_text_change,
)

__all__ = [
    "MentionTracker",
    "KeyOutcome",
    "apply_text_change",
    "apply_cursor_move",
    "apply_navigation",
    "apply_confirmation",
    "apply_dismiss",
    "apply_cursor_restored",
    # Data model
    "User",
    "Mention",
    "MentionState",
    "SetCursor",
    "TrackerMode",
    # Scanning
    "recompute_mentions",
    "find_composing_token",
    "filter_candidates",
    "is_mention_complete",
    # Rendering
    "TextSegment",
    "split_segments",
    "segments_to_fragments",
    "render_rich_text",
    # User directory
    "DEFAULT_USERS",
    "UserDirectoryError",
    "load_users",
    "parse_users",
    # Settings
    "MentionSettings",
    "resolve_settings",
]
