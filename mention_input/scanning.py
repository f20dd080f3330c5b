from __future__ import annotations

import itertools
import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from mention_input.models import Mention, User

logger = logging.getLogger(__name__)

# "@First Last" with exactly one joining space.
MENTION_PATTERN = re.compile(r"@([A-Za-z]+ [A-Za-z]+)")
# In-progress "@", "@Fir", "@First " or "@First La" ending at the cursor.
COMPOSING_PATTERN = re.compile(r"@([A-Za-z]*(?: [A-Za-z]*)?)\Z")

_mention_ids = itertools.count(1)


def next_mention_id() -> int:
    return next(_mention_ids)


@dataclass(frozen=True, slots=True)
class ComposingToken:
    marker_index: int
    fragment: str


def recompute_mentions(
    text: str,
    users: Iterable[User],
    *,
    id_factory: Callable[[], int] = next_mention_id,
) -> tuple[Mention, ...]:
    """Rebuild the mention spans of ``text`` from scratch.

    Tokens that do not resolve to a known user stay plain text.
    """
    by_full_name: dict[str, User] = {}
    for user in users:
        by_full_name.setdefault(user.full_name.lower(), user)

    mentions: list[Mention] = []
    for match in MENTION_PATTERN.finditer(text):
        user = by_full_name.get(match.group(1).lower())
        if user is None:
            continue
        mentions.append(
            Mention(
                id=id_factory(),
                start=match.start(),
                end=match.end(),
                user_id=user.id,
                text=match.group(0),
            )
        )
    return tuple(mentions)


def find_composing_token(text_before_cursor: str) -> ComposingToken | None:
    """Return the in-progress mention ending at the cursor, if it starts a token."""
    match = COMPOSING_PATTERN.search(text_before_cursor)
    if match is None:
        return None

    marker_index = match.start()
    if marker_index > 0 and text_before_cursor[marker_index - 1] != " ":
        return None

    return ComposingToken(marker_index=marker_index, fragment=match.group(1))


def mention_at(mentions: Sequence[Mention], offset: int) -> Mention | None:
    for mention in mentions:
        if mention.contains(offset):
            return mention
    return None


def editing_query(text: str, mention: Mention, cursor: int) -> str:
    """First space-delimited word typed after the mention's ``@`` up to the cursor."""
    typed = text[mention.start + 1 : cursor]
    return typed.split(" ")[0]


def is_mention_complete(mention_text: str) -> bool:
    parts = mention_text[1:].split(" ")
    return len(parts) >= 2 and bool(parts[0]) and bool(parts[1])


def filter_candidates(users: Iterable[User], query: str) -> list[User]:
    needle = query.lower()
    return [user for user in users if needle in user.full_name.lower()]
