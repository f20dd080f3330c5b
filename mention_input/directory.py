"""User directory loading.

The directory is a fixed list of records, either JSON or YAML::

    - {id: 1, name: Alice, lastName: Smith}
    - {id: 2, name: Bob, lastName: Johnson}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from mention_input.models import User

logger = logging.getLogger(__name__)

DEFAULT_USERS: tuple[User, ...] = (
    User(id=1, name="Alice", last_name="Smith"),
    User(id=2, name="Bob", last_name="Johnson"),
    User(id=3, name="Charlie", last_name="Brown"),
    User(id=4, name="Hasan", last_name="Alic"),
)


class UserDirectoryError(ValueError):
    pass


class UserRecord(BaseModel):
    id: int
    name: str = Field(min_length=1)
    last_name: str = Field(alias="lastName", min_length=1)

    model_config = {"extra": "forbid", "populate_by_name": True}

    @field_validator("name", "last_name", mode="before")
    @classmethod
    def _strip_names(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    def to_user(self) -> User:
        return User(id=self.id, name=self.name, last_name=self.last_name)


def parse_users(data: Any, *, source: str = "<memory>") -> tuple[User, ...]:
    """Validate raw records; malformed entries are skipped, duplicate ids are fatal."""
    if not isinstance(data, list):
        raise UserDirectoryError(f"User directory {source} must be a list of records")

    users: list[User] = []
    seen: set[int] = set()
    for index, raw in enumerate(data):
        try:
            record = UserRecord.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Skipping invalid user #{index} in {source}: {e.error_count()} error(s)")
            continue
        if record.id in seen:
            raise UserDirectoryError(f"Duplicate user id {record.id} in {source}")
        seen.add(record.id)
        users.append(record.to_user())
    return tuple(users)


def load_users(path: Path) -> tuple[User, ...]:
    resolved = path.expanduser()
    content = resolved.read_text(encoding="utf-8")
    try:
        # YAML is a superset of JSON, one loader covers both formats.
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise UserDirectoryError(f"Failed to parse user directory {resolved}: {e}") from e

    users = parse_users(data if data is not None else [], source=str(resolved))
    logger.debug(f"Loaded {len(users)} users from {resolved}")
    return users
