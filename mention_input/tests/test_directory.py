"""User directory loading"""

import json
import logging

import pytest

from mention_input.directory import UserDirectoryError, load_users, parse_users
from mention_input.models import User


def test_load_users_from_json(tmp_path):
    path = tmp_path / "users.json"
    path.write_text(
        json.dumps(
            [
                {"id": 1, "name": "Alice", "lastName": "Smith"},
                {"id": 2, "name": " Bob ", "last_name": "Johnson"},
            ]
        ),
        encoding="utf-8",
    )

    users = load_users(path)

    assert users == (
        User(id=1, name="Alice", last_name="Smith"),
        User(id=2, name="Bob", last_name="Johnson"),
    )


def test_load_users_from_yaml(tmp_path):
    path = tmp_path / "users.yaml"
    path.write_text(
        "- {id: 7, name: Grace, lastName: Hopper}\n"
        "- id: 8\n"
        "  name: Alan\n"
        "  lastName: Turing\n",
        encoding="utf-8",
    )

    users = load_users(path)

    assert [u.full_name for u in users] == ["Grace Hopper", "Alan Turing"]


def test_empty_file_yields_no_users(tmp_path):
    path = tmp_path / "users.yaml"
    path.write_text("", encoding="utf-8")
    assert load_users(path) == ()


def test_invalid_records_are_skipped(caplog):
    data = [
        {"id": 1, "name": "Alice", "lastName": "Smith"},
        {"id": "x", "name": "Broken", "lastName": "Id"},
        {"id": 3, "name": "", "lastName": "Empty"},
        {"id": 4, "name": "Extra", "lastName": "Key", "email": "e@example.com"},
    ]

    with caplog.at_level(logging.WARNING, logger="mention_input.directory"):
        users = parse_users(data)

    assert [u.id for u in users] == [1]
    assert len(caplog.records) == 3


def test_duplicate_ids_rejected():
    data = [
        {"id": 1, "name": "Alice", "lastName": "Smith"},
        {"id": 1, "name": "Alicia", "lastName": "Keys"},
    ]
    with pytest.raises(UserDirectoryError, match="Duplicate user id 1"):
        parse_users(data)


def test_non_list_content_rejected(tmp_path):
    path = tmp_path / "users.json"
    path.write_text('{"id": 1}', encoding="utf-8")
    with pytest.raises(UserDirectoryError):
        load_users(path)


def test_malformed_yaml_rejected(tmp_path):
    path = tmp_path / "users.yaml"
    path.write_text("- [unclosed", encoding="utf-8")
    with pytest.raises(UserDirectoryError, match="Failed to parse"):
        load_users(path)
