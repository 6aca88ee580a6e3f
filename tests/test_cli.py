"""Tests for main.py -- the administrative CLI.

Covers:
- create-user (plain and --admin), duplicate email exit code
- list-users table and --json output never include password material
- set-role and delete-user, including unknown ids
"""

from __future__ import annotations

import json

import pytest

from auth.directory import UserDirectory
from auth.store import RecordStore
from main import main


@pytest.fixture
def users_file(tmp_path):
    return str(tmp_path / "users.json")


def _create(users_file: str, email: str, *extra: str) -> int:
    args = ["create-user", "--name", "Ann", "--email", email, "--password", "secret1", *extra]
    return main(["--users-file", users_file, *args])


def test_create_admin(users_file, capsys):
    assert _create(users_file, "root@x.com", "--admin") == 0
    assert "Created admin" in capsys.readouterr().out
    record = UserDirectory(RecordStore(users_file)).find_by_email_with_secret("root@x.com")
    assert record.role == "admin"


def test_duplicate_email_fails(users_file, capsys):
    assert _create(users_file, "ann@x.com") == 0
    assert _create(users_file, "ann@x.com") == 1
    assert "already exists" in capsys.readouterr().out


def test_short_password_fails(users_file, capsys):
    code = main(["--users-file", users_file, "create-user", "--name", "A", "--email", "a@x.com", "--password", "123"])
    assert code == 1
    assert "at least 6" in capsys.readouterr().out


def test_list_users_json_has_no_secrets(users_file, capsys):
    _create(users_file, "ann@x.com")
    capsys.readouterr()
    assert main(["--users-file", users_file, "list-users", "--json"]) == 0
    users = json.loads(capsys.readouterr().out)
    assert [u["email"] for u in users] == ["ann@x.com"]
    assert "password_hash" not in users[0]


def test_list_users_empty(users_file, capsys):
    assert main(["--users-file", users_file, "list-users"]) == 0
    assert "No users." in capsys.readouterr().out


def test_set_role_and_delete(users_file, capsys):
    _create(users_file, "ann@x.com")
    directory = UserDirectory(RecordStore(users_file))
    user_id = directory.find_all()[0].id

    assert main(["--users-file", users_file, "set-role", user_id, "admin"]) == 0
    assert directory.find_by_id(user_id).role == "admin"

    assert main(["--users-file", users_file, "delete-user", user_id]) == 0
    assert directory.find_by_id(user_id) is None


def test_unknown_id(users_file, capsys):
    assert main(["--users-file", users_file, "set-role", "missing", "user"]) == 1
    assert main(["--users-file", users_file, "delete-user", "missing"]) == 1
