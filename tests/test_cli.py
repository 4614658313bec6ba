"""Tests for the operator CLI in main.py.

Covers:
- create-admin bootstraps an admin that can log in, and reports field errors
- set-active toggles is_active by username or email
- set-role grants and revokes the admin role
- argument parsing rejects set-active without --enable/--disable and unknown roles
"""

import pytest

import main as cli
from auth.models import ROLE_ADMIN, ROLE_USER
from factories import make_user

ADMIN_ARGS = ["create-admin", "--username", "root", "--email", "root@lab.edu", "--full-name", "Root Admin"]


@pytest.fixture
def cli_store(store, monkeypatch):
    # Commands close their store when done; keep the shared-memory DB alive.
    monkeypatch.setattr(store, "close", lambda: None)
    monkeypatch.setattr(cli, "_open_store", lambda settings: store)
    return store


def test_create_admin(cli_store, capsys):
    assert cli.main([*ADMIN_ARGS, "--password", "R00t!pass"]) == 0
    user = cli_store.get_by_identifier("root")
    assert user.role == ROLE_ADMIN
    assert user.is_active is True
    assert "created" in capsys.readouterr().out


def test_create_admin_weak_password(cli_store, capsys):
    assert cli.main([*ADMIN_ARGS, "--password", "weak"]) == 1
    assert "password:" in capsys.readouterr().out
    assert cli_store.get_by_identifier("root") is None


def test_create_admin_prompts_and_checks_confirmation(cli_store, monkeypatch):
    answers = iter(["R00t!pass", "R00t!pasz"])
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: next(answers))
    assert cli.main(ADMIN_ARGS) == 1
    assert cli_store.get_by_identifier("root") is None


def test_set_active_toggle(cli_store):
    cli_store.create_user(make_user("ana", "ana@lab.edu"))
    assert cli.main(["set-active", "--username", "ana", "--disable"]) == 0
    assert cli_store.get_by_identifier("ana").is_active is False
    assert cli.main(["set-active", "--username", "ana@lab.edu", "--enable"]) == 0
    assert cli_store.get_by_identifier("ana").is_active is True


def test_set_active_unknown_user(cli_store):
    assert cli.main(["set-active", "--username", "ghost", "--disable"]) == 1


def test_set_active_requires_a_direction():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["set-active", "--username", "ana"])


def test_set_role_grant_and_revoke(cli_store, capsys):
    cli_store.create_user(make_user("ana", "ana@lab.edu"))
    assert cli.main(["set-role", "--username", "ana", "--role", "admin"]) == 0
    assert cli_store.get_by_identifier("ana").role == ROLE_ADMIN
    assert "role 'admin'" in capsys.readouterr().out
    assert cli.main(["set-role", "--username", "ana@lab.edu", "--role", "user"]) == 0
    assert cli_store.get_by_identifier("ana").role == ROLE_USER


def test_set_role_unknown_user(cli_store):
    assert cli.main(["set-role", "--username", "ghost", "--role", "admin"]) == 1


def test_set_role_rejects_unknown_role():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["set-role", "--username", "ana", "--role", "owner"])
