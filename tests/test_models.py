"""Unit tests for auth/models.py -- request validation and entity helpers."""

import pytest
from pydantic import ValidationError

from auth.models import Role, UpdateUserRequest, as_utc, parse_roles
from tests.conftest import NOW, make_request


class TestNewUserRequest:
    def test_valid(self) -> None:
        req = make_request(roles=[Role.admin, Role.user, Role.admin])
        assert req.roles == [Role.admin, Role.user]

    def test_roles_from_strings(self) -> None:
        assert make_request(roles=["user"]).roles == [Role.user]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"roles": []},
            {"roles": ["superuser"]},
            {"email": "not-an-email"},
            {"email": "two@@example.com"},
            {"password": "short", "password_confirm": "short"},
            {"password_confirm": "something-else"},
            {"name": ""},
        ],
    )
    def test_invalid(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            make_request(**overrides)

    def test_password_limit_counts_utf8_bytes(self) -> None:
        assert make_request(password="é" * 36, password_confirm="é" * 36).password == "é" * 36
        with pytest.raises(ValidationError):
            make_request(password="é" * 40, password_confirm="é" * 40)
        with pytest.raises(ValidationError):
            make_request(password="a" * 73, password_confirm="a" * 73)

    def test_password_whitespace_preserved(self) -> None:
        req = make_request(password=" padded password ", password_confirm=" padded password ")
        assert req.password == " padded password "


def test_update_request_strips_whitespace() -> None:
    req = UpdateUserRequest(name="  Ada ", last_name="Lovelace", email="ada@example.com", country="UK")
    assert req.name == "Ada"


def test_parse_roles_dedupes_and_rejects_unknown() -> None:
    assert parse_roles(["user", "admin", "user"]) == [Role.user, Role.admin]
    with pytest.raises(ValueError):
        parse_roles(["root"])


def test_as_utc() -> None:
    assert as_utc(NOW.replace(tzinfo=None)) == NOW
