"""Unit tests for auth/guard.py -- the authorization decision.

Covers:
- Admin callers are allowed on any target
- Any caller is allowed on their own id
- Non-admin callers are denied on other ids
- Plain string role tags behave like Role members
"""

import uuid

import pytest

from auth.guard import authorize, is_allowed
from auth.models import Role
from tests.conftest import claims_for

SELF_ID = str(uuid.uuid4())
OTHER_ID = str(uuid.uuid4())


@pytest.mark.parametrize(
    ("roles", "target", "expected"),
    [
        ([Role.admin], OTHER_ID, True),
        ([Role.admin], SELF_ID, True),
        ([Role.admin, Role.user], OTHER_ID, True),
        ([Role.user], SELF_ID, True),
        ([Role.user], OTHER_ID, False),
        ([], OTHER_ID, False),
        ([], SELF_ID, True),
    ],
)
def test_is_allowed(roles: list[Role], target: str, expected: bool) -> None:
    assert is_allowed(roles, SELF_ID, target) is expected


def test_authorize_reads_subject_and_roles_from_claims() -> None:
    assert authorize(claims_for(SELF_ID, Role.user), SELF_ID)
    assert not authorize(claims_for(SELF_ID, Role.user), OTHER_ID)
    assert authorize(claims_for(SELF_ID, Role.admin), OTHER_ID)


def test_string_role_tags_are_understood() -> None:
    assert is_allowed(["admin"], SELF_ID, OTHER_ID)
    assert not is_allowed(["user"], SELF_ID, OTHER_ID)
