"""Tests for the per-user refresh token registry."""

from datetime import timedelta

import pytest

from models.helpers import utc_now
from models.records import UserRecord
from security.registry import (
    add_refresh_token,
    has_refresh_token,
    prune_expired,
    remove_refresh_token,
)

WEEK = 7 * 24 * 3600


@pytest.fixture
def user() -> UserRecord:
    return UserRecord(id="u1", username="u1", email="u1@e.com", password_hash="hash")


def test_add_registers_token_with_expiry(user):
    now = utc_now()

    updated = add_refresh_token(user, "A", WEEK, now)

    assert [rt.token for rt in updated.refresh_tokens] == ["A"]
    assert updated.refresh_tokens[0].expires_at == now + timedelta(seconds=WEEK)


def test_operations_do_not_mutate_the_input(user):
    now = utc_now()

    added = add_refresh_token(user, "A", WEEK, now)
    removed = remove_refresh_token(added, "A")

    assert user.refresh_tokens == ()
    assert len(added.refresh_tokens) == 1
    assert removed.refresh_tokens == ()


def test_token_survives_prune_until_expiry(user):
    now = utc_now()
    user = add_refresh_token(user, "A", 60, now)

    assert has_refresh_token(prune_expired(user, now + timedelta(seconds=59)), "A", now)
    assert prune_expired(user, now + timedelta(seconds=60)).refresh_tokens == ()
    assert not has_refresh_token(user, "A", now + timedelta(seconds=60))


def test_add_prunes_expired_tokens(user):
    now = utc_now()
    user = add_refresh_token(user, "old", 60, now)

    user = add_refresh_token(user, "new", WEEK, now + timedelta(minutes=5))

    assert [rt.token for rt in user.refresh_tokens] == ["new"]


def test_remove_only_removes_the_given_token(user):
    now = utc_now()
    user = add_refresh_token(add_refresh_token(user, "A", WEEK, now), "B", WEEK, now)

    user = remove_refresh_token(user, "A")

    assert [rt.token for rt in user.refresh_tokens] == ["B"]


def test_remove_absent_token_is_a_no_op(user):
    user = add_refresh_token(user, "A", WEEK, utc_now())

    assert remove_refresh_token(user, "missing").refresh_tokens == user.refresh_tokens


def test_has_refresh_token_requires_exact_match(user):
    now = utc_now()
    user = add_refresh_token(user, "token-A", WEEK, now)

    assert has_refresh_token(user, "token-A", now)
    assert not has_refresh_token(user, "token-", now)
    assert not has_refresh_token(user, "token-AB", now)
