"""
Tests for identity resolution from session claims.

Tests:
- Each id field in chain order
- Email fallback through the store
- Failure when nothing resolves
"""

import pytest
from unittest.mock import AsyncMock

from core.identity import (
    IdentityNotResolved,
    resolve_user_id,
    session_email,
    session_user_id,
)


class TestSessionUserId:
    """Ordered id lookup without the store."""

    @pytest.mark.parametrize("session,expected", [
        ({"user": {"id": "u-1"}}, "u-1"),
        ({"user": {"sub": "u-2"}}, "u-2"),
        ({"sub": "u-3"}, "u-3"),
        ({"userId": "u-4"}, "u-4"),
        ({"id": "u-5"}, "u-5"),
    ])
    def test_each_field(self, session, expected):
        assert session_user_id(session) == expected

    def test_first_field_wins(self):
        session = {"user": {"id": "nested", "sub": "nested-sub"}, "sub": "top", "id": "last"}
        assert session_user_id(session) == "nested"

    def test_user_sub_before_top_level_sub(self):
        assert session_user_id({"user": {"sub": "a"}, "sub": "b"}) == "a"

    def test_empty_values_are_skipped(self):
        session = {"user": {"id": "", "sub": "   "}, "sub": None, "userId": "u-9"}
        assert session_user_id(session) == "u-9"

    def test_numeric_id_is_stringified(self):
        assert session_user_id({"sub": 42}) == "42"

    def test_user_not_a_mapping(self):
        assert session_user_id({"user": "someone", "id": "u-1"}) == "u-1"

    @pytest.mark.parametrize("session", [None, {}, {"user": {}}, {"name": "x"}])
    def test_nothing_found(self, session):
        assert session_user_id(session) is None


class TestSessionEmail:

    def test_nested_email_first(self):
        assert session_email({"user": {"email": "a@example.com"}, "email": "b@example.com"}) == "a@example.com"

    def test_top_level_email(self):
        assert session_email({"email": "b@example.com"}) == "b@example.com"

    def test_missing(self):
        assert session_email({"user": {"name": "x"}}) is None


class TestResolveUserId:
    """The full chain including the store lookup."""

    @pytest.mark.asyncio
    async def test_id_field_skips_lookup(self):
        lookup = AsyncMock(return_value="from-store")
        assert await resolve_user_id({"sub": "u-1", "email": "a@example.com"}, lookup) == "u-1"
        lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_falls_back_to_email_lookup(self):
        lookup = AsyncMock(return_value="u-from-email")
        result = await resolve_user_id({"user": {"email": "jane@example.com"}}, lookup)
        assert result == "u-from-email"
        lookup.assert_awaited_once_with("jane@example.com")

    @pytest.mark.asyncio
    async def test_unknown_email_fails(self):
        lookup = AsyncMock(return_value=None)
        with pytest.raises(IdentityNotResolved):
            await resolve_user_id({"email": "nobody@example.com"}, lookup)

    @pytest.mark.asyncio
    async def test_no_id_and_no_email_fails(self):
        lookup = AsyncMock(return_value="never")
        with pytest.raises(IdentityNotResolved):
            await resolve_user_id({"user": {"name": "Anonymous"}}, lookup)
        lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_session_fails(self):
        with pytest.raises(IdentityNotResolved):
            await resolve_user_id(None, AsyncMock(return_value=None))
