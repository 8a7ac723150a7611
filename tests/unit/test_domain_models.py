from __future__ import annotations

from datetime import datetime, timedelta, timezone

from recipesnap.app.domain.models import (
    MembershipDiff,
    Recipe,
    ShareLink,
    ShareResolution,
    ShareState,
)

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _link(expires_at: datetime) -> ShareLink:
    return ShareLink(share_hash="abcdefghij", recipe_id="r1", created_by="u1", expires_at=expires_at)


class TestShareState:
    def test_values(self) -> None:
        assert ShareState.NONE.value == "NONE"
        assert ShareState.ACTIVE.value == "ACTIVE"
        assert ShareState.EXPIRED.value == "EXPIRED"

    def test_is_string_enum(self) -> None:
        assert isinstance(ShareState.ACTIVE, str)
        assert ShareState.ACTIVE == "ACTIVE"


class TestShareLink:
    def test_active_before_expiry(self) -> None:
        link = _link(NOW + timedelta(days=1))
        assert link.state_at(NOW) is ShareState.ACTIVE
        assert link.is_expired(NOW) is False

    def test_expired_at_exact_boundary(self) -> None:
        link = _link(NOW)
        assert link.state_at(NOW) is ShareState.EXPIRED

    def test_expired_after_expiry(self) -> None:
        link = _link(NOW - timedelta(seconds=1))
        assert link.is_expired(NOW) is True


class TestShareResolution:
    def test_owner_can_regenerate_expired(self) -> None:
        resolution = ShareResolution(
            share=_link(NOW), recipe=Recipe(id="r1", user_id="u1", title="Soup"), is_owner=True, expired=True
        )
        assert resolution.can_regenerate is True

    def test_owner_cannot_regenerate_active(self) -> None:
        resolution = ShareResolution(
            share=_link(NOW), recipe=Recipe(id="r1", user_id="u1", title="Soup"), is_owner=True, expired=False
        )
        assert resolution.can_regenerate is False


class TestRecipeDefaults:
    def test_defaults(self) -> None:
        recipe = Recipe(id="r1", user_id="u1", title="Soup")
        assert recipe.description == ""
        assert recipe.ingredients == []
        assert recipe.steps == []
        assert recipe.is_favorite is False
        assert recipe.image_url is None


class TestMembershipDiff:
    def test_empty(self) -> None:
        assert MembershipDiff(to_add=frozenset(), to_remove=frozenset()).is_empty

    def test_not_empty(self) -> None:
        assert not MembershipDiff(to_add=frozenset({"c1"}), to_remove=frozenset()).is_empty
