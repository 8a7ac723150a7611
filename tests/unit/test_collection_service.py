from __future__ import annotations

import pytest

from recipesnap.app.domain.errors import CollectionNotFoundError, RecipeNotFoundError, ValidationError
from recipesnap.app.services.collection_service import CollectionService, reconcile_memberships


class TestReconcileMemberships:
    def test_diff(self) -> None:
        diff = reconcile_memberships({"a", "b"}, {"b", "c"})
        assert diff.to_add == frozenset({"c"})
        assert diff.to_remove == frozenset({"a"})

    def test_same_sets_give_empty_diff(self) -> None:
        assert reconcile_memberships(["a", "b"], ["b", "a", "a"]).is_empty

    def test_empty_desired_removes_everything(self) -> None:
        diff = reconcile_memberships({"a"}, [])
        assert diff.to_remove == frozenset({"a"})
        assert not diff.to_add


class TestCollectionCrud:
    def test_create_trims_name(self, collection_repo, recipe_repo) -> None:
        collection = CollectionService(collection_repo, recipe_repo).create_collection("u1", "  Desserts ")
        assert collection.name == "Desserts"

    def test_blank_name(self, collection_repo, recipe_repo) -> None:
        with pytest.raises(ValidationError):
            CollectionService(collection_repo, recipe_repo).create_collection("u1", "   ")

    def test_rename_other_owner(self, collection_repo, recipe_repo) -> None:
        collection = collection_repo.insert("u1", "Mine")
        with pytest.raises(CollectionNotFoundError):
            CollectionService(collection_repo, recipe_repo).rename_collection("u2", collection.id, "Stolen")

    def test_list_includes_count_and_first_image(self, collection_repo, recipe_repo) -> None:
        plain = recipe_repo.add("u1", "Plain")
        pictured = recipe_repo.add("u1", "Pictured", image_url="https://cdn.test/p.jpg")
        collection = collection_repo.insert("u1", "Mix")
        collection_repo.add_membership(collection.id, plain.id)
        collection_repo.add_membership(collection.id, pictured.id)
        collection_repo.insert("u1", "Empty")

        listed = {c.name: c for c in CollectionService(collection_repo, recipe_repo).list_collections("u1")}

        assert listed["Mix"].recipe_count == 2
        assert listed["Mix"].image_url == "https://cdn.test/p.jpg"
        assert listed["Empty"].recipe_count == 0
        assert listed["Empty"].image_url is None

    def test_delete_removes_memberships_first_and_keeps_recipes(self, collection_repo, recipe_repo) -> None:
        recipe = recipe_repo.add("u1", "Soup")
        collection = collection_repo.insert("u1", "Soups")
        collection_repo.add_membership(collection.id, recipe.id)
        collection_repo.writes.clear()

        CollectionService(collection_repo, recipe_repo).delete_collection("u1", collection.id)

        assert collection_repo.writes == [
            ("delete_memberships", collection.id, ""),
            ("delete_collection", collection.id, ""),
        ]
        assert collection_repo.memberships == []
        assert recipe_repo.get("u1", recipe.id) is not None

    def test_collection_recipes_keep_membership_order(self, collection_repo, recipe_repo) -> None:
        first = recipe_repo.add("u1", "First")
        second = recipe_repo.add("u1", "Second")
        collection = collection_repo.insert("u1", "Ordered")
        collection_repo.add_membership(collection.id, first.id)
        collection_repo.add_membership(collection.id, second.id)

        recipes = CollectionService(collection_repo, recipe_repo).list_collection_recipes("u1", collection.id)

        assert [r.title for r in recipes] == ["First", "Second"]


class TestSetRecipeCollections:
    def _setup(self, collection_repo, recipe_repo):
        recipe = recipe_repo.add("u1", "Soup")
        a = collection_repo.insert("u1", "A")
        b = collection_repo.insert("u1", "B")
        c = collection_repo.insert("u1", "C")
        collection_repo.add_membership(a.id, recipe.id)
        collection_repo.add_membership(b.id, recipe.id)
        collection_repo.writes.clear()
        return recipe, a, b, c

    def test_applies_minimal_writes(self, collection_repo, recipe_repo) -> None:
        recipe, a, b, c = self._setup(collection_repo, recipe_repo)
        service = CollectionService(collection_repo, recipe_repo)

        diff = service.set_recipe_collections("u1", recipe.id, [b.id, c.id])

        assert diff.to_add == frozenset({c.id})
        assert diff.to_remove == frozenset({a.id})
        assert sorted(collection_repo.writes) == [("add", c.id, recipe.id), ("remove", a.id, recipe.id)]
        assert collection_repo.list_collection_ids(recipe.id) == {b.id, c.id}

    def test_zero_diff_performs_no_writes(self, collection_repo, recipe_repo) -> None:
        recipe, a, b, _ = self._setup(collection_repo, recipe_repo)

        diff = CollectionService(collection_repo, recipe_repo).set_recipe_collections("u1", recipe.id, [b.id, a.id])

        assert diff.is_empty
        assert collection_repo.writes == []

    def test_rejects_foreign_collection(self, collection_repo, recipe_repo) -> None:
        recipe, *_ = self._setup(collection_repo, recipe_repo)
        foreign = collection_repo.insert("u2", "Theirs")

        with pytest.raises(CollectionNotFoundError):
            CollectionService(collection_repo, recipe_repo).set_recipe_collections("u1", recipe.id, [foreign.id])
        assert collection_repo.writes == []

    def test_rejects_foreign_recipe(self, collection_repo, recipe_repo) -> None:
        recipe = recipe_repo.add("u2", "Theirs")
        with pytest.raises(RecipeNotFoundError):
            CollectionService(collection_repo, recipe_repo).set_recipe_collections("u1", recipe.id, [])


class TestSingleMembershipChanges:
    def test_add_is_idempotent(self, collection_repo, recipe_repo) -> None:
        recipe = recipe_repo.add("u1", "Soup")
        collection = collection_repo.insert("u1", "Soups")
        service = CollectionService(collection_repo, recipe_repo)

        assert service.add_recipe("u1", collection.id, recipe.id) is True
        assert service.add_recipe("u1", collection.id, recipe.id) is False
        assert collection_repo.memberships == [(collection.id, recipe.id)]

    def test_remove_missing_member(self, collection_repo, recipe_repo) -> None:
        collection = collection_repo.insert("u1", "Soups")
        assert CollectionService(collection_repo, recipe_repo).remove_recipe("u1", collection.id, "r9") is False
