from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from recipesnap.app import deps
from recipesnap.app.config import settings
from recipesnap.app.main import app
from recipesnap.app.services.collection_service import CollectionService
from recipesnap.app.services.recipe_service import RecipeService
from recipesnap.app.services.share_service import ShareService
from recipesnap.services.errors import (
    ImageConversionError,
    MalformedCompletionError,
    NoContentError,
    RateLimitedError,
)
from recipesnap.services.ingest import ExtractionDraft, ExtractionRequest

OWNER = deps.CurrentUser(id="owner", email="owner@example.com")
VIEWER = deps.CurrentUser(id="viewer", email="viewer@example.com")


class IngestorStub:
    def __init__(self) -> None:
        self.error: Exception | None = None
        self.requests: list[ExtractionRequest] = []

    async def extract(self, request: ExtractionRequest) -> ExtractionDraft:
        self.requests.append(request)
        request.mode  # raises InvalidInputError like the real ingestor
        if self.error:
            raise self.error
        return ExtractionDraft(title="Pancakes", ingredients=["1 cup flour (120g)"], steps=["Mix"])


class ClockStub:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def ingestor() -> IngestorStub:
    return IngestorStub()


@pytest.fixture
def clock() -> ClockStub:
    return ClockStub()


@pytest.fixture
def current_user() -> dict:
    return {"user": OWNER}


@pytest.fixture
def client(recipe_repo, collection_repo, share_repo, ingestor, clock, current_user):
    app.dependency_overrides[deps.get_current_user] = lambda: current_user["user"]
    app.dependency_overrides[deps.get_optional_user] = lambda: current_user["user"]
    app.dependency_overrides[deps.get_ingestor] = lambda: ingestor
    app.dependency_overrides[deps.get_recipe_service] = lambda: RecipeService(
        recipe_repo, collections=collection_repo
    )
    app.dependency_overrides[deps.get_collection_service] = lambda: CollectionService(
        collection_repo, recipe_repo
    )
    app.dependency_overrides[deps.get_share_service] = lambda: ShareService(
        share_repo, recipe_repo, clock=clock
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client) -> None:
        assert client.get("/health").json() == {"ok": True}

    def test_me(self, client) -> None:
        assert client.get("/auth/me").json()["id"] == "owner"


class TestExtractRecipe:
    def test_url_extraction(self, client, ingestor) -> None:
        response = client.post("/api/extract-recipe", data={"url": "https://blog.test/pancakes"})

        assert response.status_code == 200
        assert response.json()["title"] == "Pancakes"
        assert ingestor.requests[0].url == "https://blog.test/pancakes"
        assert ingestor.requests[0].social is False

    def test_social_flag(self, client, ingestor) -> None:
        client.post("/api/extract-recipe", data={"url": "https://www.tiktok.com/@a/video/1", "social": "true"})
        assert ingestor.requests[0].social is True

    def test_image_upload(self, client, ingestor) -> None:
        response = client.post(
            "/api/extract-recipe",
            files={"image": ("dish.heic", b"heic-bytes", "image/heic")},
        )

        assert response.status_code == 200
        image = ingestor.requests[0].image
        assert image.filename == "dish.heic"
        assert image.content_type == "image/heic"
        assert image.data == b"heic-bytes"

    def test_missing_input(self, client) -> None:
        response = client.post("/api/extract-recipe", data={})
        assert response.status_code == 400
        assert response.json()["error"] == "Neither URL nor image provided"

    def test_oversized_upload(self, client, ingestor, monkeypatch) -> None:
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 1024)

        response = client.post(
            "/api/extract-recipe",
            files={"image": ("big.jpg", b"x" * 4096, "image/jpeg")},
        )

        assert response.status_code == 413
        assert response.json() == {"error": "File too large"}
        assert ingestor.requests == []

    def test_oversized_chunked_upload_rejected_after_read(self, client, ingestor, monkeypatch) -> None:
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 1024)
        boundary = "recipesnapboundary"
        body = (
            f"--{boundary}\r\n"
            'Content-Disposition: form-data; name="image"; filename="big.jpg"\r\n'
            "Content-Type: image/jpeg\r\n\r\n"
        ).encode() + b"x" * 4096 + f"\r\n--{boundary}--\r\n".encode()

        response = client.post(
            "/api/extract-recipe",
            content=iter([body]),
            headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        )

        assert response.status_code == 413
        assert response.json() == {"error": "File too large"}
        assert ingestor.requests == []

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (NoContentError("No caption found for this post"), 422),
            (RateLimitedError("quota"), 429),
            (MalformedCompletionError("bad json"), 502),
            (RuntimeError("unexpected"), 500),
        ],
    )
    def test_error_mapping(self, client, ingestor, error, status_code) -> None:
        ingestor.error = error
        response = client.post("/api/extract-recipe", data={"url": "https://blog.test/r"})
        assert response.status_code == status_code
        assert "error" in response.json()

    def test_heic_failure_has_hint(self, client, ingestor) -> None:
        ingestor.error = ImageConversionError("cannot decode")
        response = client.post("/api/extract-recipe", data={"url": "https://blog.test/r"})
        assert response.status_code == 422
        assert response.json()["error"] == (
            "Failed to process HEIC image. Please try converting it to JPEG first."
        )

    def test_detail_hidden_in_production(self, client, ingestor, monkeypatch) -> None:
        monkeypatch.setattr(settings, "APP_ENV", "production")
        ingestor.error = MalformedCompletionError("raw internal reason")

        body = client.post("/api/extract-recipe", data={"url": "https://blog.test/r"}).json()

        assert body == {"error": "Failed to extract recipe"}

    def test_detail_shown_outside_production(self, client, ingestor) -> None:
        ingestor.error = MalformedCompletionError("raw internal reason")
        body = client.post("/api/extract-recipe", data={"url": "https://blog.test/r"}).json()
        assert body["detail"] == "raw internal reason"


class TestRecipeRoutes:
    def test_create_list_update_delete(self, client) -> None:
        created = client.post(
            "/recipes/", json={"title": "Soup", "ingredients": ["water", " "], "steps": ["Boil", ""]}
        )
        assert created.status_code == 201
        recipe = created.json()
        assert recipe["ingredients"] == ["water"]

        listed = client.get("/recipes/").json()
        assert listed["total"] == 1

        patched = client.patch(f"/recipes/{recipe['id']}", json={"steps": ["Boil", "Serve", "  "]})
        assert patched.json()["steps"] == ["Boil", "Serve"]

        assert client.delete(f"/recipes/{recipe['id']}").status_code == 204
        assert client.get(f"/recipes/{recipe['id']}").status_code == 404

    def test_favorite_routes(self, client, recipe_repo) -> None:
        recipe = recipe_repo.add("owner", "Soup")

        assert client.post(f"/recipes/{recipe.id}/favorite").json()["is_favorite"] is True
        assert client.delete(f"/recipes/{recipe.id}/favorite").json()["is_favorite"] is False
        assert client.post(f"/recipes/{recipe.id}/favorite/toggle").json()["is_favorite"] is True

    def test_set_collections(self, client, recipe_repo, collection_repo) -> None:
        recipe = recipe_repo.add("owner", "Soup")
        collection = collection_repo.insert("owner", "Soups")

        response = client.put(f"/recipes/{recipe.id}/collections", json={"collection_ids": [collection.id]})

        assert response.status_code == 200
        assert response.json()["added"] == [collection.id]

    def test_unknown_collection_is_404(self, client, recipe_repo) -> None:
        recipe = recipe_repo.add("owner", "Soup")
        response = client.put(f"/recipes/{recipe.id}/collections", json={"collection_ids": ["nope"]})
        assert response.status_code == 404


class TestCollectionRoutes:
    def test_lifecycle(self, client, recipe_repo) -> None:
        recipe = recipe_repo.add("owner", "Soup")
        collection = client.post("/collections/", json={"name": "Soups"}).json()

        assert client.post(
            f"/collections/{collection['id']}/recipes", json={"recipe_id": recipe.id}
        ).status_code == 204
        members = client.get(f"/collections/{collection['id']}/recipes").json()
        assert [m["id"] for m in members] == [recipe.id]

        renamed = client.patch(f"/collections/{collection['id']}", json={"name": "Stews"}).json()
        assert renamed["name"] == "Stews"
        assert renamed["recipe_count"] == 1

        assert client.delete(f"/collections/{collection['id']}/recipes/{recipe.id}").status_code == 204
        assert client.delete(f"/collections/{collection['id']}").status_code == 204
        assert client.get("/collections/").json() == []
        assert client.get(f"/recipes/{recipe.id}").status_code == 200


class TestShareRoutes:
    def test_share_preview_and_import(self, client, recipe_repo, current_user) -> None:
        recipe = recipe_repo.add("owner", "Soup", ingredients=["water"])
        link = client.post(f"/recipes/{recipe.id}/share").json()
        assert link["url"].endswith("/" + link["share_hash"])

        current_user["user"] = VIEWER
        preview = client.get(f"/shares/{link['share_hash']}").json()
        assert preview["title"] == "Soup"
        assert preview["is_owner"] is False

        full = client.get(f"/shares/{link['share_hash']}/recipe").json()
        assert full["recipe"]["ingredients"] == ["water"]

        imported = client.post(f"/shares/{link['share_hash']}/import")
        assert imported.status_code == 201
        assert client.post(f"/shares/{link['share_hash']}/import").status_code == 409

    def test_expired_share(self, client, recipe_repo, clock, current_user) -> None:
        recipe = recipe_repo.add("owner", "Soup")
        link = client.post(f"/recipes/{recipe.id}/share").json()
        clock.now += timedelta(days=31)

        owner_view = client.get(f"/shares/{link['share_hash']}").json()
        assert owner_view["expired"] is True
        assert owner_view["can_regenerate"] is True

        current_user["user"] = VIEWER
        assert client.get(f"/shares/{link['share_hash']}").status_code == 410
        assert client.post(f"/shares/{link['share_hash']}/regenerate").status_code == 403

        current_user["user"] = OWNER
        renewed = client.post(f"/shares/{link['share_hash']}/regenerate").json()
        assert renewed["share_hash"] != link["share_hash"]
        assert client.get(f"/shares/{link['share_hash']}").status_code == 404

    def test_unknown_share(self, client) -> None:
        assert client.get("/shares/missing000").status_code == 404
