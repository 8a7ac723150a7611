from __future__ import annotations


class RecipeSnapError(Exception):
    pass


class RecipeNotFoundError(RecipeSnapError):
    def __init__(self, recipe_id: str):
        super().__init__(f"Recipe not found: {recipe_id}")
        self.recipe_id = recipe_id


class CollectionNotFoundError(RecipeSnapError):
    def __init__(self, collection_id: str):
        super().__init__(f"Collection not found: {collection_id}")
        self.collection_id = collection_id


class ShareNotFoundError(RecipeSnapError):
    def __init__(self, share_hash: str):
        super().__init__(f"Share link not found: {share_hash}")
        self.share_hash = share_hash


class ShareExpiredError(RecipeSnapError):
    def __init__(self, share_hash: str):
        super().__init__("This share link has expired")
        self.share_hash = share_hash


class SharePermissionError(RecipeSnapError):
    def __init__(self, message: str = "Only the creator can manage this share link"):
        super().__init__(message)


class DuplicateRecipeError(RecipeSnapError):
    def __init__(self, title: str):
        super().__init__(f"You already have this recipe in your collection: {title}")
        self.title = title


class ValidationError(RecipeSnapError, ValueError):
    pass


class RepositoryError(RecipeSnapError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Repository error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class StorageError(RecipeSnapError):
    pass


class StorageUploadError(StorageError):
    def __init__(self, object_key: str, reason: str = "Upload failed"):
        super().__init__(f"Failed to upload {object_key}: {reason}")
        self.object_key = object_key
        self.reason = reason
