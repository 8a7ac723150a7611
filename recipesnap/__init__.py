"""RecipeSnap recipe extraction and library API."""

__version__ = "0.1.0"
