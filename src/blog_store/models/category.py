"""Category models: live records, creation drafts and embedded snapshots."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CategoryDraft(BaseModel):
    """Fields supplied by the caller when creating a category."""

    name: str = Field(..., min_length=1, description="Display name")
    description: str | None = Field(default=None, description="Optional description")


class Category(BaseModel):
    """A category as stored in the category collection.

    The slug is derived from the name once, at creation, and is not
    recomputed when the category is renamed.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = Field(..., min_length=1)
    slug: str
    description: str | None = None

    def snapshot(self) -> CategorySnapshot:
        """Freeze the current field values for embedding in a post."""
        return CategorySnapshot(
            id=self.id,
            name=self.name,
            slug=self.slug,
            description=self.description,
        )


class CategorySnapshot(BaseModel):
    """Copy of a category embedded in a post at save time.

    Later edits to the live category do not reach existing snapshots.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    slug: str
    description: str | None = None
