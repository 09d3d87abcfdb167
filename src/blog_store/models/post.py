"""Post models for the content repository."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blog_store.models.category import CategorySnapshot

DEFAULT_AUTHOR_NAME = "Admin"


class PostStatus(str, Enum):
    """Publication state of a post."""

    DRAFT = "draft"
    PUBLISHED = "published"


class Author(BaseModel):
    """Author details copied into a post when it is created."""

    name: str = DEFAULT_AUTHOR_NAME
    avatar: str | None = None


class PostDraft(BaseModel):
    """Fields supplied by the caller when creating a post.

    Empty ``slug`` and ``excerpt`` are filled in by the repository.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    slug: str = ""
    content: str = ""
    excerpt: str = ""
    cover_image: str | None = Field(default=None, alias="coverImage")
    author: Author = Field(default_factory=Author)
    categories: list[CategorySnapshot] = Field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT


class Post(BaseModel):
    """A post as stored in the post collection."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    slug: str
    content: str = ""
    excerpt: str = ""
    cover_image: str | None = Field(default=None, alias="coverImage")
    author: Author = Field(default_factory=Author)
    categories: list[CategorySnapshot] = Field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT
    published_at: datetime = Field(..., alias="publishedAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @field_validator("published_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """Timestamps stored without an offset are read as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_published(self) -> bool:
        return self.status == PostStatus.PUBLISHED

    @property
    def category_ids(self) -> list[str]:
        """Ids of the embedded category snapshots, in order."""
        return [category.id for category in self.categories]

    def has_category(self, category_id: str) -> bool:
        return any(category.id == category_id for category in self.categories)


class RepositoryStats(BaseModel):
    """Counts and recent activity shown on the admin dashboard."""

    total_posts: int = 0
    published_posts: int = 0
    draft_posts: int = 0
    categories: int = 0
    recent_posts: list[Post] = Field(default_factory=list)
