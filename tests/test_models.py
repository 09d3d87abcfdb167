"""Tests for Pydantic models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from blog_store.models import (
    Author,
    Category,
    CategoryDraft,
    CategorySnapshot,
    Post,
    PostDraft,
    PostStatus,
)


def _post(**overrides) -> Post:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    data = dict(id="p1", title="Title", slug="title", published_at=now, updated_at=now)
    data.update(overrides)
    return Post(**data)


class TestCategory:
    def test_snapshot_copies_fields(self):
        cat = Category(id="c1", name="Tech", slug="tech", description="Gadgets")
        snap = cat.snapshot()
        assert isinstance(snap, CategorySnapshot)
        assert snap.model_dump() == cat.model_dump()

    def test_snapshot_is_frozen(self):
        snap = CategorySnapshot(id="c1", name="Tech", slug="tech")
        with pytest.raises(ValidationError):
            snap.name = "Other"

    def test_snapshot_does_not_follow_rename(self):
        cat = Category(id="c1", name="Tech", slug="tech")
        snap = cat.snapshot()
        cat.name = "Technology"
        assert snap.name == "Tech"

    def test_draft_requires_name(self):
        with pytest.raises(ValidationError):
            CategoryDraft(name="")


class TestPost:
    def test_wire_aliases(self):
        post = _post(cover_image="https://example.com/a.png")
        data = post.model_dump(mode="json", by_alias=True)
        assert data["coverImage"] == "https://example.com/a.png"
        assert data["publishedAt"].startswith("2024-05-01T12:00:00")
        assert "updatedAt" in data
        assert data["status"] == "draft"

    def test_populate_from_aliases(self):
        post = Post.model_validate(
            {
                "id": "p1",
                "title": "T",
                "slug": "t",
                "coverImage": None,
                "publishedAt": "2024-05-01T12:00:00Z",
                "updatedAt": "2024-05-02T12:00:00Z",
                "status": "published",
            }
        )
        assert post.is_published
        assert post.updated_at.tzinfo is not None
        assert post.updated_at > post.published_at

    def test_category_helpers(self):
        post = _post(
            categories=[
                CategorySnapshot(id="a", name="A", slug="a"),
                CategorySnapshot(id="b", name="B", slug="b"),
            ]
        )
        assert post.category_ids == ["a", "b"]
        assert post.has_category("b")
        assert not post.has_category("c")

    def test_invalid_status(self):
        with pytest.raises(ValidationError):
            _post(status="archived")

    def test_naive_timestamps_become_utc(self):
        post = _post(published_at="2024-01-01T08:30:00", updated_at=datetime(2024, 1, 2))
        assert post.published_at == datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)
        assert post.updated_at.tzinfo is timezone.utc

    def test_offset_timestamps_kept(self):
        post = _post(published_at="2024-01-01T08:30:00+02:00")
        assert post.published_at.utcoffset().total_seconds() == 7200


class TestPostDraft:
    def test_defaults(self):
        draft = PostDraft(title="Hello")
        assert draft.status == PostStatus.DRAFT
        assert draft.author == Author(name="Admin")
        assert draft.categories == []
        assert draft.slug == ""
