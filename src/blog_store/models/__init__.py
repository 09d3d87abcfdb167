"""Pydantic data models."""

from blog_store.models.category import Category, CategoryDraft, CategorySnapshot
from blog_store.models.post import Author, Post, PostDraft, PostStatus, RepositoryStats

__all__ = [
    "Author",
    "Category",
    "CategoryDraft",
    "CategorySnapshot",
    "Post",
    "PostDraft",
    "PostStatus",
    "RepositoryStats",
]
