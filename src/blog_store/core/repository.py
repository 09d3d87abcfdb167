"""Content repository owning the post and category collections."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from blog_store.config import Settings, get_settings
from blog_store.models.category import Category, CategoryDraft, CategorySnapshot
from blog_store.models.post import Post, PostDraft, RepositoryStats
from blog_store.services.slot_storage import (
    DeserializationFailed,
    PersistenceWriteFailed,
    SlotStorage,
    decode_collection,
    encode_collection,
)
from blog_store.utils.logging import LogContext, get_logger
from blog_store.utils.text_utils import (
    category_slug,
    default_excerpt,
    matches_query,
    new_id,
    post_slug,
)

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CategoryInUse:
    """Returned by delete_category when posts still reference the category."""

    category_id: str
    post_ids: tuple[str, ...]

    @property
    def message(self) -> str:
        count = len(self.post_ids)
        noun = "post" if count == 1 else "posts"
        return f"Cannot delete category that is in use ({count} {noun})"


class ContentRepository:
    """Owns the post and category collections and keeps them persisted.

    Every successful mutation writes the affected collection back to its
    slot. A failed write raises PersistenceWriteFailed after the in-memory
    change has been applied; memory stays authoritative for the session.

    Operations hold a re-entrant lock, so the referential check in
    delete_category and the removal that follows cannot interleave with
    another mutation.
    """

    def __init__(
        self,
        storage: SlotStorage,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.storage = storage
        self.settings = settings or get_settings()
        self._clock = clock or _utcnow
        self._lock = threading.RLock()
        self._posts: list[Post] = []
        self._categories: list[Category] = []
        self.load_errors: list[DeserializationFailed] = []

    @classmethod
    def open(
        cls,
        storage: SlotStorage,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> ContentRepository:
        """Create a repository and load its state from storage."""
        repository = cls(storage, settings=settings, clock=clock)
        repository.load()
        return repository

    def __enter__(self) -> ContentRepository:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # --- Persistence ---

    def load(self) -> tuple[list[Post], list[Category]]:
        """Read both collections from storage, seeding the default category if needed."""
        with self._lock, LogContext(logger, "Loading content repository"):
            self.load_errors = []

            posts = self._read_slot(self.settings.posts_slot, Post)
            self._posts = posts or []

            errors_before = len(self.load_errors)
            categories = self._read_slot(self.settings.categories_slot, Category)
            if categories is None:
                self._categories = [self._default_category()]
                # Absent slot only; a corrupt payload stays on disk until the next write
                if len(self.load_errors) == errors_before:
                    try:
                        self._save_categories()
                    except PersistenceWriteFailed as exc:
                        logger.warning("Could not persist seeded category: %s", exc)
            else:
                self._categories = categories

            logger.info(
                "Loaded %d posts and %d categories",
                len(self._posts),
                len(self._categories),
            )
            return self.list_posts(), self.list_categories()

    def close(self) -> None:
        """Flush both collections to storage."""
        with self._lock:
            self._save_posts()
            self._save_categories()

    def _read_slot(self, slot: str, model: type[Post] | type[Category]) -> list | None:
        """Decode a slot, returning None when it is absent, blank or corrupt."""
        try:
            payload = self.storage.read(slot)
            if payload is None or not payload.strip():
                return None
            return decode_collection(slot, payload, model)
        except DeserializationFailed as exc:
            logger.error("%s; falling back to defaults", exc)
            self.load_errors.append(exc)
            return None

    def _default_category(self) -> Category:
        name = self.settings.default_category_name
        return Category(
            id=new_id(),
            name=name,
            slug=category_slug(name),
            description=self.settings.default_category_description,
        )

    def _save(self, slot: str, records: list, entity_id: str | None) -> None:
        try:
            self.storage.write(slot, encode_collection(records))
        except PersistenceWriteFailed as exc:
            exc.entity_id = entity_id
            logger.warning("%s; keeping in-memory state", exc)
            raise

    def _save_posts(self, entity_id: str | None = None) -> None:
        self._save(self.settings.posts_slot, self._posts, entity_id)

    def _save_categories(self, entity_id: str | None = None) -> None:
        self._save(self.settings.categories_slot, self._categories, entity_id)

    # --- Helpers ---

    def _now(self) -> datetime:
        return self._clock()

    def _post_index(self, post_id: str) -> int | None:
        for index, post in enumerate(self._posts):
            if post.id == post_id:
                return index
        return None

    def _category_index(self, category_id: str) -> int | None:
        for index, category in enumerate(self._categories):
            if category.id == category_id:
                return index
        return None

    def _live_snapshots(self, snapshots: Iterable[CategorySnapshot]) -> list[CategorySnapshot]:
        """Keep only snapshots whose category exists right now."""
        live_ids = {category.id for category in self._categories}
        kept = []
        for snapshot in snapshots:
            if snapshot.id in live_ids:
                kept.append(snapshot)
            else:
                logger.warning("Dropping unknown category %s (%s) from post", snapshot.id, snapshot.name)
        return kept

    # --- Posts ---

    def create_post(self, draft: PostDraft) -> str:
        """Add a post built from the draft and return its new id."""
        with self._lock:
            now = self._now()
            post = Post(
                id=new_id(),
                title=draft.title,
                slug=draft.slug or post_slug(draft.title),
                content=draft.content,
                excerpt=draft.excerpt
                or default_excerpt(draft.content, self.settings.excerpt_length),
                cover_image=draft.cover_image,
                author=draft.author.model_copy(),
                categories=self._live_snapshots(draft.categories),
                status=draft.status,
                published_at=now,
                updated_at=now,
            )
            self._posts.append(post)
            logger.info("Created post %s (%s)", post.id, post.slug)
            self._save_posts(entity_id=post.id)
            return post.id

    def update_post(self, post: Post) -> Post | None:
        """Replace the stored post with the same id.

        ``updated_at`` is set to now and the stored ``published_at`` is kept.
        Returns the stored record, or None (and changes nothing) if no post
        has that id.
        """
        with self._lock:
            index = self._post_index(post.id)
            if index is None:
                logger.debug("Ignoring update for unknown post %s", post.id)
                return None
            stored = post.model_copy(
                deep=True,
                update={
                    "categories": self._live_snapshots(post.categories),
                    "published_at": self._posts[index].published_at,
                    "updated_at": self._now(),
                },
            )
            self._posts[index] = stored
            logger.info("Updated post %s", post.id)
            self._save_posts(entity_id=post.id)
            return stored.model_copy(deep=True)

    def delete_post(self, post_id: str) -> bool:
        """Remove a post. Returns False if it did not exist."""
        with self._lock:
            index = self._post_index(post_id)
            if index is None:
                return False
            del self._posts[index]
            logger.info("Deleted post %s", post_id)
            self._save_posts(entity_id=post_id)
            return True

    def get_post(self, post_id: str) -> Post | None:
        with self._lock:
            index = self._post_index(post_id)
            return None if index is None else self._posts[index].model_copy(deep=True)

    def get_post_by_slug(self, slug: str) -> Post | None:
        """First post in collection order with this slug."""
        with self._lock:
            for post in self._posts:
                if post.slug == slug:
                    return post.model_copy(deep=True)
            return None

    def list_posts(self) -> list[Post]:
        with self._lock:
            return [post.model_copy(deep=True) for post in self._posts]

    def list_published_by_category(self, category_id: str) -> list[Post]:
        """Published posts carrying this category, in collection order."""
        with self._lock:
            return [
                post.model_copy(deep=True)
                for post in self._posts
                if post.is_published and post.has_category(category_id)
            ]

    def related_posts(self, post: Post, limit: int | None = None) -> list[Post]:
        """Other published posts sharing at least one category with ``post``."""
        limit = self.settings.related_posts_limit if limit is None else limit
        wanted = set(post.category_ids)
        with self._lock:
            related = [
                other
                for other in self._posts
                if other.id != post.id
                and other.is_published
                and wanted.intersection(other.category_ids)
            ]
            return [other.model_copy(deep=True) for other in related[:limit]]

    def search_published(self, query: str) -> list[Post]:
        """Published posts whose title, content or excerpt contains ``query``.

        Matching ignores case. An empty query matches every published post.
        """
        with self._lock:
            return [
                post.model_copy(deep=True)
                for post in self._posts
                if post.is_published
                and matches_query(query, post.title, post.content, post.excerpt)
            ]

    def stats(self, recent: int | None = None) -> RepositoryStats:
        recent = self.settings.recent_posts_count if recent is None else recent
        with self._lock:
            published = sum(1 for post in self._posts if post.is_published)
            newest = sorted(self._posts, key=lambda post: post.updated_at, reverse=True)
            return RepositoryStats(
                total_posts=len(self._posts),
                published_posts=published,
                draft_posts=len(self._posts) - published,
                categories=len(self._categories),
                recent_posts=[post.model_copy(deep=True) for post in newest[:recent]],
            )

    # --- Categories ---

    def create_category(self, draft: CategoryDraft) -> str:
        """Add a category and return its new id. The slug is derived from the name."""
        with self._lock:
            category = Category(
                id=new_id(),
                name=draft.name,
                slug=category_slug(draft.name),
                description=draft.description,
            )
            self._categories.append(category)
            logger.info("Created category %s (%s)", category.id, category.slug)
            self._save_categories(entity_id=category.id)
            return category.id

    def update_category(self, category: Category) -> Category | None:
        """Replace the stored category with the same id, keeping its original slug."""
        with self._lock:
            index = self._category_index(category.id)
            if index is None:
                logger.debug("Ignoring update for unknown category %s", category.id)
                return None
            stored = category.model_copy(update={"slug": self._categories[index].slug})
            self._categories[index] = stored
            logger.info("Updated category %s", category.id)
            self._save_categories(entity_id=category.id)
            return stored.model_copy()

    def delete_category(self, category_id: str) -> CategoryInUse | None:
        """Remove a category unless a post still references it.

        Returns CategoryInUse, leaving both collections untouched, when any
        post carries the category. Otherwise returns None; deleting an
        unknown id is a no-op.
        """
        with self._lock:
            referencing = tuple(post.id for post in self._posts if post.has_category(category_id))
            if referencing:
                logger.warning(
                    "Refusing to delete category %s: used by %d post(s)",
                    category_id,
                    len(referencing),
                )
                return CategoryInUse(category_id=category_id, post_ids=referencing)

            index = self._category_index(category_id)
            if index is None:
                return None
            del self._categories[index]
            logger.info("Deleted category %s", category_id)
            self._save_categories(entity_id=category_id)
            return None

    def get_category(self, category_id: str) -> Category | None:
        with self._lock:
            index = self._category_index(category_id)
            return None if index is None else self._categories[index].model_copy()

    def get_category_by_slug(self, slug: str) -> Category | None:
        """First category in collection order with this slug."""
        with self._lock:
            for category in self._categories:
                if category.slug == slug:
                    return category.model_copy()
            return None

    def list_categories(self) -> list[Category]:
        with self._lock:
            return [category.model_copy() for category in self._categories]

    def snapshot_categories(self, category_ids: Iterable[str]) -> list[CategorySnapshot]:
        """Snapshots of the live categories with these ids, in collection order."""
        wanted = set(category_ids)
        with self._lock:
            return [category.snapshot() for category in self._categories if category.id in wanted]
