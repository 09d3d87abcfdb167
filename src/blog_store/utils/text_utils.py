"""Text utilities for identifiers, slugs and excerpts."""

import re
import uuid

EXCERPT_SUFFIX = "..."

_WHITESPACE_RUN = re.compile(r"\s+")
# ASCII word characters only; whitespace is kept for the hyphen pass
_NON_WORD = re.compile(r"[^A-Za-z0-9_\s]")


def new_id() -> str:
    """Return a fresh random identifier (UUID4, 122 random bits)."""
    return str(uuid.uuid4())


def category_slug(text: str) -> str:
    """
    Convert a category name to its slug.

    Lower-cases the text and replaces every run of whitespace with a single
    hyphen. Punctuation is left in place.

    Args:
        text: Category name

    Returns:
        Category slug
    """
    return _WHITESPACE_RUN.sub("-", text.lower())


def post_slug(text: str) -> str:
    """
    Convert a post title to its slug.

    Lower-cases the text, drops everything that is not a word character or
    whitespace, then replaces every run of whitespace with a single hyphen.

    Args:
        text: Post title

    Returns:
        Post slug
    """
    text = _NON_WORD.sub("", text.lower())
    return _WHITESPACE_RUN.sub("-", text)


def default_excerpt(content: str, length: int = 150, suffix: str = EXCERPT_SUFFIX) -> str:
    """Excerpt used when a post is saved without one: a fixed-length prefix plus suffix."""
    return content[:length] + suffix


def matches_query(query: str, *fields: str) -> bool:
    """Case-insensitive substring match of query against any of the fields."""
    needle = query.lower()
    return any(needle in field.lower() for field in fields)
