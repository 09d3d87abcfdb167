"""Tests for utility functions."""

import logging
import uuid

import pytest

from blog_store.utils.logging import LogContext
from blog_store.utils.text_utils import (
    category_slug,
    default_excerpt,
    matches_query,
    new_id,
    post_slug,
)


class TestCategorySlug:
    def test_basic(self):
        assert category_slug("Web Development") == "web-development"

    def test_keeps_punctuation(self):
        assert category_slug("Hello   World!") == "hello-world!"

    def test_tabs_and_newlines_collapse(self):
        assert category_slug("A\t\n b") == "a-b"

    def test_no_trimming(self):
        assert category_slug(" padded ") == "-padded-"


class TestPostSlug:
    def test_strips_punctuation(self):
        assert post_slug("Hello   World!") == "hello-world"

    def test_keeps_underscores_and_digits(self):
        assert post_slug("Top_10 Tips, 2024 edition") == "top_10-tips-2024-edition"

    def test_drops_non_ascii_letters(self):
        assert post_slug("Café Life") == "caf-life"

    def test_differs_from_category_slug(self):
        assert post_slug("What's new?") != category_slug("What's new?")


class TestDefaultExcerpt:
    def test_long_content_truncated(self):
        content = "x" * 200
        assert default_excerpt(content) == "x" * 150 + "..."

    def test_short_content_gets_suffix(self):
        assert default_excerpt("Short body") == "Short body..."

    def test_custom_length(self):
        assert default_excerpt("abcdef", length=3) == "abc..."


class TestNewId:
    def test_is_uuid4(self):
        value = new_id()
        assert uuid.UUID(value).version == 4

    def test_unique(self):
        ids = {new_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestMatchesQuery:
    @pytest.mark.parametrize(
        "query,expected",
        [("rust", True), ("RUST", True), ("python", False), ("", True)],
    )
    def test_case_insensitive_substring(self, query, expected):
        assert matches_query(query, "Learning Rust", "body") is expected

    def test_any_field_matches(self):
        assert matches_query("needle", "title", "content", "has a needle")


class TestLogContext:
    def test_logs_elapsed_time_on_success(self, caplog):
        logger = logging.getLogger("blog_store.tests")
        with caplog.at_level(logging.DEBUG, logger="blog_store.tests"):
            with LogContext(logger, "Loading") as ctx:
                pass
        assert ctx.elapsed_ms >= 0
        assert caplog.records[-1].levelno == logging.DEBUG
        assert caplog.records[-1].getMessage().startswith("Loading took ")

    def test_logs_failure_and_reraises(self, caplog):
        logger = logging.getLogger("blog_store.tests")
        with caplog.at_level(logging.DEBUG, logger="blog_store.tests"):
            with pytest.raises(ValueError):
                with LogContext(logger, "Loading"):
                    raise ValueError("boom")
        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert "Loading failed after" in record.getMessage()
        assert record.getMessage().endswith("boom")
