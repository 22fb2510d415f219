"""
Tests for dirty tracking.
"""

import pytest

from docmachine import Document, Key
from docmachine.store import InMemoryDatabase

db = InMemoryDatabase()


class Article(Document, database=db):
    title: str
    views: int = Key(0)


@pytest.fixture(autouse=True)
def clear_storage():
    db.drop()
    yield
    db.drop()


@pytest.fixture
def article():
    article = Article(title="Draft")
    article.save()
    return article


class TestDirtyTracking:
    """Test changed fields before and after saving."""

    def test_loaded_document_is_clean(self, article):
        loaded = Article.find(article.id)

        assert loaded.is_changed is False
        assert loaded.changed_fields == set()

    def test_saved_document_is_clean(self, article):
        assert article.is_changed is False

    def test_assignment_marks_field_changed(self, article):
        article.title = "Final"

        assert article.is_changed
        assert article.changed_fields == {"title"}
        assert article.changes == {"title": ("Draft", "Final")}
        assert article.attribute_was("title") == "Draft"

    def test_same_value_is_not_a_change(self, article):
        article.title = "Draft"

        assert article.is_changed is False

    def test_change_back_clears_change(self, article):
        article.views = 5
        article.views = 0

        assert article.changed_fields == set()

    def test_casting_applies_before_comparison(self, article):
        article.views = "0"

        assert article.is_changed is False

    def test_save_clears_changes(self, article):
        article.title = "Final"
        article.save()

        assert article.is_changed is False
        assert article.attribute_was("title") == "Final"

    def test_failed_save_keeps_changes(self, article):
        article.title = None

        assert article.save() is False
        assert article.changed_fields == {"title"}

    def test_reload_clears_changes(self, article):
        article.title = "Final"
        article.reload()

        assert article.is_changed is False
        assert article.title == "Draft"

    def test_new_document_tracks_assigned_fields(self):
        article = Article(title="New")

        assert article.changed_fields == {"title"}
        assert article.changes == {"title": (None, "New")}

    def test_clear_changes(self, article):
        article.title = "Final"
        article.clear_changes()

        assert article.is_changed is False

    def test_dynamic_attribute_change(self, article):
        article["source"] = "rss"

        assert article.changed_fields == {"source"}
