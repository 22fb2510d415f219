"""
Tests for document lifecycle callbacks.

This test file demonstrates the callback system for documents.
"""

from datetime import datetime
from typing import Optional

import pytest

from docmachine import (
    Document,
    after_create,
    after_destroy,
    after_save,
    after_update,
    after_validation,
    before_create,
    before_destroy,
    before_save,
    before_update,
    before_validation,
)
from docmachine.store import InMemoryDatabase

# Shared database instance
shared_db = InMemoryDatabase()


class UserWithCallbacks(Document, database=shared_db):
    """User document recording every callback."""

    name: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    calls = []

    @before_validation
    def normalize_email(self):
        """Normalize the email before it is validated."""
        if self.email:
            self.email = self.email.strip().lower()
        self.calls.append("before_validation")

    @after_validation
    def track_validation(self):
        self.calls.append("after_validation")

    @before_save
    def update_timestamps(self):
        """Update timestamps before saving."""
        now = datetime.now()
        if self.is_new:
            self.created_at = now
        self.updated_at = now
        self.calls.append("before_save")

    @after_save
    def track_save(self):
        self.calls.append("after_save")

    @before_create
    def track_before_create(self):
        self.calls.append("before_create")

    @after_create
    def track_after_create(self):
        self.calls.append("after_create")

    @before_update
    def track_before_update(self):
        self.calls.append("before_update")

    @after_update
    def track_after_update(self):
        self.calls.append("after_update")

    @before_destroy
    def track_before_destroy(self):
        self.calls.append("before_destroy")

    @after_destroy
    def track_after_destroy(self):
        self.calls.append("after_destroy")


class Locked(Document, database=shared_db):
    """Document whose callbacks can halt saving and destroying."""

    name: str
    locked: bool = False
    protected: bool = False

    @before_save
    def refuse_when_locked(self):
        if self.locked:
            return False

    @before_destroy
    def refuse_destroy_when_protected(self):
        return not self.protected


class AdminUser(UserWithCallbacks):
    """Subclass adding its own callback."""

    @before_save
    def mark_admin(self):
        self.calls.append("admin")


class OverridingUser(UserWithCallbacks):
    """Subclass replacing a callback with a plain method."""

    def track_save(self):
        pass


@pytest.fixture(autouse=True)
def clear_storage():
    """Clear storage and callback log before each test."""
    shared_db.drop()
    UserWithCallbacks.calls.clear()
    yield
    shared_db.drop()


class TestCallbackOrder:
    """Test when callbacks run."""

    def test_create_callbacks(self):
        user = UserWithCallbacks(name="Alice")
        user.save()

        assert UserWithCallbacks.calls == [
            "before_validation",
            "after_validation",
            "before_save",
            "before_create",
            "after_create",
            "after_save",
        ]

    def test_update_callbacks(self):
        user = UserWithCallbacks(name="Alice")
        user.save()
        UserWithCallbacks.calls.clear()

        user.name = "Alicia"
        user.save()

        assert UserWithCallbacks.calls == [
            "before_validation",
            "after_validation",
            "before_save",
            "before_update",
            "after_update",
            "after_save",
        ]

    def test_destroy_callbacks(self):
        user = UserWithCallbacks(name="Alice")
        user.save()
        UserWithCallbacks.calls.clear()

        user.destroy()

        assert UserWithCallbacks.calls == ["before_destroy", "after_destroy"]

    def test_delete_skips_callbacks(self):
        user = UserWithCallbacks(name="Alice")
        user.save()
        UserWithCallbacks.calls.clear()

        user.delete()

        assert user.is_destroyed
        assert UserWithCallbacks.calls == []

    def test_save_without_validation_skips_validation_callbacks(self):
        user = UserWithCallbacks(name="Alice")
        user.save(validate=False)

        assert "before_validation" not in UserWithCallbacks.calls
        assert "before_save" in UserWithCallbacks.calls

    def test_failed_validation_stops_before_save(self):
        user = UserWithCallbacks()

        assert user.save() is False
        assert UserWithCallbacks.calls == ["before_validation", "after_validation"]


class TestCallbackEffects:
    """Test callbacks that change the document."""

    def test_before_validation_normalizes(self):
        user = UserWithCallbacks(name="Alice", email="  ALICE@Example.com ")
        user.save()

        assert UserWithCallbacks.find(user.id).email == "alice@example.com"

    def test_timestamps(self):
        user = UserWithCallbacks(name="Alice")
        user.save()
        created_at = user.created_at

        user.name = "Alicia"
        user.save()

        assert user.created_at == created_at
        assert user.updated_at >= created_at


class TestHaltingCallbacks:
    """Test before-callbacks returning False."""

    def test_before_save_halts_save(self):
        doc = Locked(name="x", locked=True)

        assert doc.save() is False
        assert doc.is_new
        assert Locked.count() == 0

    def test_none_does_not_halt(self):
        doc = Locked(name="x")

        assert doc.save() is True

    def test_before_destroy_halts_destroy(self):
        doc = Locked(name="x", protected=True)
        doc.save()

        assert doc.destroy() is False
        assert not doc.is_destroyed
        assert Locked.count() == 1


class TestCallbackInheritance:
    """Test callbacks across subclasses."""

    def test_subclass_adds_callbacks(self):
        user = AdminUser(name="Root")
        user.save()

        assert UserWithCallbacks.calls.index("before_save") < UserWithCallbacks.calls.index("admin")
        assert "after_save" in UserWithCallbacks.calls

    def test_subclass_override_without_marker_removes_callback(self):
        user = OverridingUser(name="Root")
        user.save()

        assert "after_save" not in UserWithCallbacks.calls
        assert "after_create" in UserWithCallbacks.calls
