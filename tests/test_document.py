"""
Tests for document configuration, keys and the small instance plugins.
"""

from typing import ClassVar, Optional

import pytest

from docmachine import Document, Key
from docmachine.exceptions import ConfigurationError
from docmachine.plugins.persistence import collection_name_for
from docmachine.store import InMemoryDatabase
from docmachine.store.memory import DuplicateKeyError

db = InMemoryDatabase()


class Widget(Document, database=db):
    name: str
    size: int = 1
    tags: list[str] = Key(default_factory=list)


class Gadget(Document, database=db):
    name: str


class Account(Document, database=db):
    """Document with declared indexes."""

    email: str = Key(unique=True)
    handle: Optional[str] = Key(None, unique=True, sparse=True)
    region: str = Key("eu", index=True)


class Subscriber(Document, database=db):
    email: str = Key(unique=True)


class BlogPost(Document):
    database = db
    title: str


class FeaturedPost(BlogPost):
    pass


class Archive(Document, database=db, collection="old_things"):
    label: str


class Timestamped:
    """Plain mixin whose annotations become keys."""

    created_by: Optional[str] = None


class Note(Timestamped, Document, database=db):
    body: str
    limit: ClassVar[int] = 10


@pytest.fixture(autouse=True)
def clear_storage():
    db.drop()
    Account.set_database(db)
    yield
    db.drop()


class TestConfiguration:
    """Test collection and database binding."""

    @pytest.mark.parametrize("class_name,expected", [
        ("User", "users"),
        ("BlogPost", "blog_posts"),
        ("Category", "categories"),
        ("Day", "days"),
        ("Address", "addresses"),
        ("Box", "boxes"),
        ("Batch", "batches"),
        ("UserWithCallbacks", "user_with_callbacks"),
    ])
    def test_collection_name_for(self, class_name, expected):
        assert collection_name_for(class_name) == expected

    def test_default_collection_name(self):
        assert Widget.collection_name == "widgets"
        assert BlogPost.collection_name == "blog_posts"

    def test_collection_keyword(self):
        assert Archive.collection_name == "old_things"
        Archive.create(label="x")
        assert db.collection("old_things").count({}) == 1

    def test_subclass_shares_parent_collection(self):
        FeaturedPost.create(title="Hello")

        assert FeaturedPost.collection_name == "blog_posts"
        assert BlogPost.count() == 1

    def test_class_attribute_database(self):
        assert BlogPost.database is db
        assert FeaturedPost.database is db

    def test_set_collection_name(self):
        class Temporary(Document, database=db):
            name: str

        Temporary.set_collection_name("scratch")
        Temporary.create(name="x")

        assert db.collection("scratch").count({}) == 1

    def test_missing_database_raises(self):
        class Unbound(Document):
            name: str

        with pytest.raises(ConfigurationError, match="No database configured for Unbound"):
            Unbound.collection()

    def test_embeddable(self):
        assert Widget.embeddable() is False


class TestKeys:
    """Test declared keys."""

    def test_keys_in_declaration_order(self):
        assert list(Widget.keys()) == ["_id", "name", "size", "tags"]

    def test_has_key(self):
        assert Widget.has_key("name")
        assert Widget.has_key("id")
        assert not Widget.has_key("color")

    def test_mixin_annotations_become_keys(self):
        assert list(Note.keys()) == ["_id", "created_by", "body"]
        assert Note(body="x").created_by is None

    def test_class_vars_are_not_keys(self):
        assert not Note.has_key("limit")
        assert Note.limit == 10

    def test_key_added_at_runtime(self):
        """Test that key() declares a key after the class is defined."""

        class Profile(Document, database=db):
            name: str

        Profile.key("score", int, Key(0, ge=0))

        profile = Profile(name="x", score="5")
        assert profile.score == 5
        assert Profile.has_key("score")
        assert Profile(name="x", score=-1).valid() is False

    def test_required_keys_start_unset(self):
        assert Widget().attributes == {"size": 1, "tags": []}


class TestIndexes:
    """Test indexes declared on keys."""

    def test_indexes_created_on_first_use(self):
        assert db.collection_names() == []

        Account.count()

        indexes = db.collection("accounts").indexes
        assert indexes["email_1"][1] == {"unique": True}
        assert indexes["handle_1"][1] == {"unique": True, "sparse": True}
        assert indexes["region_1"][1] == {}

    def test_unique_key_enforced(self):
        Account.create(email="a@example.com")

        with pytest.raises(DuplicateKeyError):
            Account.create(email="a@example.com")

    def test_unique_key_enforced_after_drop(self):
        Subscriber.create(email="x@example.com")
        db.drop()
        Subscriber.create(email="y@example.com")

        with pytest.raises(DuplicateKeyError):
            Subscriber.create(email="y@example.com")

        assert "email_1" in db.collection("subscribers").indexes

    def test_ensure_index(self):
        name = Account.ensure_index([("region", 1), ("email", -1)], unique=True)

        assert name == "region_1_email_-1"
        assert db.collection("accounts").indexes[name][1] == {"unique": True}


class TestEquality:
    """Test identity-based equality and hashing."""

    def test_same_id_is_equal(self):
        widget = Widget.create(name="x")

        assert Widget.find(widget.id) == widget
        assert Widget.find(widget.id) is not widget
        assert len({widget, Widget.find(widget.id)}) == 1

    def test_unsaved_documents_are_only_equal_to_themselves(self):
        first = Widget(name="x")
        second = Widget(name="x")

        assert first == first
        assert first != second
        assert len({first, second}) == 2

    def test_different_types_are_not_equal(self):
        assert Widget(id="same", name="x") != Gadget(id="same", name="x")

    def test_not_equal_to_other_values(self):
        assert Widget(id="same", name="x") != "same"

    def test_hash_follows_id(self):
        """Test that the hash is fixed once save() has assigned an id."""
        widget = Widget(name="x")
        unsaved = {widget}

        widget.save()

        assert hash(widget) == hash(Widget.find(widget.id))
        assert widget in {widget}
        assert Widget.find(widget.id) in {widget}
        assert widget not in unsaved


class TestInspect:
    def test_repr(self):
        widget = Widget(name="x", size=2)

        assert repr(widget) == "<Widget _id: None, name: 'x', size: 2, tags: []>"

    def test_repr_with_id_and_dynamic_attributes(self):
        widget = Widget(id="abc", name="x", color="red")

        assert repr(widget) == "<Widget _id: 'abc', color: 'red', name: 'x', size: 1, tags: []>"


class TestClone:
    def test_clone_is_new_copy(self):
        widget = Widget.create(name="x", tags=["a"])

        copy = widget.clone()

        assert copy.is_new
        assert copy.id is None
        assert copy.name == "x"
        copy.tags.append("b")
        assert widget.tags == ["a"]

    def test_saving_clone_creates_document(self):
        widget = Widget.create(name="x")

        copy = widget.clone()
        copy.save()

        assert copy.id != widget.id
        assert Widget.count() == 2


class TestDescendants:
    def test_descendants(self):
        class Shape(Document):
            pass

        class Circle(Shape):
            pass

        class Ring(Circle):
            pass

        assert Shape.descendants() == [Circle, Ring]
        assert Circle.descendants() == [Ring]
        assert Ring.descendants() == []
        assert Ring in Document.descendants()
