"""
Basic example of docmachine documents.

This example shows how to:
1. Declare a document with typed keys
2. Save, find, update and destroy documents
3. Query with conditions, order, limit and offset
4. Use bulk class operations
"""

from typing import Optional

from docmachine import Document, Key
from docmachine.store import InMemoryDatabase


db = InMemoryDatabase()


class User(Document, database=db):
    """User document stored in the 'users' collection."""

    name: str = Key(min_length=1)
    email: str = Key(unique=True)
    age: int = Key(0, ge=0)
    city: Optional[str] = None


def example_1_lifecycle():
    """Example 1: New, persisted and destroyed documents."""
    print("\n" + "=" * 60)
    print("Example 1: Document Lifecycle")
    print("=" * 60)

    user = User(name="Alice", email="alice@example.com", age="30")
    print(f"   New: {user!r}")
    print(f"   is_new={user.is_new}, age typecast to {type(user.age).__name__}")

    user.save()
    print(f"   Saved with id {user.id}, is_persisted={user.is_persisted}")

    user.city = "Oslo"
    print(f"   Changes before save: {user.changes}")
    user.save()

    user.destroy()
    print(f"   Destroyed: is_destroyed={user.is_destroyed}")


def example_2_validation():
    """Example 2: Invalid documents are not saved."""
    print("\n" + "=" * 60)
    print("Example 2: Validation")
    print("=" * 60)

    user = User(name="", age=-1)
    print(f"   save() returned {user.save()}")
    for message in user.errors.full_messages():
        print(f"   - {message}")


def example_3_queries():
    """Example 3: Finders."""
    print("\n" + "=" * 60)
    print("Example 3: Queries")
    print("=" * 60)

    User.create(
        {"name": "Bob", "email": "bob@example.com", "age": 25, "city": "Bergen"},
        {"name": "Carol", "email": "carol@example.com", "age": 35, "city": "Oslo"},
        {"name": "Dave", "email": "dave@example.com", "age": 45, "city": "Oslo"},
    )

    adults = User.all(conditions={"age__gte": 30}, order="age desc")
    print(f"   Aged 30+: {[u.name for u in adults]}")

    print(f"   Youngest: {User.first(order='age').name}")
    print(f"   Oldest: {User.last(order='age').name}")
    print(f"   In Oslo: {User.count(conditions={'city': 'Oslo'})}")
    print(f"   Names starting with C: {[u.name for u in User.all(conditions={'name__startswith': 'C'})]}")

    page = User.all(order="name", limit=2, offset=1)
    print(f"   Page 2 of size 2: {[u.name for u in page]}")


def example_4_bulk_operations():
    """Example 4: Class-level updates and deletes."""
    print("\n" + "=" * 60)
    print("Example 4: Bulk Operations")
    print("=" * 60)

    bob = User.first(conditions={"name": "Bob"})
    User.update(bob.id, {"age": 26})
    print(f"   Bob is now {User.find(bob.id).age}")

    removed = User.delete_all(conditions={"city": "Oslo"})
    print(f"   Removed {removed} users in Oslo, {User.count()} left")


if __name__ == "__main__":
    example_1_lifecycle()
    example_2_validation()
    example_3_queries()
    example_4_bulk_operations()
