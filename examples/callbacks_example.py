"""
Example demonstrating lifecycle callbacks in docmachine.

This example shows how to use decorators to:
1. Automatically update timestamps (before_save)
2. Normalize data (before_validation)
3. Implement audit logging (after_create, after_update)
4. Refuse to destroy protected documents (before_destroy)
"""

from datetime import datetime
from typing import Optional

from docmachine import (
    Document,
    after_create,
    after_update,
    before_destroy,
    before_save,
    before_validation,
)
from docmachine.store import InMemoryDatabase


db = InMemoryDatabase()


class AuditLog:
    """Simple audit log for demonstration."""
    entries = []

    @classmethod
    def log(cls, action: str, model_name: str, document_id: str):
        """Log an audit entry."""
        cls.entries.append({
            "timestamp": datetime.now().isoformat(),
            "action": action,
            "model": model_name,
            "id": document_id,
        })
        print(f"[AUDIT] {action} {model_name} {document_id}")


class Account(Document, database=db):
    """
    Account document with timestamps, normalization and auditing.
    """

    email: str
    name: str
    owner: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @before_validation
    def normalize_email(self):
        """Normalize email to lowercase before validating."""
        if self.email:
            self.email = self.email.strip().lower()

    @before_save
    def update_timestamps(self):
        now = datetime.now()
        if self.is_new:
            self.created_at = now
        self.updated_at = now

    @after_create
    def audit_create(self):
        AuditLog.log("CREATE", "Account", self.id)

    @after_update
    def audit_update(self):
        AuditLog.log("UPDATE", "Account", self.id)

    @before_destroy
    def keep_owner(self):
        """Owners cannot be destroyed."""
        if self.owner:
            print(f"[BEFORE_DESTROY] Refusing to destroy owner {self.email}")
            return False


def example_1_timestamps_and_normalization():
    """Example 1: Callbacks around save."""
    print("\n" + "=" * 60)
    print("Example 1: Timestamps and Normalization")
    print("=" * 60)

    account = Account(email="  ALICE@Example.COM ", name="Alice")
    account.save()
    print(f"   email: {account.email}")
    print(f"   created_at: {account.created_at}")

    account.name = "Alice Smith"
    account.save()
    print(f"   updated_at: {account.updated_at}")


def example_2_halting_destroy():
    """Example 2: A before_destroy callback returning False halts destroy."""
    print("\n" + "=" * 60)
    print("Example 2: Halting Destroy")
    print("=" * 60)

    owner = Account.create(email="owner@example.com", name="Owner", owner=True)
    print(f"   destroy() returned {owner.destroy()}")
    print(f"   Still stored: {Account.exists(conditions={'email': 'owner@example.com'})}")

    # delete() skips callbacks
    owner.delete()
    print(f"   After delete(): {Account.exists(conditions={'email': 'owner@example.com'})}")


if __name__ == "__main__":
    example_1_timestamps_and_normalization()
    example_2_halting_destroy()
    print(f"\nAudit entries: {len(AuditLog.entries)}")
