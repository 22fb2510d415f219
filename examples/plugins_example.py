"""
Example of custom plugins and query logging in docmachine.

Shows how to:
1. Write a plugin adding class and instance operations
2. Chain onto an existing operation with call_next
3. Log finders at DEBUG with their runtime
"""

import logging

from docmachine import Document, Plugin, class_method, instance_method
from docmachine.store import InMemoryDatabase


logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logging.getLogger("example.queries").setLevel(logging.DEBUG)

db = InMemoryDatabase()


class SoftDelete(Plugin):
    """
    Mark documents as deleted instead of removing them.

    destroy() is chained: the deleted flag is saved and the rest of the
    chain is never called.
    """

    name = "soft_delete"
    requires = ("lifecycle", "querying")

    @instance_method(chain=True)
    def destroy(self, call_next):
        self.deleted = True
        return self.save(validate=False)

    @class_method
    def live(cls, **options):
        conditions = dict(options.pop("conditions", {}))
        conditions["deleted__ne"] = True
        return cls.all(conditions=conditions, **options)


class Note(Document, database=db, logger="example.queries", plugins=[SoftDelete]):
    title: str
    deleted: bool = False


if __name__ == "__main__":
    print(f"Plugins: {Note.plugin_names()}")

    first, second = Note.create([{"title": "keep"}, {"title": "drop"}])
    second.destroy()

    print(f"Live notes: {[n.title for n in Note.live(order='title')]}")
    print(f"All notes: {[n.title for n in Note.all(order='title')]}")
    print(f"Time spent in finders: {Note.query_runtime:.2f}ms")
