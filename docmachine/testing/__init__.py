"""
Testing support for docmachine.

Recording store wrappers, store drivers and a multi-store test base for
running the same tests against several stores.
"""

from docmachine.testing.drivers import DriverInterface, InMemoryDriver, RecordingDriver
from docmachine.testing.multi_store_base import MultiStoreTestBase, multi_store_test_class
from docmachine.testing.recording import RecordingCollection, RecordingDatabase, StoreCall

__all__ = [
    "DriverInterface",
    "InMemoryDriver",
    "RecordingDriver",
    "MultiStoreTestBase",
    "multi_store_test_class",
    "RecordingCollection",
    "RecordingDatabase",
    "StoreCall",
]
