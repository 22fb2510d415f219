"""
Store drivers for multi-store tests.

A driver knows how to build a database, bind document types to it and
clear it between tests. Tests only talk to documents, so the same test
runs unchanged against every driver.
"""

from abc import ABC, abstractmethod
from typing import Any

from docmachine.store.base import Database
from docmachine.store.memory import InMemoryDatabase
from docmachine.testing.recording import RecordingDatabase


class DriverInterface(ABC):
    """Abstract interface for store drivers."""

    name: str = ""

    def __init__(self) -> None:
        self.database = self.create_database()

    @abstractmethod
    def create_database(self) -> Database:
        """Build the database this driver tests against."""
        pass

    def setup_database(self, model: Any) -> None:
        """Bind a document type to this driver's database."""
        model.set_database(self.database)

    def clear(self) -> None:
        """Remove all stored documents."""
        self.database.drop()


class InMemoryDriver(DriverInterface):
    """Driver for the in-memory store."""

    name = "memory"

    def create_database(self) -> Database:
        return InMemoryDatabase()


class RecordingDriver(DriverInterface):
    """In-memory store behind a RecordingDatabase."""

    name = "recording"

    def create_database(self) -> Database:
        return RecordingDatabase()
