"""
Lifecycle plugin: the new -> persisted -> destroyed state machine.

A document is new until its first successful save, persisted afterwards,
and destroyed (terminal) once deleted. Saving validates first unless told
not to; validation failures make save() return False rather than raise.
Store errors are never caught here.
"""

from typing import Any

from docmachine.exceptions import ArgumentError, DocumentDestroyed, DocumentNotFound, DocumentNotValid
from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import class_method, instance_method, instance_property
from docmachine.query.compiler import to_criteria


class Lifecycle(Plugin):
    """
    Save, destroy and reload for documents.

    Example:
        >>> user = User(name="Alice")
        >>> user.is_new
        True
        >>> user.save()
        True
        >>> user.is_new, user.id is not None
        (False, True)
        >>> user.destroy()
        True
        >>> user.is_destroyed
        True
    """

    name = "lifecycle"
    requires = ("keys", "persistence")

    @staticmethod
    def initialize(instance: Any) -> None:
        instance._new = True
        instance._destroyed = False

    @class_method
    def load(cls, document: dict[str, Any]) -> Any:
        """Build a persisted instance from a stored document."""
        instance = cls.__new__(cls)
        cls.__composition__.initialize(instance)
        instance.assign(document)
        instance._new = False
        return instance

    @instance_property
    def is_new(self) -> bool:
        return bool(self._new)

    @instance_property
    def is_destroyed(self) -> bool:
        return self._destroyed is True

    @instance_property
    def is_persisted(self) -> bool:
        return not self._new and not self._destroyed

    @instance_method
    def valid(self) -> bool:
        """Documents are valid unless a validation plugin says otherwise."""
        return True

    @instance_method
    def save(self, validate: bool = True) -> bool:
        """
        Validate and save this document.

        Creates the document if new, otherwise updates it.

        Args:
            validate: Run validation first (default True)

        Returns:
            True if saved, False if validation (or a callback) stopped it

        Raises:
            DocumentDestroyed: If the document was destroyed
        """
        if self._destroyed:
            raise DocumentDestroyed(f"Cannot save destroyed {type(self).__name__} {self.id!r}")
        if validate and not self.valid():
            return False
        return self.create_or_update()

    @instance_method
    def save_or_raise(self, validate: bool = True) -> bool:
        """
        Like save(), but raise when the document is not saved.

        Raises:
            DocumentNotValid: If validation failed
        """
        if not self.save(validate=validate):
            raise DocumentNotValid(self)
        return True

    @instance_method
    def create_or_update(self) -> bool:
        result = self.create_record() if self.is_new else self.update_record()
        return result is not False

    @instance_method
    def create_record(self) -> bool:
        return self.save_to_collection()

    @instance_method
    def update_record(self) -> bool:
        return self.save_to_collection()

    @instance_method
    def save_to_collection(self) -> bool:
        identity = type(self).collection().save(self.to_mongo())
        if self._attributes.get("_id") is None:
            # Store-assigned identity
            self._attributes["_id"] = identity
        self._new = False
        return True

    @instance_method
    def update_attributes(self, attrs: dict[str, Any]) -> bool:
        """Assign attributes and save."""
        self.assign(attrs)
        return self.save()

    @instance_method
    def update_attribute(self, name: str, value: Any) -> bool:
        """Assign one attribute and save without validation."""
        self.write_attribute(name, value)
        return self.save(validate=False)

    @instance_method
    def destroy(self) -> bool:
        """Destroy this document (callbacks run). See delete()."""
        return self.delete()

    @instance_method
    def delete(self) -> bool:
        """
        Delete this document from the store.

        The store is only contacted if the document was persisted, and only
        once: deleting a destroyed document does nothing.

        Returns:
            True
        """
        if self._destroyed:
            return True
        was_new = self._new
        self._destroyed = True
        if not was_new:
            type(self).collection().remove(to_criteria(ids=self.id))
        return True

    @instance_method
    def reload(self) -> Any:
        """
        Replace the attributes with the stored document.

        Returns:
            Self for method chaining

        Raises:
            ArgumentError: If the document was never saved
            DocumentDestroyed: If the document was destroyed
            DocumentNotFound: If the stored document no longer exists
        """
        if self._new:
            raise ArgumentError(f"Cannot reload a new {type(self).__name__}; it has not been saved")
        if self._destroyed:
            raise DocumentDestroyed(f"Cannot reload destroyed {type(self).__name__} {self.id!r}")

        collection = type(self).collection()
        document = collection.find_one(to_criteria(ids=self.id))
        if document is None:
            raise DocumentNotFound(
                f"Document match {self.id!r} does not exist in {collection.name} collection",
                ids=[self.id],
                collection=collection.name,
                found=0,
                expected=1,
            )

        self.replace_attributes(document)
        type(self).__composition__.reset(self)
        return self
