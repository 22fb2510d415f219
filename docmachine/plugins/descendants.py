"""
Descendants plugin: the registry of document subclasses.
"""

from typing import Any

from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import class_method


class Descendants(Plugin):
    name = "descendants"

    @staticmethod
    def configure(model: Any) -> None:
        model._descendants = []
        for base in model.__mro__[1:]:
            registry = vars(base).get("_descendants")
            if registry is not None:
                registry.append(model)

    @class_method
    def descendants(cls) -> list[Any]:
        """Every subclass defined below this document type, in definition order."""
        return list(cls._descendants)
