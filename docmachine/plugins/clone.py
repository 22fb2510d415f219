"""
Clone plugin: copy a document into a new, unsaved document.
"""

import copy
from typing import Any

from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import instance_method


class Clone(Plugin):
    name = "clone"
    requires = ("keys", "lifecycle")

    @instance_method
    def clone(self) -> Any:
        """
        A new record with a deep copy of the attributes, without the id.

        Example:
            >>> copy = user.clone()
            >>> copy.is_new, copy.id, copy.name == user.name
            (True, None, True)
        """
        attrs = {name: copy.deepcopy(value) for name, value in self._attributes.items() if name != "_id"}
        return type(self)(attrs)
